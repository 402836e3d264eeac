"""
Gateway to the text-generation provider.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from openai import OpenAI, OpenAIError

from config import settings
from services.errors import ProviderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationParams:
    temperature: float
    max_tokens: int


FULL_PARAMS = GenerationParams(temperature=0.7, max_tokens=2000)
SECTION_PARAMS = GenerationParams(temperature=0.8, max_tokens=1000)


class ModelGateway(Protocol):
    async def complete(self, system: str, user: str, params: GenerationParams) -> str:
        ...


def get_openai_client(api_key: str, timeout: float = 60.0) -> Optional[OpenAI]:
    """Get OpenAI client, handling placeholders."""
    if not api_key or "your_" in api_key or api_key == "test-key":
        return None
    # Failures surface to the caller; the SDK must not retry on its own.
    return OpenAI(api_key=api_key, timeout=timeout, max_retries=0)


class OpenAIModelGateway:
    """Chat-completions gateway. The blocking SDK call runs in a worker thread."""

    def __init__(self, client: Optional[OpenAI], model: str):
        self.client = client
        self.model = model

    def _create(self, system: str, user: str, params: GenerationParams) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            temperature=params.temperature,
            max_tokens=params.max_tokens,
        )
        return response.choices[0].message.content or ""

    async def complete(self, system: str, user: str, params: GenerationParams) -> str:
        if self.client is None:
            raise ProviderError("OpenAI API key missing or unavailable.")
        try:
            return await asyncio.to_thread(self._create, system, user, params)
        except OpenAIError as exc:
            logger.warning("OpenAI completion failed (model=%s): %s", self.model, exc)
            raise ProviderError(f"Model provider request failed: {exc}") from exc


def get_model_gateway() -> ModelGateway:
    """FastAPI dependency returning the configured provider gateway."""
    client = get_openai_client(settings.OPENAI_API_KEY, timeout=settings.OPENAI_TIMEOUT_SECONDS)
    return OpenAIModelGateway(client, settings.OPENAI_MODEL)
