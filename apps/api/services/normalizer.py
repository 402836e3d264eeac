"""Cleanup and parsing of raw model output."""

import json
import re
from typing import Any, Optional

from services.errors import MalformedResponse

_FENCE_RE = re.compile(r"```(?:json)?\n?")


def strip_code_fences(text: Optional[str]) -> str:
    """Trim and drop every ```json / ``` marker wherever it appears."""
    cleaned = (text or "").strip()
    return _FENCE_RE.sub("", cleaned).strip()


def normalize_response(raw: Optional[str]) -> Any:
    """Parse model output as JSON; anything unparseable is a MalformedResponse."""
    cleaned = strip_code_fences(raw)
    if not cleaned:
        raise MalformedResponse("Model returned an empty response.", raw=raw)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise MalformedResponse(f"Model response is not valid JSON: {exc.msg}", raw=raw) from exc
