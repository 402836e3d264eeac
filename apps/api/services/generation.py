"""
Blueprint generation and single-section regeneration.

Both flows run prompt -> model -> normalize -> persist inside one request.
Nothing is retried and the only mutation is the final store write, so a
failure at any earlier step leaves stored data untouched.
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from models.blueprint import Blueprint
from services.blueprint_store import create_blueprint, get_owned_blueprint, update_blueprint_field
from services.errors import MalformedResponse, ValidationError
from services.model_gateway import FULL_PARAMS, SECTION_PARAMS, ModelGateway
from services.normalizer import normalize_response
from services.prompts import FULL_SECTION, build_prompt, parse_section
from services.schemas import require_content_keys, validate_section_shape

logger = logging.getLogger(__name__)


def _check_shape(section: str, payload: Any) -> Any:
    if settings.BLUEPRINT_STRICT_SCHEMA:
        return validate_section_shape(section, payload)
    return payload


async def generate_blueprint(
    db: AsyncSession,
    gateway: ModelGateway,
    *,
    user_id: str,
    idea: str,
) -> Blueprint:
    """Generate a complete blueprint for an idea and store it for the user."""
    if not idea or not idea.strip():
        raise ValidationError("Idea is required")

    prompt = build_prompt(idea, FULL_SECTION)
    logger.info("Generating blueprint for user %s", user_id)
    raw = await gateway.complete(prompt.system, prompt.user, FULL_PARAMS)

    try:
        payload = require_content_keys(normalize_response(raw))
        payload = _check_shape(FULL_SECTION, payload)
    except MalformedResponse as exc:
        logger.warning("Unusable blueprint response for user %s: %s", user_id, exc)
        raise

    row = await create_blueprint(db, user_id=user_id, idea=idea, fields=payload)
    logger.info("Blueprint %s saved for user %s", row.id, user_id)
    return row


async def regenerate_section(
    db: AsyncSession,
    gateway: ModelGateway,
    *,
    blueprint_id: str,
    user_id: str,
    section: Any,
) -> Blueprint:
    """Replace one section of an owned blueprint with a fresh model answer."""
    blueprint = await get_owned_blueprint(db, blueprint_id, user_id)
    section = parse_section(section, allow_full=False)

    prompt = build_prompt(blueprint.idea, section)
    logger.info("Regenerating %s for blueprint %s", section, blueprint_id)
    raw = await gateway.complete(prompt.system, prompt.user, SECTION_PARAMS)

    value = _check_shape(section, normalize_response(raw))

    # Last write wins when two regenerations race on the same record.
    updated = await update_blueprint_field(db, blueprint_id, section, value)
    logger.info("Section %s of blueprint %s updated", section, blueprint_id)
    return updated
