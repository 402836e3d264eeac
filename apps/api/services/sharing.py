"""Share-link helpers for blueprints."""

from __future__ import annotations

import logging
import secrets
from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from services.blueprint_store import get_owned_blueprint, get_public_blueprint, serialize_blueprint

logger = logging.getLogger(__name__)

SHARE_TOKEN_LENGTH = 12


def generate_share_token() -> str:
    # token_urlsafe(9) yields exactly 12 url-safe characters.
    return secrets.token_urlsafe(SHARE_TOKEN_LENGTH * 3 // 4)


def build_share_url(share_token: str) -> str:
    app_origin = (settings.APP_URL or "").strip() or "http://localhost:3000"
    return f"{app_origin.rstrip('/')}/share/{share_token}"


async def share_blueprint(
    *,
    blueprint_id: str,
    user_id: str,
    db: AsyncSession,
) -> Dict[str, Any]:
    """Make a blueprint public, reusing its token when one was minted before."""
    row = await get_owned_blueprint(db, blueprint_id, user_id)

    token = row.share_token or generate_share_token()
    row.share_token = token
    row.is_public = True
    await db.commit()

    logger.info("Blueprint %s shared", blueprint_id)
    return {
        "shareToken": token,
        "shareUrl": build_share_url(token),
    }


async def unshare_blueprint(
    *,
    blueprint_id: str,
    user_id: str,
    db: AsyncSession,
) -> Dict[str, Any]:
    """Hide a blueprint from the public path. The token is kept for re-sharing."""
    row = await get_owned_blueprint(db, blueprint_id, user_id)

    row.is_public = False
    await db.commit()
    await db.refresh(row)

    logger.info("Blueprint %s made private", blueprint_id)
    return {
        "message": "Blueprint is no longer shared",
        "updated": serialize_blueprint(row),
    }


async def resolve_shared_blueprint(*, share_token: str, db: AsyncSession) -> Dict[str, Any]:
    return await get_public_blueprint(db, share_token)
