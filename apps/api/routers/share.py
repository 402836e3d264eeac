"""
Public read access to shared blueprints.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from services.errors import BlueprintNotFound
from services.sharing import resolve_shared_blueprint

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/{share_token}")
async def get_shared_blueprint(
    share_token: str,
    db: AsyncSession = Depends(get_db),
):
    """Public blueprint retrieval via share token. The owner identity is omitted."""
    try:
        return await resolve_shared_blueprint(share_token=share_token, db=db)
    except BlueprintNotFound:
        raise HTTPException(status_code=404, detail="Blueprint not found")
    except Exception:
        logger.exception("Failed to resolve shared blueprint token=%s", share_token)
        raise HTTPException(status_code=500, detail="Failed to fetch blueprint")
