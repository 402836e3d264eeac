"""
Router for listing, reading, deleting, regenerating, sharing and exporting
a user's blueprints. Every route is owner-scoped.
"""

import logging
from io import BytesIO
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, get_auth_context
from routers.rate_limit import enforce_generation_quota
from services.blueprint_store import (
    delete_blueprint,
    get_owned_blueprint,
    list_owned_blueprints,
    serialize_blueprint,
)
from services.errors import BlueprintNotFound, MalformedResponse, ProviderError, ValidationError
from services.export import export_filename, render_markdown, render_pdf
from services.generation import regenerate_section
from services.model_gateway import ModelGateway, get_model_gateway
from services.prompts import REGENERABLE_SECTIONS
from services.sharing import share_blueprint, unshare_blueprint

router = APIRouter()
logger = logging.getLogger(__name__)

EXPORT_MEDIA_TYPES = {
    "markdown": ("text/markdown; charset=utf-8", "md"),
    "pdf": ("application/pdf", "pdf"),
}


class RegenerateRequest(BaseModel):
    section: Optional[Any] = None


@router.get("")
async def list_blueprints(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """List the user's blueprints, newest first."""
    try:
        return await list_owned_blueprints(db, auth.user_id)
    except Exception:
        logger.exception("Failed to list blueprints for user %s", auth.user_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/{blueprint_id}")
async def get_blueprint(
    blueprint_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Retrieve one blueprint owned by the user."""
    try:
        row = await get_owned_blueprint(db, blueprint_id, auth.user_id)
        return serialize_blueprint(row)
    except BlueprintNotFound:
        raise HTTPException(status_code=404, detail="Blueprint not found")
    except Exception:
        logger.exception("Failed to fetch blueprint %s", blueprint_id)
        raise HTTPException(status_code=500, detail="Failed to fetch blueprint")


@router.delete("/{blueprint_id}")
async def remove_blueprint(
    blueprint_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Permanently delete a blueprint owned by the user."""
    try:
        await get_owned_blueprint(db, blueprint_id, auth.user_id)
        await delete_blueprint(db, blueprint_id)
        logger.info("Blueprint %s deleted by user %s", blueprint_id, auth.user_id)
        return {"success": True}
    except BlueprintNotFound:
        raise HTTPException(status_code=404, detail="Blueprint not found")
    except Exception:
        logger.exception("Failed to delete blueprint %s", blueprint_id)
        raise HTTPException(status_code=500, detail="Failed to delete blueprint")


@router.post("/{blueprint_id}/regenerate")
async def regenerate_blueprint_section(
    blueprint_id: str,
    request: RegenerateRequest,
    http_request: Request,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
    gateway: ModelGateway = Depends(get_model_gateway),
):
    """Regenerate one section (features, techStack, database or roadmap)."""
    if not request.section:
        raise HTTPException(status_code=400, detail="Section is required")
    # Unknown sections are rejected by regenerate_section before any provider call.
    if request.section in REGENERABLE_SECTIONS:
        await enforce_generation_quota(http_request, "regenerate", auth.user_id)
    try:
        row = await regenerate_section(
            db,
            gateway,
            blueprint_id=blueprint_id,
            user_id=auth.user_id,
            section=request.section,
        )
        return serialize_blueprint(row)
    except BlueprintNotFound:
        raise HTTPException(status_code=404, detail="Blueprint not found")
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except (ProviderError, MalformedResponse) as exc:
        logger.warning("Regeneration of %s failed for blueprint %s: %s", request.section, blueprint_id, exc)
        raise HTTPException(status_code=500, detail=str(exc))
    except Exception:
        logger.exception("Failed to regenerate section for blueprint %s", blueprint_id)
        raise HTTPException(status_code=500, detail="Failed to regenerate section")


@router.post("/{blueprint_id}/share")
async def create_share_link(
    blueprint_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Make the blueprint publicly readable through its share token."""
    try:
        return await share_blueprint(blueprint_id=blueprint_id, user_id=auth.user_id, db=db)
    except BlueprintNotFound:
        raise HTTPException(status_code=404, detail="Blueprint not found")
    except Exception:
        logger.exception("Failed to share blueprint %s", blueprint_id)
        raise HTTPException(status_code=500, detail="Failed to share blueprint")


@router.delete("/{blueprint_id}/share")
async def revoke_share_link(
    blueprint_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Make the blueprint private again. The share token is kept."""
    try:
        return await unshare_blueprint(blueprint_id=blueprint_id, user_id=auth.user_id, db=db)
    except BlueprintNotFound:
        raise HTTPException(status_code=404, detail="Blueprint not found")
    except Exception:
        logger.exception("Failed to unshare blueprint %s", blueprint_id)
        raise HTTPException(status_code=500, detail="Failed to unshare blueprint")


@router.get("/{blueprint_id}/export")
async def export_blueprint(
    blueprint_id: str,
    format: str = Query(default="markdown"),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Download the blueprint as Markdown or PDF."""
    format = format.lower()
    if format not in EXPORT_MEDIA_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported format: {format}. Use 'markdown' or 'pdf'",
        )
    try:
        row = await get_owned_blueprint(db, blueprint_id, auth.user_id)
    except BlueprintNotFound:
        raise HTTPException(status_code=404, detail="Blueprint not found")

    payload = serialize_blueprint(row)
    media_type, extension = EXPORT_MEDIA_TYPES[format]
    if format == "pdf":
        body = render_pdf(payload)
    else:
        body = render_markdown(payload).encode("utf-8")

    return StreamingResponse(
        BytesIO(body),
        media_type=media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{export_filename(row.project_name, extension)}"'
        },
    )
