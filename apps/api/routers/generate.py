"""
Router for generating a new blueprint from a project idea.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, get_auth_context
from routers.rate_limit import enforce_generation_quota
from services.blueprint_store import serialize_blueprint
from services.errors import MalformedResponse, ProviderError, ValidationError
from services.generation import generate_blueprint
from services.model_gateway import ModelGateway, get_model_gateway

router = APIRouter()
logger = logging.getLogger(__name__)


class GenerateRequest(BaseModel):
    idea: Optional[str] = None


@router.post("/generate")
async def generate(
    request: GenerateRequest,
    http_request: Request,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
    gateway: ModelGateway = Depends(get_model_gateway),
):
    """Generate and store a full blueprint for the submitted idea."""
    if not (request.idea or "").strip():
        raise HTTPException(status_code=400, detail="Idea is required")
    await enforce_generation_quota(http_request, "generate", auth.user_id)
    try:
        row = await generate_blueprint(db, gateway, user_id=auth.user_id, idea=request.idea or "")
        return serialize_blueprint(row)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except ProviderError as exc:
        logger.warning("Blueprint generation provider failure for user %s: %s", auth.user_id, exc)
        raise HTTPException(status_code=500, detail=str(exc))
    except MalformedResponse as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    except Exception:
        logger.exception("Failed to generate blueprint for user %s", auth.user_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")
