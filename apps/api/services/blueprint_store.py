"""
Persistence helpers for blueprint records.

Every read used by a route is scoped by owner, except the public share lookup
and the two write helpers (`update_blueprint_field`, `delete_blueprint`),
which expect the caller to have authorized through `get_owned_blueprint`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.blueprint import Blueprint
from services.errors import BlueprintNotFound, InvalidSection

# Wire section name -> column attribute.
SECTION_COLUMNS = {
    "features": "features",
    "techStack": "tech_stack",
    "database": "database_schema",
    "roadmap": "roadmap",
}


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def serialize_blueprint(row: Blueprint, include_owner: bool = True) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "id": row.id,
        "projectName": row.project_name,
        "idea": row.idea,
        "features": row.features,
        "techStack": row.tech_stack,
        "database": row.database_schema,
        "apiEndpoints": row.api_endpoints,
        "roadmap": row.roadmap,
        "isPublic": bool(row.is_public),
        "shareToken": row.share_token,
        "createdAt": _iso(row.created_at),
        "updatedAt": _iso(row.updated_at),
    }
    if include_owner:
        payload["userId"] = row.user_id
    return payload


def serialize_summary(row: Blueprint) -> Dict[str, Any]:
    return {
        "id": row.id,
        "projectName": row.project_name,
        "idea": row.idea,
        "createdAt": _iso(row.created_at),
    }


async def create_blueprint(
    db: AsyncSession,
    *,
    user_id: str,
    idea: str,
    fields: Dict[str, Any],
) -> Blueprint:
    """Insert a blueprint with every content field in a single commit."""
    row = Blueprint(
        user_id=user_id,
        idea=idea,
        project_name=str(fields["projectName"]),
        features=fields["features"],
        tech_stack=fields["techStack"],
        database_schema=fields["database"],
        roadmap=fields["roadmap"],
        api_endpoints=fields.get("apiEndpoints"),
        is_public=False,
    )
    db.add(row)
    await db.commit()
    await db.refresh(row)
    return row


async def get_owned_blueprint(db: AsyncSession, blueprint_id: str, user_id: str) -> Blueprint:
    result = await db.execute(
        select(Blueprint).where(
            Blueprint.id == blueprint_id,
            Blueprint.user_id == user_id,
        )
    )
    row = result.scalar_one_or_none()
    if not row:
        raise BlueprintNotFound("Blueprint not found")
    return row


async def update_blueprint_field(
    db: AsyncSession,
    blueprint_id: str,
    section: str,
    value: Any,
) -> Blueprint:
    column = SECTION_COLUMNS.get(section)
    if column is None:
        raise InvalidSection(section)

    result = await db.execute(select(Blueprint).where(Blueprint.id == blueprint_id))
    row = result.scalar_one_or_none()
    if not row:
        raise BlueprintNotFound("Blueprint not found")

    setattr(row, column, value)
    await db.commit()
    await db.refresh(row)
    return row


async def list_owned_blueprints(db: AsyncSession, user_id: str) -> List[Dict[str, Any]]:
    result = await db.execute(
        select(Blueprint)
        .where(Blueprint.user_id == user_id)
        .order_by(Blueprint.created_at.desc())
    )
    return [serialize_summary(row) for row in result.scalars().all()]


async def delete_blueprint(db: AsyncSession, blueprint_id: str) -> None:
    await db.execute(delete(Blueprint).where(Blueprint.id == blueprint_id))
    await db.commit()


async def get_public_blueprint(db: AsyncSession, share_token: str) -> Dict[str, Any]:
    """Public-safe view; unknown and private tokens are indistinguishable."""
    token = str(share_token or "").strip()
    if not token:
        raise BlueprintNotFound("Blueprint not found")

    result = await db.execute(
        select(Blueprint).where(
            Blueprint.share_token == token,
            Blueprint.is_public.is_(True),
        )
    )
    row = result.scalar_one_or_none()
    if not row:
        raise BlueprintNotFound("Blueprint not found")
    return serialize_blueprint(row, include_owner=False)
