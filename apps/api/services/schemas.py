"""Declared JSON shapes of blueprint sections, checked in strict mode."""

from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from services.errors import MalformedResponse

CONTENT_KEYS = ("projectName", "features", "techStack", "database", "roadmap")


class Features(BaseModel):
    mvp: List[str]
    phase2: List[str]
    phase3: List[str]


class TechStack(BaseModel):
    frontend: str
    backend: str
    database: str
    auth: str
    hosting: str


class Table(BaseModel):
    name: str
    fields: List[str]
    relations: str


class DatabaseSchema(BaseModel):
    tables: List[Table]


class Roadmap(BaseModel):
    month1: List[str]
    month2: List[str]
    month3: List[str]


class FullBlueprint(BaseModel):
    projectName: str
    features: Features
    techStack: TechStack
    database: DatabaseSchema
    apiEndpoints: Optional[List[str]] = None
    roadmap: Roadmap


SECTION_MODELS: Dict[str, Type[BaseModel]] = {
    "full": FullBlueprint,
    "features": Features,
    "techStack": TechStack,
    "database": DatabaseSchema,
    "roadmap": Roadmap,
}


def require_content_keys(payload: Any) -> Dict[str, Any]:
    """A full blueprint must carry every content field so records are never partial."""
    if not isinstance(payload, dict):
        raise MalformedResponse("Blueprint response must be a JSON object.")
    missing = [key for key in CONTENT_KEYS if payload.get(key) is None]
    if missing:
        raise MalformedResponse(f"Blueprint response is missing fields: {', '.join(missing)}")
    return payload


def validate_section_shape(section: str, payload: Any) -> Any:
    """Reject structurally wrong JSON for the given section."""
    model = SECTION_MODELS[section]
    try:
        model.model_validate(payload)
    except PydanticValidationError as exc:
        raise MalformedResponse(
            f"Model response does not match the {section} shape ({exc.error_count()} errors)."
        ) from exc
    return payload
