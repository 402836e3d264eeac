"""Blueprint model for generated project plans."""

from sqlalchemy import Boolean, Column, DateTime, JSON, String, Text
from sqlalchemy.sql import func
import uuid

from database import Base


class Blueprint(Base):
    """AI-generated plan for a user's project idea."""

    __tablename__ = "blueprints"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=False, index=True)  # external identity, no FK
    project_name = Column(String, nullable=False)
    idea = Column(Text, nullable=False)
    features = Column(JSON, nullable=False)
    tech_stack = Column(JSON, nullable=False)
    database_schema = Column(JSON, nullable=False)
    roadmap = Column(JSON, nullable=False)
    api_endpoints = Column(JSON, nullable=True)
    is_public = Column(Boolean, nullable=False, default=False)
    share_token = Column(String, nullable=True, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
