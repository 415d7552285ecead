"""
AI model catalog.

Rows for local Ollama models are created by discovery; activation is a user action.
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime, Boolean, JSON, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
import uuid
import enum

from app.core.database import Base


class ModelType(str, enum.Enum):
    """Where a model is served from."""
    API = "API"
    OLLAMA_LOCAL = "OLLAMA_LOCAL"


class AIModel(Base):
    """A model that can analyse items."""

    __tablename__ = "ai_models"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    name = Column(String(200), nullable=False)  # e.g. "llama3.2:3b"
    model_type = Column(String(30), nullable=False, default=ModelType.OLLAMA_LOCAL.value)
    endpoint = Column(String(500), nullable=True)

    # Never set to True by discovery
    is_active = Column(Boolean, nullable=False, default=True)

    # Extra fields merged into the generate request body
    parameters = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("name", "model_type", name="uq_ai_models_name_type"),
    )

    def __repr__(self):
        return f"<AIModel(id={self.id}, name='{self.name}', active={self.is_active})>"
