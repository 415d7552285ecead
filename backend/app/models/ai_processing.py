"""
AI processing records: the append-only processing log and the analysis results.
"""

from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, Boolean, ForeignKey, JSON, Index
from sqlalchemy.dialects.postgresql import UUID
import uuid
import enum

from app.core.database import Base


class LogLevel(str, enum.Enum):
    """Severity of a processing log entry."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    IMPORTANT = "IMPORTANT"
    CRITICAL = "CRITICAL"


class ProcessingStrategy(str, enum.Enum):
    """How many models an item is run through, chosen from its importance."""
    SINGLE_BASIC = "SINGLE_BASIC"
    SINGLE_BEST = "SINGLE_BEST"
    MULTI_MODEL_SELECTIVE = "MULTI_MODEL_SELECTIVE"
    ALL_ENCOMPASSING = "ALL_ENCOMPASSING"


class AIProcessingLog(Base):
    """Append-only log entry of a processing run. Only is_deleted ever changes."""

    __tablename__ = "ai_processing_logs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    item_id = Column(UUID(as_uuid=True), ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)
    model_id = Column(UUID(as_uuid=True), ForeignKey("ai_models.id", ondelete="SET NULL"), nullable=True)

    log_level = Column(String(20), nullable=False, default=LogLevel.INFO.value)
    message = Column(Text, nullable=False)
    details = Column(JSON, nullable=False, default=dict)  # Tagged by "kind"

    timestamp = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    is_deleted = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index('ix_ai_processing_logs_item_level', 'item_id', 'log_level'),
    )

    def __repr__(self):
        return f"<AIProcessingLog(id={self.id}, level={self.log_level}, item_id={self.item_id})>"


class AIAnalysisResult(Base):
    """Immutable analysis produced by one model for one item."""

    __tablename__ = "ai_analysis_results"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    item_id = Column(UUID(as_uuid=True), ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)
    model_id = Column(UUID(as_uuid=True), ForeignKey("ai_models.id", ondelete="SET NULL"), nullable=True)

    title = Column(String(500), nullable=False)
    content = Column(JSON, nullable=False)
    processing_strategy = Column(String(40), nullable=False)
    is_visible_in_overview = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<AIAnalysisResult(id={self.id}, item_id={self.item_id}, strategy={self.processing_strategy})>"
