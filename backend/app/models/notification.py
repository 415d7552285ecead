"""
Notification database model.
"""

from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, Boolean, ForeignKey, JSON, Index
from sqlalchemy.dialects.postgresql import UUID
import uuid
import enum

from app.core.database import Base


class NotificationChannel(str, enum.Enum):
    """Delivery channel of a notification."""
    IN_APP = "IN_APP"
    BROWSER = "BROWSER"
    TELEGRAM = "TELEGRAM"


class InteractionType(str, enum.Enum):
    """What the recipient can do with a notification."""
    INFO = "INFO"
    CHECKBOX = "CHECKBOX"
    TEXTAREA = "TEXTAREA"


class Notification(Base):
    """Stored notification; the single source of truth for unread state."""

    __tablename__ = "notifications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(UUID(as_uuid=True), ForeignKey("items.id", ondelete="CASCADE"), nullable=True, index=True)

    # Notification content
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)

    # Interaction
    interaction_type = Column(String(20), nullable=False, default=InteractionType.INFO.value)
    interaction_data = Column(JSON, nullable=False, default=dict)
    response = Column(JSON, nullable=True)  # Recipient's answer to CHECKBOX/TEXTAREA

    channels = Column(JSON, nullable=False, default=list)

    # Read state
    is_read = Column(Boolean, default=False, nullable=False, index=True)
    read_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False, index=True)

    __table_args__ = (
        Index('ix_notifications_user_unread', 'user_id', 'is_read', 'created_at'),
    )

    def __repr__(self):
        return f"<Notification(id={self.id}, user_id={self.user_id}, read={self.is_read})>"
