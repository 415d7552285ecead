"""
Item-related database models: items, the directed edges between them and comments.
"""

from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, JSON, Index
from sqlalchemy.dialects.postgresql import UUID
import uuid
import enum

from app.core.database import Base


class ItemType(str, enum.Enum):
    """Kind of item."""
    TASK = "TASK"
    PROJECT = "PROJECT"
    GOAL = "GOAL"
    IDEA = "IDEA"
    NOTE = "NOTE"


class ItemStatus(str, enum.Enum):
    """Workflow status of an item."""
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"
    ARCHIVED = "ARCHIVED"
    BACKLOG = "BACKLOG"


class ItemImportance(str, enum.Enum):
    """Importance of an item; drives the AI processing strategy."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class RelationType(str, enum.Enum):
    """Type of a directed edge between two items."""
    PARENT_OF = "PARENT_OF"
    CHILD_OF = "CHILD_OF"
    RELATED_TO = "RELATED_TO"
    BLOCKS = "BLOCKS"
    DEPENDS_ON = "DEPENDS_ON"


class Item(Base):
    """A task, project, goal, idea or note owned by one user."""

    __tablename__ = "items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(20), nullable=False, default=ItemType.TASK.value, index=True)
    status = Column(String(20), nullable=False, default=ItemStatus.TODO.value, index=True)
    importance = Column(String(20), nullable=False, default=ItemImportance.MEDIUM.value)
    tags = Column(JSON, nullable=False, default=list)  # Ordered list of strings
    due_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('ix_items_user_updated', 'user_id', 'updated_at'),
    )

    def __repr__(self):
        return f"<Item(id={self.id}, type={self.type}, title='{self.title}')>"


class ItemRelation(Base):
    """
    Directed edge between two items.

    Only one row is stored per edge; the inverse reading (for example
    "A is a parent of B" when looking from B) is derived at read time.
    """

    __tablename__ = "item_relations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    from_item_id = Column(UUID(as_uuid=True), ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)
    to_item_id = Column(UUID(as_uuid=True), ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)
    relation_type = Column(String(20), nullable=False)

    def __repr__(self):
        return f"<ItemRelation({self.from_item_id} {self.relation_type} {self.to_item_id})>"


class Comment(Base):
    """Append-only comment on an item."""

    __tablename__ = "comments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    item_id = Column(UUID(as_uuid=True), ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
