"""
Item, relation and comment Pydantic schemas.
"""

from datetime import datetime
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel, Field

from app.models.item import ItemType, ItemStatus, ItemImportance, RelationType
from app.schemas.ai import AIAnalysisResultResponse, AIProcessingLogResponse


class ItemCreate(BaseModel):
    """Schema for creating an item. The owner is always the caller."""
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    type: ItemType = ItemType.TASK
    status: ItemStatus = ItemStatus.TODO
    importance: ItemImportance = ItemImportance.MEDIUM
    tags: List[str] = Field(default_factory=list)
    due_date: Optional[datetime] = None


class ItemUpdate(BaseModel):
    """Partial update of an item."""
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    type: Optional[ItemType] = None
    status: Optional[ItemStatus] = None
    importance: Optional[ItemImportance] = None
    tags: Optional[List[str]] = None
    due_date: Optional[datetime] = None


class ItemResponse(BaseModel):
    """Item response schema."""
    id: UUID
    user_id: UUID
    title: str
    description: Optional[str] = None
    type: ItemType
    status: ItemStatus
    importance: ItemImportance
    tags: List[str] = Field(default_factory=list)
    due_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ItemFilters(BaseModel):
    """Query filters for listing items. "ALL" disables a filter."""
    type: Optional[str] = None
    status: Optional[str] = None
    importance: Optional[str] = None
    search: Optional[str] = None
    sort_by: str = Field("updated_at", pattern="^(updated_at|created_at|due_date|title|importance|status|type)$")
    sort_order: str = Field("desc", pattern="^(asc|desc)$")


class ItemRelationCreate(BaseModel):
    """Schema for creating a directed edge."""
    from_item_id: UUID
    to_item_id: UUID
    relation_type: RelationType


class ItemRelationResponse(BaseModel):
    """Stored edge."""
    id: UUID
    from_item_id: UUID
    to_item_id: UUID
    relation_type: RelationType

    class Config:
        from_attributes = True


class RelatedItem(ItemRelationResponse):
    """An edge together with the item at its other end."""
    item: ItemResponse


class RelationView(BaseModel):
    """Edges of one item grouped by how they read from that item."""
    parents: List[RelatedItem] = Field(default_factory=list)
    children: List[RelatedItem] = Field(default_factory=list)
    related: List[RelatedItem] = Field(default_factory=list)
    blocked_by: List[RelatedItem] = Field(default_factory=list)
    blocks: List[RelatedItem] = Field(default_factory=list)


class CommentCreate(BaseModel):
    """Schema for adding a comment."""
    content: str = Field(..., min_length=1, max_length=10000)


class CommentResponse(BaseModel):
    """Comment with its author's username."""
    id: UUID
    item_id: UUID
    user_id: UUID
    username: Optional[str] = None
    content: str
    created_at: datetime

    class Config:
        from_attributes = True


class ItemDetailResponse(ItemResponse):
    """Item with its relation view, comments and AI output."""
    relations: RelationView
    comments: List[CommentResponse] = Field(default_factory=list)
    ai_insights: List[AIAnalysisResultResponse] = Field(default_factory=list)
    ai_logs: List[AIProcessingLogResponse] = Field(default_factory=list)
