"""
Notification-related Pydantic schemas.
"""

from datetime import datetime
from typing import Optional, List, Dict, Any
from uuid import UUID
from pydantic import BaseModel, Field

from app.models.notification import InteractionType, NotificationChannel


class NotificationPayload(BaseModel):
    """What a caller hands to the notification service."""
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1, max_length=5000)
    item_id: Optional[UUID] = None
    interaction_type: InteractionType = InteractionType.INFO
    interaction_data: Dict[str, Any] = Field(default_factory=dict)
    channels: List[NotificationChannel] = Field(default_factory=lambda: [NotificationChannel.IN_APP])


class NotificationResponse(BaseModel):
    """Notification response schema."""
    id: UUID
    user_id: UUID
    item_id: Optional[UUID] = None
    title: str
    content: str
    interaction_type: InteractionType
    interaction_data: Dict[str, Any] = Field(default_factory=dict)
    response: Optional[Any] = None
    channels: List[NotificationChannel] = Field(default_factory=list)
    is_read: bool = False
    read_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationListResponse(BaseModel):
    """Notification list with the caller's unread count."""
    items: List[NotificationResponse]
    total: int
    unread_count: int


class NotificationRespond(BaseModel):
    """Answer to a CHECKBOX or TEXTAREA notification."""
    response: Any


class UnreadCountResponse(BaseModel):
    """Response for unread count endpoint."""
    unread_count: int
