"""
Notification API endpoints.
"""

from uuid import UUID
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_notification_service
from app.core.database import get_db
from app.models.notification import Notification
from app.models.user import User
from app.services.auth_service import get_current_user
from app.services.notification_service import NotificationService
from app.schemas.notification import (
    NotificationResponse,
    NotificationListResponse,
    NotificationRespond,
    UnreadCountResponse,
)
from app.utils.exceptions import ForbiddenError, NotFoundError

router = APIRouter()


async def _owned_notification(
    service: NotificationService,
    db: AsyncSession,
    notification_id: UUID,
    user: User,
) -> Notification:
    notification = await service.get_notification(db, notification_id)
    if notification is None:
        raise NotFoundError("Notification", str(notification_id))
    if notification.user_id != user.id:
        raise ForbiddenError()
    return notification


@router.get("", response_model=NotificationListResponse)
async def get_notifications(
    unread_only: bool = Query(False),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: NotificationService = Depends(get_notification_service),
):
    """Get notifications for the current user, newest first."""
    notifications = await service.get_notifications(db, current_user.id, unread_only=unread_only)
    unread_count = await service.get_unread_count(db, current_user.id)

    return NotificationListResponse(
        items=[NotificationResponse.model_validate(n) for n in notifications],
        total=len(notifications),
        unread_count=unread_count,
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: NotificationService = Depends(get_notification_service),
):
    """Get count of unread notifications."""
    count = await service.get_unread_count(db, current_user.id)
    return UnreadCountResponse(unread_count=count)


@router.post("/read-all")
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: NotificationService = Depends(get_notification_service),
):
    """Mark all notifications as read."""
    count = await service.mark_all_as_read(db, current_user.id)
    return {"marked_read": count}


@router.post("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_notification_read(
    notification_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: NotificationService = Depends(get_notification_service),
):
    """Mark a single notification as read."""
    await _owned_notification(service, db, notification_id, current_user)
    await service.mark_as_read(db, notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{notification_id}/respond", response_model=NotificationResponse)
async def respond_to_notification(
    notification_id: UUID,
    data: NotificationRespond,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: NotificationService = Depends(get_notification_service),
):
    """Answer a CHECKBOX or TEXTAREA notification."""
    await _owned_notification(service, db, notification_id, current_user)
    return await service.respond(db, notification_id, data.response)
