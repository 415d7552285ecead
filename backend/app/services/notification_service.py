"""
Notification service for creating and delivering user notifications.

The stored row is the source of truth. Live channels (WebSocket, Telegram) are
attempted once after the row is committed; their failures never undo it.
"""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import commit_or_raise
from app.models.notification import Notification, NotificationChannel
from app.schemas.notification import NotificationPayload, NotificationResponse
from app.services.telegram_service import TelegramService
from app.utils.websocket_manager import ConnectionManager


class NotificationService:
    """Service for managing notifications."""

    def __init__(self, connection_manager: ConnectionManager, telegram_service: TelegramService):
        self.connections = connection_manager
        self.telegram = telegram_service

    async def send_notification(self, db: AsyncSession, user_id: UUID, payload: NotificationPayload) -> bool:
        """
        Persist a notification and push it to the requested channels.

        Returns:
            True once the notification is stored, False if storing failed
        """
        try:
            notification = Notification(
                user_id=user_id,
                item_id=payload.item_id,
                title=payload.title,
                content=payload.content,
                interaction_type=payload.interaction_type.value,
                interaction_data=payload.interaction_data,
                channels=[c.value for c in payload.channels],
                is_read=False,
                created_at=datetime.utcnow(),
            )
            db.add(notification)
            await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error creating notification for user {user_id}: {e}")
            await db.rollback()
            return False

        logger.info(f"Created notification {notification.id} for user {user_id}: {payload.title}")

        channels = set(payload.channels)
        if NotificationChannel.IN_APP in channels:
            record = NotificationResponse.model_validate(notification).model_dump(mode="json")
            await self.connections.send_to_user(user_id, {"type": "notification", "payload": record})

        if NotificationChannel.BROWSER in channels:
            await self.connections.send_to_user(user_id, {
                "type": "browserNotification",
                "payload": {
                    "id": str(notification.id),
                    "title": notification.title,
                    "body": notification.content,
                    "itemId": str(notification.item_id) if notification.item_id else None,
                },
            })

        if NotificationChannel.TELEGRAM in channels:
            await self.telegram.send(db, user_id, notification.title, notification.content)

        return True

    async def get_notification(self, db: AsyncSession, notification_id: UUID) -> Optional[Notification]:
        return await db.get(Notification, notification_id)

    async def get_notifications(
        self,
        db: AsyncSession,
        user_id: UUID,
        unread_only: bool = False,
    ) -> List[Notification]:
        """Get a user's notifications, newest first."""
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.is_read == False)  # noqa: E712

        result = await db.execute(query.order_by(Notification.created_at.desc()))
        return list(result.scalars().all())

    async def get_unread_count(self, db: AsyncSession, user_id: UUID) -> int:
        """Get count of unread notifications for a user."""
        result = await db.execute(
            select(func.count()).select_from(Notification).where(
                Notification.user_id == user_id,
                Notification.is_read == False,  # noqa: E712
            )
        )
        return result.scalar() or 0

    async def mark_as_read(self, db: AsyncSession, notification_id: UUID) -> bool:
        """Mark a notification as read. Marking it again is a no-op."""
        notification = await self.get_notification(db, notification_id)
        if notification is None:
            return False

        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.utcnow()
            await commit_or_raise(db)
        return True

    async def mark_all_as_read(self, db: AsyncSession, user_id: UUID) -> int:
        """Mark all notifications as read for a user."""
        result = await db.execute(
            update(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.is_read == False,  # noqa: E712
            )
            .values(is_read=True, read_at=datetime.utcnow())
        )
        await commit_or_raise(db)
        return result.rowcount

    async def respond(self, db: AsyncSession, notification_id: UUID, response: Any) -> Optional[Notification]:
        """Store the answer to an interactive notification and mark it read."""
        notification = await self.get_notification(db, notification_id)
        if notification is None:
            return None

        notification.response = response
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.utcnow()
        await commit_or_raise(db)
        logger.info(f"Recorded response to notification {notification_id}")
        return notification
