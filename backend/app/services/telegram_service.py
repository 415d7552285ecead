"""
Telegram side channel for notifications.

Delivery is best effort: nothing here raises. A user without a chat id, or a
deployment without a bot token, is skipped.
"""

from typing import Optional
from uuid import UUID

import httpx
from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.user import UserSettings
from app.utils.formatters import truncate_text

# sendMessage rejects longer texts
MAX_MESSAGE_LENGTH = 4096


class TelegramService:
    """Sends plain messages through the Telegram Bot API."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        bot_token: Optional[str] = None,
        api_url: Optional[str] = None,
    ):
        self.bot_token = bot_token if bot_token is not None else settings.TELEGRAM_BOT_TOKEN
        self.api_url = (api_url or settings.TELEGRAM_API_URL).rstrip("/")
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=10.0)

    @property
    def enabled(self) -> bool:
        return bool(self.bot_token)

    async def _chat_id_for(self, db: AsyncSession, user_id: UUID) -> Optional[str]:
        result = await db.execute(
            select(UserSettings.telegram_chat_id).where(UserSettings.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def send(self, db: AsyncSession, user_id: UUID, title: str, content: str) -> bool:
        """Send a message to the user's chat. Returns True if Telegram accepted it."""
        if not self.enabled:
            logger.debug(f"Telegram disabled, skipping notification for user {user_id}")
            return False

        try:
            chat_id = await self._chat_id_for(db, user_id)
        except SQLAlchemyError as e:
            logger.warning(f"Could not load Telegram chat id for user {user_id}: {e}")
            return False

        if not chat_id:
            logger.debug(f"No Telegram chat id for user {user_id}, skipping")
            return False

        try:
            response = await self.client.post(
                f"{self.api_url}/bot{self.bot_token}/sendMessage",
                json={"chat_id": chat_id, "text": truncate_text(f"{title}\n\n{content}", MAX_MESSAGE_LENGTH)},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Telegram delivery to user {user_id} failed: {e}")
            return False

        logger.info(f"Telegram notification sent to user {user_id}")
        return True

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()
