"""
User settings and locale preference.
"""

from datetime import datetime
from uuid import UUID

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import commit_or_raise
from app.models.user import User, UserSettings
from app.schemas.user_settings import UserSettingsResponse, UserSettingsUpdate


class UserSettingsService:
    """Get and patch per-user settings."""

    async def _get_row(self, db: AsyncSession, user_id: UUID):
        result = await db.execute(select(UserSettings).where(UserSettings.user_id == user_id))
        return result.scalar_one_or_none()

    async def get_settings(self, db: AsyncSession, user_id: UUID) -> UserSettingsResponse:
        """Stored settings, or empty defaults when the user never saved any."""
        row = await self._get_row(db, user_id)
        if row is None:
            return UserSettingsResponse(user_id=user_id)
        return UserSettingsResponse.model_validate(row)

    async def update_settings(self, db: AsyncSession, user_id: UUID, data: UserSettingsUpdate) -> UserSettingsResponse:
        """Create or patch the settings row."""
        row = await self._get_row(db, user_id)
        if row is None:
            row = UserSettings(user_id=user_id, execution_module_settings={}, notification_settings={})
            db.add(row)

        for field, value in data.model_dump(exclude_unset=True).items():
            if field != "telegram_chat_id" and value is None:
                value = {}
            setattr(row, field, value)
        row.updated_at = datetime.utcnow()

        await commit_or_raise(db)
        logger.info(f"Updated settings for user {user_id}")
        return UserSettingsResponse.model_validate(row)

    async def update_locale(self, db: AsyncSession, user: User, locale: str) -> User:
        user.locale = locale
        user.updated_at = datetime.utcnow()
        await commit_or_raise(db)
        logger.info(f"User {user.id} locale set to {locale}")
        return user


user_settings_service = UserSettingsService()
