"""
Current-user settings endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import User
from app.schemas.auth import UserResponse
from app.schemas.user_settings import LocaleUpdate, UserSettingsResponse, UserSettingsUpdate
from app.services.auth_service import get_current_user
from app.services.user_settings_service import user_settings_service

router = APIRouter()


@router.get("/settings", response_model=UserSettingsResponse)
async def get_settings(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await user_settings_service.get_settings(db, current_user.id)


@router.patch("/settings", response_model=UserSettingsResponse)
async def update_settings(
    data: UserSettingsUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await user_settings_service.update_settings(db, current_user.id, data)


@router.patch("/locale", response_model=UserResponse)
async def update_locale(
    data: LocaleUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Set the language and region preference."""
    user = await user_settings_service.update_locale(db, current_user, data.locale)
    return UserResponse.model_validate(user)
