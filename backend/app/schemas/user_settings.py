"""
User settings and locale schemas.
"""

from datetime import datetime
from typing import Optional, Dict, Any
from uuid import UUID
from pydantic import BaseModel, Field


class UserSettingsResponse(BaseModel):
    user_id: UUID
    telegram_chat_id: Optional[str] = None
    execution_module_settings: Dict[str, Any] = Field(default_factory=dict)
    notification_settings: Dict[str, Any] = Field(default_factory=dict)
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserSettingsUpdate(BaseModel):
    telegram_chat_id: Optional[str] = Field(None, max_length=64)
    execution_module_settings: Optional[Dict[str, Any]] = None
    notification_settings: Optional[Dict[str, Any]] = None


class LocaleUpdate(BaseModel):
    locale: str = Field(..., pattern=r"^[a-z]{2,3}(-[A-Z]{2})?$")
