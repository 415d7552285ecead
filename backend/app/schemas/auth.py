"""
Authentication-related Pydantic schemas.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, EmailStr, Field


class UserLogin(BaseModel):
    """Schema for user login."""
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6, max_length=100)


class UserRegister(BaseModel):
    """Schema for user registration."""
    username: str = Field(..., min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    password: str = Field(..., min_length=6, max_length=100)
    full_name: Optional[str] = Field(None, max_length=200)
    locale: Optional[str] = Field(None, pattern=r"^[a-z]{2,3}(-[A-Z]{2})?$")


class UserResponse(BaseModel):
    """Schema for user response."""
    id: UUID
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    locale: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    """Schema for token response."""
    access_token: str
    token_type: str
    session_id: str  # Pass as ?sessionId= when opening /ws
    user: UserResponse
