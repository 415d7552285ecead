"""
Authentication-related API endpoints.
"""

import uuid
from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from app.core.database import get_db
from app.core.config import settings
from app.core.rate_limit import limiter, AUTH_LIMIT
from app.models.user import User
from app.services.auth_service import auth_service, get_current_user, ACCESS_TOKEN_COOKIE
from app.schemas.auth import (
    UserLogin,
    UserRegister,
    UserResponse,
    TokenResponse
)
from app.utils.exceptions import AuthenticationError

router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(AUTH_LIMIT)
async def register(
    request: Request,
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """Register a new user."""
    user = await auth_service.create_user(
        username=user_data.username,
        email=user_data.email,
        password=user_data.password,
        full_name=user_data.full_name,
        locale=user_data.locale,
        db=db
    )
    return UserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse)
@limiter.limit(AUTH_LIMIT)
async def login(
    request: Request,
    response: Response,
    user_data: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """Login user, return an access token and a session id for the WebSocket."""
    user = await auth_service.authenticate_user(
        username=user_data.username,
        password=user_data.password,
        db=db
    )

    if not user:
        raise AuthenticationError("Incorrect username or password")

    access_token = auth_service.create_access_token(user.id)
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        access_token,
        httponly=True,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    logger.info(f"User {user.username} logged in")

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        session_id=str(uuid.uuid4()),
        user=UserResponse.model_validate(user)
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Get current user information."""
    return UserResponse.model_validate(current_user)


@router.post("/logout")
async def logout(response: Response):
    """Logout user; clears the token cookie."""
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    return {"message": "Successfully logged out"}
