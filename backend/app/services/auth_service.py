"""
Authentication service for user management and JWT tokens.
"""

from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID
import hashlib
import bcrypt
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from jose import JWTError, jwt
from loguru import logger

from app.core.database import get_db, commit_or_raise
from app.core.config import settings
from app.models.user import User
from app.utils.exceptions import AuthenticationError, ForbiddenError, ValidationError

ACCESS_TOKEN_COOKIE = "access_token"

# auto_error=False so a missing header falls through to the cookie, then to a 401
bearer_scheme = HTTPBearer(auto_error=False)


class AuthService:
    """Service for authentication and authorization."""

    def _password_bytes(self, password: str) -> bytes:
        password_bytes = password.encode('utf-8')

        # Bcrypt has a 72-byte limit - handle long passwords
        if len(password_bytes) > 72:
            logger.debug(f"Password exceeds 72 bytes ({len(password_bytes)}), pre-hashing with SHA256")
            password_bytes = hashlib.sha256(password_bytes).hexdigest().encode('utf-8')
        return password_bytes

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt."""
        hashed = bcrypt.hashpw(self._password_bytes(password), bcrypt.gensalt())
        return hashed.decode('utf-8')

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash."""
        try:
            return bcrypt.checkpw(self._password_bytes(plain_password), hashed_password.encode('utf-8'))
        except ValueError:
            # Malformed stored hash
            return False

    def create_access_token(self, user_id: UUID) -> str:
        """Create a JWT access token."""
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        to_encode = {
            "sub": str(user_id),
            "exp": expire,
            "type": "access"
        }
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    def decode_access_token(self, token: str) -> str:
        """Return the user id carried by a token."""
        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError:
            raise AuthenticationError("Could not validate credentials")

        user_id = payload.get("sub")
        if user_id is None:
            raise AuthenticationError("Could not validate credentials")
        return user_id

    async def get_user_by_username(self, username: str, db: AsyncSession) -> Optional[User]:
        """Get user by username."""
        result = await db.execute(
            select(User).where(User.username == username)
        )
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str, db: AsyncSession) -> Optional[User]:
        """Get user by email."""
        result = await db.execute(
            select(User).where(User.email == email)
        )
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: str, db: AsyncSession) -> Optional[User]:
        """Get user by ID."""
        try:
            user_uuid = UUID(str(user_id))
        except ValueError:
            return None
        return await db.get(User, user_uuid)

    async def create_user(
        self,
        username: str,
        password: str,
        db: AsyncSession,
        email: Optional[str] = None,
        full_name: Optional[str] = None,
        locale: Optional[str] = None,
    ) -> User:
        """Create a new user."""
        if await self.get_user_by_username(username, db):
            raise ValidationError("Username already exists", field="username")

        if email and await self.get_user_by_email(email, db):
            raise ValidationError("Email already exists", field="email")

        user = User(
            username=username,
            email=email,
            hashed_password=self.hash_password(password),
            full_name=full_name,
            is_active=True,
            locale=locale or settings.DEFAULT_LOCALE,
        )

        db.add(user)
        await commit_or_raise(db)

        logger.info(f"Created new user: {username}")
        return user

    async def authenticate_user(
        self,
        username: str,
        password: str,
        db: AsyncSession
    ) -> Optional[User]:
        """Authenticate a user with username and password."""
        user = await self.get_user_by_username(username, db)

        if not user:
            return None

        if not user.is_active:
            return None

        if not self.verify_password(password, user.hashed_password):
            return None

        return user

    async def get_current_user(self, token: Optional[str], db: AsyncSession) -> User:
        """Resolve the user behind a token."""
        if not token:
            raise AuthenticationError("Not authenticated")

        user = await self.get_user_by_id(self.decode_access_token(token), db)
        if user is None:
            raise AuthenticationError("Could not validate credentials")

        if not user.is_active:
            raise ForbiddenError("User account is disabled")

        return user


# Global instance for dependency injection
auth_service = AuthService()


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Dependency for getting current user from the bearer header or cookie."""
    token = credentials.credentials if credentials else request.cookies.get(ACCESS_TOKEN_COOKIE)
    return await auth_service.get_current_user(token, db)
