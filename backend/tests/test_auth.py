"""
Tests for the authentication service.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.services.auth_service import AuthService
from app.utils.exceptions import AuthenticationError, ForbiddenError, ValidationError
from tests.factories import create_test_user


@pytest.fixture
def auth() -> AuthService:
    return AuthService()


def test_password_hash_round_trip(auth: AuthService):
    hashed = auth.hash_password("testpassword123")

    assert hashed != "testpassword123"
    assert auth.verify_password("testpassword123", hashed)
    assert not auth.verify_password("wrongpassword", hashed)


def test_long_passwords_are_not_truncated(auth: AuthService):
    """Two passwords sharing their first 72 bytes must not verify against each other."""
    base = "x" * 72
    hashed = auth.hash_password(base + "first")

    assert auth.verify_password(base + "first", hashed)
    assert not auth.verify_password(base + "second", hashed)


def test_malformed_hash_does_not_verify(auth: AuthService):
    assert auth.verify_password("anything", "not-a-bcrypt-hash") is False


def test_token_carries_user_id(auth: AuthService, test_user):
    token = auth.create_access_token(test_user.id)

    assert auth.decode_access_token(token) == str(test_user.id)
    with pytest.raises(AuthenticationError):
        auth.decode_access_token(token + "tampered")


@pytest.mark.asyncio
async def test_duplicate_username_and_email(db_session: AsyncSession, auth: AuthService, test_user):
    with pytest.raises(ValidationError):
        await auth.create_user("testuser", "password123", db_session)
    with pytest.raises(ValidationError):
        await auth.create_user("someoneelse", "password123", db_session, email="test@example.com")


@pytest.mark.asyncio
async def test_authenticate_user(db_session: AsyncSession, auth: AuthService, test_user):
    assert (await auth.authenticate_user("testuser", "testpassword123", db_session)).id == test_user.id
    assert await auth.authenticate_user("testuser", "wrongpassword", db_session) is None
    assert await auth.authenticate_user("nobody", "testpassword123", db_session) is None


@pytest.mark.asyncio
async def test_get_current_user(db_session: AsyncSession, auth: AuthService):
    user = await create_test_user(db_session, username="disabled")
    token = auth.create_access_token(user.id)

    assert (await auth.get_current_user(token, db_session)).id == user.id

    with pytest.raises(AuthenticationError):
        await auth.get_current_user(None, db_session)

    user.is_active = False
    await db_session.commit()
    with pytest.raises(ForbiddenError):
        await auth.get_current_user(token, db_session)
    assert await auth.authenticate_user("disabled", "testpassword123", db_session) is None
