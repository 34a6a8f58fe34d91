"""Shared fixtures for API tests."""
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from models.user import User
from services.token_service import create_token


async def bearer_headers(db_session: AsyncSession, user: User) -> dict[str, str]:
    """Issue a session token for a user and return the Authorization header."""
    _, token = await create_token(db_session, user.id, "test")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def auth_headers(db_session: AsyncSession, test_user: User) -> dict[str, str]:
    """Authorization header for alice."""
    return await bearer_headers(db_session, test_user)


@pytest.fixture
async def other_auth_headers(db_session: AsyncSession, other_user: User) -> dict[str, str]:
    """Authorization header for bob."""
    return await bearer_headers(db_session, other_user)
