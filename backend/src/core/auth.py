"""Authentication dependencies for bearer session tokens."""
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings, get_settings
from db.session import get_async_session
from models.profile import Profile
from models.user import User
from services import token_service

logger = logging.getLogger(__name__)


# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)

DEV_USER_EMAIL = "dev@localhost"
# Not a valid Argon2 hash, so nobody can sign in as the dev user with a password
DEV_USER_PASSWORD_HASH = "!dev-mode-no-password"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_or_create_dev_user(db: AsyncSession) -> User:
    """
    Get or create the local development user for DEV_MODE.

    Handles concurrent first requests: if the INSERT loses a race on the unique
    email, the transaction is rolled back and the existing user is fetched.

    Important: Called during authentication before any other database work in
    the request, so the rollback has nothing else to undo.
    """
    query = select(User).where(User.email == DEV_USER_EMAIL)
    result = await db.execute(query)
    user = result.scalar_one_or_none()
    if user is not None:
        return user

    user = User(email=DEV_USER_EMAIL, password_hash=DEV_USER_PASSWORD_HASH)
    db.add(user)
    try:
        await db.flush()
        db.add(Profile(user_id=user.id))
        await db.flush()
    except IntegrityError:
        await db.rollback()
        result = await db.execute(query)
        user = result.scalar_one()
    return user


async def validate_session_token(db: AsyncSession, token: str) -> User:
    """
    Resolve a session token to its user.

    Raises:
        HTTPException: 401 if the token is unknown, expired, revoked, or its user is gone.
    """
    api_token = await token_service.validate_token(db, token)
    if api_token is None:
        raise _unauthorized("Invalid or expired token")

    result = await db.execute(select(User).where(User.id == api_token.user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise _unauthorized("User not found")
    return user


async def _authenticate_user(
    credentials: HTTPAuthorizationCredentials | None,
    db: AsyncSession,
    settings: Settings,
) -> User | None:
    """
    Internal: resolve the caller, or None when no credentials were sent.

    In DEV_MODE, bypasses auth and returns the development user.
    """
    if settings.dev_mode:
        return await get_or_create_dev_user(db)
    if credentials is None:
        return None
    return await validate_session_token(db, credentials.credentials)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> User:
    """Dependency that requires a valid session token and returns its user."""
    user = await _authenticate_user(credentials, db, settings)
    if user is None:
        raise _unauthorized("Not authenticated")
    return user


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> User | None:
    """
    Dependency for routes anonymous callers may use.

    Returns None without credentials. A token that is sent but invalid is still
    rejected with 401 rather than silently treated as anonymous.
    """
    return await _authenticate_user(credentials, db, settings)


def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str | None:
    """Dependency returning the raw bearer token, if any (used by sign-out)."""
    if credentials is None:
        return None
    return credentials.credentials
