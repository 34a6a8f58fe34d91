"""
Service layer for accounts and sessions.

Accounts are email + password (Argon2id). A successful sign-up or sign-in issues
an opaque session token via token_service; sign-out revokes it. Interested parts
of the app can subscribe to auth changes with on_auth_change().
"""
import logging
from collections.abc import Callable
from enum import StrEnum

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from core.single_flight import sign_in_guard, sign_up_guard
from models.user import User
from services import profile_service, token_service
from services.exceptions import (
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    UsernameTakenError,
    translate_store_errors,
)

logger = logging.getLogger(__name__)

_password_hasher = PasswordHasher()


class AuthEvent(StrEnum):
    """Auth state changes delivered to on_auth_change listeners."""

    SIGNED_UP = "signed_up"
    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"


AuthListener = Callable[[AuthEvent, User | None], None]

_listeners: list[AuthListener] = []


def hash_password(password: str) -> str:
    """Hash a password with Argon2id."""
    return _password_hasher.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    """Verify a password against its hash. Malformed hashes never verify."""
    try:
        return _password_hasher.verify(hashed_password, password)
    except (VerificationError, InvalidHash):
        return False


def on_auth_change(callback: AuthListener) -> Callable[[], None]:
    """
    Subscribe to sign-up, sign-in and sign-out events.

    Args:
        callback: Called with (event, user) after the operation succeeded.
            `user` is None for a sign-out whose token was already unknown.

    Returns:
        A function that removes the subscription. Calling it twice is harmless.
    """
    _listeners.append(callback)

    def unsubscribe() -> None:
        if callback in _listeners:
            _listeners.remove(callback)

    return unsubscribe


def _emit(event: AuthEvent, user: User | None) -> None:
    for listener in list(_listeners):
        try:
            listener(event, user)
        except Exception:
            # A listener must never undo a completed sign-in/out
            logger.exception("Auth listener %r failed on %s", listener, event)


def normalize_email(email: str) -> str:
    """Emails are matched case-insensitively and stored lowercased."""
    return email.strip().lower()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Look up a user by (normalized) email."""
    with translate_store_errors("look up user"):
        result = await db.execute(select(User).where(User.email == normalize_email(email)))
        return result.scalar_one_or_none()


async def _issue_session(db: AsyncSession, user: User, source: str) -> str:
    settings = get_settings()
    with translate_store_errors("create session"):
        _, plaintext = await token_service.create_token(
            db,
            user.id,
            name=source,
            expires_in_days=settings.session_token_ttl_days,
        )
    return plaintext


async def _commit(db: AsyncSession, operation: str) -> None:
    with translate_store_errors(operation):
        await db.commit()


async def sign_up(
    db: AsyncSession,
    email: str,
    password: str,
    username: str,
) -> tuple[User, str]:
    """
    Create an account with its profile and sign it in.

    Args:
        db: Database session.
        email: Login email; stored lowercased.
        password: Plaintext password, already length-checked by the request schema.
        username: Public username for the new profile.

    Returns:
        Tuple of (user, plaintext session token).

    Raises:
        DuplicateSubmissionError: If a sign-up for the same email is still running.
        EmailAlreadyRegisteredError: If the email already has an account.
        UsernameTakenError: If the username belongs to another profile.
        StoreError: If the database fails.

    Note:
        Commits before the email's in-flight key is released.
    """
    email = normalize_email(email)
    with sign_up_guard.acquire(email):
        if await get_user_by_email(db, email) is not None:
            raise EmailAlreadyRegisteredError(email)
        if await profile_service.username_in_use(db, username):
            raise UsernameTakenError(username)

        user = User(email=email, password_hash=hash_password(password))
        with translate_store_errors("sign up"):
            db.add(user)
            await db.flush()
            await db.refresh(user)
        await profile_service.create_profile(db, user.id, username)
        token = await _issue_session(db, user, "sign-up")
        await _commit(db, "sign up")

    logger.info("Signed up user %s", user.id)
    _emit(AuthEvent.SIGNED_UP, user)
    return user, token


async def sign_in(db: AsyncSession, email: str, password: str) -> tuple[User, str]:
    """
    Check credentials and open a new session.

    Unknown email and wrong password raise the same error, so callers can't
    probe which emails are registered.

    Returns:
        Tuple of (user, plaintext session token).

    Raises:
        DuplicateSubmissionError: If a sign-in for the same email is still running.
        InvalidCredentialsError: If the email/password pair doesn't match.
    """
    email = normalize_email(email)
    with sign_in_guard.acquire(email):
        user = await get_user_by_email(db, email)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed sign-in attempt for %s", email)
            raise InvalidCredentialsError()
        token = await _issue_session(db, user, "sign-in")
        await _commit(db, "sign in")

    logger.info("User %s signed in", user.id)
    _emit(AuthEvent.SIGNED_IN, user)
    return user, token


async def sign_out(db: AsyncSession, token: str, user: User | None = None) -> bool:
    """
    Revoke a session token.

    Signing out with a token that is already revoked or unknown is not an error.

    Args:
        db: Database session.
        token: Plaintext session token to revoke.
        user: The signed-in user, passed on to listeners.

    Returns:
        True if a session was revoked, False if there was none.
    """
    with translate_store_errors("sign out"):
        revoked = await token_service.revoke_token(db, token)
    if revoked:
        logger.info("User %s signed out", user.id if user is not None else "?")
    _emit(AuthEvent.SIGNED_OUT, user)
    return revoked
