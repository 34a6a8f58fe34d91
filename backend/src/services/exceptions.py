"""Shared exceptions for service layer operations."""
import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base class for errors raised by the service layer."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class AuthRequiredError(ServiceError):
    """Raised when an operation needs a signed-in user and there is none."""

    def __init__(self, message: str = "Please sign in first") -> None:
        super().__init__(message)


class DuplicateSubmissionError(ServiceError):
    """Raised when the same write is submitted again while the first is still running."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"A {operation} request is already in progress, please wait")


class NotFoundError(ServiceError):
    """Raised when a referenced row is absent (or not visible to the caller)."""

    def __init__(self, entity: str, entity_id: int | str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found")


class StoreError(ServiceError):
    """
    Raised when the database fails underneath an operation.

    The message of the underlying driver error is passed through in `cause`.
    """

    def __init__(self, message: str, cause: str | None = None) -> None:
        self.cause = cause
        super().__init__(message if cause is None else f"{message}: {cause}")


class EmailAlreadyRegisteredError(ServiceError):
    """Raised when signing up with an email that already has an account."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"An account with email '{email}' already exists")


class UsernameTakenError(ServiceError):
    """Raised when a username is already used by another profile."""

    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__(f"Username '{username}' is already taken")


class InvalidCredentialsError(ServiceError):
    """Raised when an email/password pair does not match an account."""

    def __init__(self) -> None:
        super().__init__("Invalid email or password")


@contextmanager
def translate_store_errors(operation: str) -> Iterator[None]:
    """
    Re-raise database driver failures inside the block as StoreError.

    Service-level errors raised inside the block pass through untouched.

    Args:
        operation: Human-readable name of the operation, used in the message and log.
    """
    try:
        yield
    except SQLAlchemyError as e:
        logger.exception("Store failure during %s", operation)
        driver_error = getattr(e, "orig", None) or e
        raise StoreError(f"Failed to {operation}", cause=str(driver_error)) from e
