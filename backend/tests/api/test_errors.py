"""Tests for mapping service errors to HTTP responses."""
import pytest
from httpx import AsyncClient

from api.main import status_code_for
from core.single_flight import create_bookmark_guard
from models.user import User
from services import bookmark_service
from services.exceptions import (
    AuthRequiredError,
    DuplicateSubmissionError,
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    NotFoundError,
    ServiceError,
    StoreError,
    UsernameTakenError,
)


@pytest.mark.parametrize(
    ("error", "status_code"),
    [
        (AuthRequiredError(), 401),
        (InvalidCredentialsError(), 401),
        (NotFoundError("Bookmark", 1), 404),
        (DuplicateSubmissionError("create-bookmark"), 409),
        (EmailAlreadyRegisteredError("a@example.com"), 409),
        (UsernameTakenError("alice"), 409),
        (StoreError("Failed to list", cause="connection reset"), 503),
        (ServiceError("something else"), 400),
    ],
)
def test__status_code_for(error: ServiceError, status_code: int) -> None:
    assert status_code_for(error) == status_code


async def test__store_error__is_503_with_cause(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def failing_list(*_args: object, **_kwargs: object) -> list:
        raise StoreError("Failed to list public bookmarks", cause="connection reset")

    monkeypatch.setattr(bookmark_service, "list_public", failing_list)

    response = await client.get("/bookmarks/public")

    assert response.status_code == 503
    assert response.json()["detail"] == "Failed to list public bookmarks: connection reset"


async def test__duplicate_submission__is_409(
    client: AsyncClient,
    auth_headers: dict[str, str],
    test_user: User,
) -> None:
    with create_bookmark_guard.acquire(test_user.id):
        response = await client.post(
            "/bookmarks/",
            json={"url": "https://example.com", "title": "Again"},
            headers=auth_headers,
        )

    assert response.status_code == 409
    assert "already in progress" in response.json()["detail"]
