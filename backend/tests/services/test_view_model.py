"""Tests for building bookmark view models."""
from datetime import UTC, datetime

import pytest

from models.bookmark import Bookmark
from services.view_model import (
    INVALID_URL_HOST,
    UNKNOWN_USER,
    BookmarkRecord,
    build_view_model,
    build_view_models,
    display_host,
)


def make_bookmark(**overrides: object) -> Bookmark:
    now = datetime.now(UTC)
    values = {
        "id": 1,
        "user_id": 10,
        "url": "https://docs.python.org/3/library/",
        "title": "Python docs",
        "description": None,
        "category": "technology",
        "tags": ["python", "docs"],
        "is_public": True,
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return Bookmark(**values)


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://docs.python.org/3/", "docs.python.org"),
        ("http://Example.COM:8080/x", "example.com"),
        ("not a url", INVALID_URL_HOST),
        ("", INVALID_URL_HOST),
        (None, INVALID_URL_HOST),
        ("http://[::1", INVALID_URL_HOST),
        ("mailto:", INVALID_URL_HOST),
    ],
)
def test__display_host__never_raises(url: str | None, expected: str) -> None:
    assert display_host(url) == expected


def test__build_view_model__owner_sees_is_owner() -> None:
    view = build_view_model(BookmarkRecord(make_bookmark(), "alice", True), 10)

    assert view.is_owner is True
    assert view.is_favorited is True
    assert view.owner_username == "alice"
    assert view.display_host == "docs.python.org"
    assert view.tags_display == "python, docs"


def test__build_view_model__anonymous_viewer() -> None:
    view = build_view_model(BookmarkRecord(make_bookmark()), None)

    assert view.is_owner is False
    assert view.is_favorited is False
    assert view.owner_username == UNKNOWN_USER


def test__build_view_model__other_viewer_is_not_owner() -> None:
    view = build_view_model(BookmarkRecord(make_bookmark(), "alice"), 99)
    assert view.is_owner is False


def test__build_view_model__invalid_url_gets_placeholder() -> None:
    view = build_view_model(BookmarkRecord(make_bookmark(url="not a url")), None)
    assert view.display_host == INVALID_URL_HOST
    assert view.url == "not a url"


def test__build_view_model__null_tags_and_visibility() -> None:
    bookmark = make_bookmark(tags=None, is_public=None)
    view = build_view_model(BookmarkRecord(bookmark), None)

    assert view.tags == []
    assert view.tags_display == ""
    assert view.is_public is False


def test__build_view_model__does_not_modify_record() -> None:
    bookmark = make_bookmark(tags=["a", ""])
    record = BookmarkRecord(bookmark, "alice", False)

    view = build_view_model(record, 10)

    assert view.tags == ["a"]
    assert bookmark.tags == ["a", ""]
    assert record.owner_username == "alice"


def test__build_view_models__keeps_order() -> None:
    records = [BookmarkRecord(make_bookmark(id=i)) for i in (3, 1, 2)]
    assert [v.id for v in build_view_models(records, None)] == [3, 1, 2]
