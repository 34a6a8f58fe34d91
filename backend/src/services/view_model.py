"""Build render-ready bookmark views from fetched records."""
from dataclasses import dataclass
from urllib.parse import urlsplit

from models.bookmark import Bookmark
from schemas.bookmark import BookmarkView

INVALID_URL_HOST = "invalid URL"
UNKNOWN_USER = "unknown user"


@dataclass(frozen=True)
class BookmarkRecord:
    """
    A bookmark row as fetched, with the joins resolved at fetch time.

    `is_favorited` is the explicit "favorited by the viewer" flag computed by the
    query; `owner_username` is None when the owner has no profile username.
    """

    bookmark: Bookmark
    owner_username: str | None = None
    is_favorited: bool = False


def display_host(url: str | None) -> str:
    """
    Hostname to show under a bookmark title.

    Never raises: anything that doesn't parse as an absolute URL with a host
    (including None and strings like "not a url") gives INVALID_URL_HOST.
    """
    if not url:
        return INVALID_URL_HOST
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError:
        return INVALID_URL_HOST
    if not parts.scheme or not hostname:
        return INVALID_URL_HOST
    return hostname


def build_view_model(record: BookmarkRecord, current_user_id: int | None) -> BookmarkView:
    """
    Annotate a fetched record for the given viewer.

    Args:
        record: Bookmark plus the joins resolved by the fetch.
        current_user_id: Viewer's user id, or None for anonymous viewers.

    Returns:
        A new BookmarkView; the record is not modified and the store is not queried.
    """
    bookmark = record.bookmark
    tags = [tag for tag in (bookmark.tags or []) if tag]
    return BookmarkView(
        id=bookmark.id,
        user_id=bookmark.user_id,
        url=bookmark.url,
        title=bookmark.title,
        description=bookmark.description,
        category=bookmark.category,
        tags=tags,
        is_public=bool(bookmark.is_public),
        created_at=bookmark.created_at,
        updated_at=bookmark.updated_at,
        is_owner=current_user_id is not None and bookmark.user_id == current_user_id,
        is_favorited=record.is_favorited,
        owner_username=record.owner_username or UNKNOWN_USER,
        display_host=display_host(bookmark.url),
        tags_display=", ".join(tags),
    )


def build_view_models(
    records: list[BookmarkRecord],
    current_user_id: int | None,
) -> list[BookmarkView]:
    """Annotate every record, keeping order."""
    return [build_view_model(record, current_user_id) for record in records]
