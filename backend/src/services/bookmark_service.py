"""
Service layer for bookmark reads and writes.

Listing functions return BookmarkRecord values: the bookmark row plus the owner's
username and an explicit "favorited by the viewer" flag, both resolved by the
query itself. Nothing is cached between calls; every listing hits the store.
"""
import logging
from datetime import UTC, datetime

from sqlalchemy import ColumnElement, exists, literal, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from core.single_flight import create_bookmark_guard
from models.bookmark import Bookmark
from models.favorite import Favorite
from models.profile import Profile
from schemas.bookmark import BookmarkCreate, BookmarkUpdate
from services.exceptions import AuthRequiredError, translate_store_errors
from services.view_model import BookmarkRecord

logger = logging.getLogger(__name__)


def _favorited_by(viewer_id: int | None) -> ColumnElement[bool]:
    """Correlated EXISTS telling whether the viewer favorited the outer bookmark."""
    if viewer_id is None:
        return literal(False)
    return exists().where(
        Favorite.bookmark_id == Bookmark.id,
        Favorite.user_id == viewer_id,
    )


def _visible_to(viewer_id: int | None) -> ColumnElement[bool]:
    """Public bookmarks, plus the viewer's own private ones."""
    if viewer_id is None:
        return Bookmark.is_public.is_(True)
    return or_(Bookmark.is_public.is_(True), Bookmark.user_id == viewer_id)


def is_visible(bookmark: Bookmark, viewer_id: int | None) -> bool:
    """Python-side twin of _visible_to for rows that are already loaded."""
    return bool(bookmark.is_public) or (
        viewer_id is not None and bookmark.user_id == viewer_id
    )


def _record_query(viewer_id: int | None) -> Select:
    """Bookmarks joined with owner username and the viewer's favorite flag."""
    return (
        select(
            Bookmark,
            Profile.username,
            _favorited_by(viewer_id).label("is_favorited"),
        )
        .outerjoin(Profile, Profile.user_id == Bookmark.user_id)
    )


def _newest_first(query: Select) -> Select:
    # id breaks ties between rows created within the same timestamp tick
    return query.order_by(Bookmark.created_at.desc(), Bookmark.id.desc())


async def _fetch_records(
    db: AsyncSession,
    query: Select,
    operation: str,
) -> list[BookmarkRecord]:
    with translate_store_errors(operation):
        result = await db.execute(query)
        rows = result.all()
    return [
        BookmarkRecord(
            bookmark=bookmark,
            owner_username=username,
            is_favorited=bool(is_favorited),
        )
        for bookmark, username, is_favorited in rows
    ]


async def list_public(
    db: AsyncSession,
    viewer_id: int | None = None,
) -> list[BookmarkRecord]:
    """
    Fetch every public bookmark, newest first.

    Args:
        db: Database session.
        viewer_id: Current user, used for the favorite flag. None for anonymous viewers.

    Returns:
        Records with owner username and is_favorited resolved for the viewer.
    """
    query = _newest_first(
        _record_query(viewer_id).where(Bookmark.is_public.is_(True)),
    )
    return await _fetch_records(db, query, "list public bookmarks")


async def list_by_owner(
    db: AsyncSession,
    user_id: int,
    viewer_id: int | None = None,
) -> list[BookmarkRecord]:
    """
    Fetch all bookmarks of one owner, private ones included, newest first.

    Args:
        db: Database session.
        user_id: Owner whose bookmarks to list.
        viewer_id: Current user, used for the favorite flag.
    """
    query = _newest_first(
        _record_query(viewer_id).where(Bookmark.user_id == user_id),
    )
    return await _fetch_records(db, query, "list bookmarks")


async def list_favorites(
    db: AsyncSession,
    user_id: int,
) -> list[BookmarkRecord]:
    """
    Fetch the bookmarks a user favorited, most recently favorited first.

    Favorites whose bookmark no longer exists, or is no longer visible to the user
    (made private by its owner), are dropped rather than reported as errors.
    """
    query = (
        select(Favorite, Bookmark, Profile.username)
        .outerjoin(Bookmark, Bookmark.id == Favorite.bookmark_id)
        .outerjoin(Profile, Profile.user_id == Bookmark.user_id)
        .where(Favorite.user_id == user_id)
        .order_by(Favorite.created_at.desc(), Favorite.id.desc())
    )
    with translate_store_errors("list favorites"):
        result = await db.execute(query)
        rows = result.all()

    records = []
    for favorite, bookmark, username in rows:
        if bookmark is None or not is_visible(bookmark, user_id):
            logger.debug(
                "Dropping favorite %s: bookmark %s is gone or not visible",
                favorite.id,
                favorite.bookmark_id,
            )
            continue
        records.append(
            BookmarkRecord(bookmark=bookmark, owner_username=username, is_favorited=True),
        )
    return records


async def get_bookmark(
    db: AsyncSession,
    user_id: int,
    bookmark_id: int,
) -> Bookmark | None:
    """Get a bookmark by ID, scoped to its owner. Returns None if not found or wrong user."""
    with translate_store_errors("get bookmark"):
        result = await db.execute(
            select(Bookmark).where(
                Bookmark.id == bookmark_id,
                Bookmark.user_id == user_id,
            ),
        )
        return result.scalar_one_or_none()


async def get_bookmark_record(
    db: AsyncSession,
    bookmark_id: int,
    viewer_id: int | None = None,
) -> BookmarkRecord | None:
    """
    Get one bookmark the viewer may see (public, or their own), with joins resolved.

    Returns:
        The record, or None if the bookmark doesn't exist or is someone else's private one.
    """
    query = _record_query(viewer_id).where(
        Bookmark.id == bookmark_id,
        _visible_to(viewer_id),
    )
    records = await _fetch_records(db, query, "get bookmark")
    return records[0] if records else None


async def create_bookmark(
    db: AsyncSession,
    owner_id: int | None,
    data: BookmarkCreate,
) -> Bookmark:
    """
    Create a new bookmark for a user.

    Args:
        db: Database session.
        owner_id: Signed-in user creating the bookmark, None when nobody is signed in.
        data: Validated bookmark data (URL shape and non-empty title already checked).

    Returns:
        The created bookmark.

    Raises:
        AuthRequiredError: If no user is signed in.
        DuplicateSubmissionError: If a create for the same owner is still running.
        StoreError: If the database rejects the insert.

    Note:
        Commits before the owner's in-flight key is released, so a second
        submit for the same owner either is rejected or sees the committed row.
    """
    if owner_id is None:
        raise AuthRequiredError()

    with create_bookmark_guard.acquire(owner_id), translate_store_errors("create bookmark"):
        bookmark = Bookmark(
            user_id=owner_id,
            url=str(data.url),
            title=data.title,
            description=data.description,
            category=data.category.value if data.category else None,
            tags=list(data.tags),
            is_public=data.is_public,
        )
        db.add(bookmark)
        await db.flush()
        await db.refresh(bookmark)
        await db.commit()

    logger.info("User %s created bookmark %s", owner_id, bookmark.id)
    return bookmark


async def update_bookmark(
    db: AsyncSession,
    owner_id: int,
    bookmark_id: int,
    data: BookmarkUpdate,
) -> Bookmark | None:
    """
    Apply a partial update to one of the owner's bookmarks.

    Returns:
        The updated bookmark, or None if not found or owned by someone else.

    Note:
        Does not commit. Caller (session generator) handles commit at request end.
    """
    bookmark = await get_bookmark(db, owner_id, bookmark_id)
    if bookmark is None:
        return None

    # JSON mode turns HttpUrl into str and Category into its value
    update_data = data.model_dump(exclude_unset=True, mode="json")

    with translate_store_errors("update bookmark"):
        for field, value in update_data.items():
            setattr(bookmark, field, value)
        bookmark.updated_at = datetime.now(UTC)
        await db.flush()
        await db.refresh(bookmark)
    return bookmark


async def delete_bookmark(
    db: AsyncSession,
    owner_id: int,
    bookmark_id: int,
) -> bool:
    """
    Delete one of the owner's bookmarks.

    Favorites pointing at it go with it (ON DELETE CASCADE); any that linger are
    skipped by list_favorites.

    Returns:
        True if deleted, False if not found (including an already-deleted id).

    Note:
        Does not commit. Caller (session generator) handles commit at request end.
    """
    bookmark = await get_bookmark(db, owner_id, bookmark_id)
    if bookmark is None:
        return False

    with translate_store_errors("delete bookmark"):
        await db.delete(bookmark)
        await db.flush()
    logger.info("User %s deleted bookmark %s", owner_id, bookmark_id)
    return True
