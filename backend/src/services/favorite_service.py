"""Service layer for favoriting bookmarks."""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models.bookmark import Bookmark
from models.favorite import Favorite
from services.bookmark_service import is_visible
from services.exceptions import (
    AuthRequiredError,
    NotFoundError,
    StoreError,
    translate_store_errors,
)

logger = logging.getLogger(__name__)


async def _find_favorite(
    db: AsyncSession,
    user_id: int,
    bookmark_id: int,
) -> Favorite | None:
    """Look up the favorite row for an exact (user, bookmark) pair."""
    result = await db.execute(
        select(Favorite).where(
            Favorite.user_id == user_id,
            Favorite.bookmark_id == bookmark_id,
        ),
    )
    return result.scalar_one_or_none()


async def _get_visible_bookmark(
    db: AsyncSession,
    user_id: int,
    bookmark_id: int,
) -> Bookmark:
    result = await db.execute(select(Bookmark).where(Bookmark.id == bookmark_id))
    bookmark = result.scalar_one_or_none()
    if bookmark is None or not is_visible(bookmark, user_id):
        raise NotFoundError("Bookmark", bookmark_id)
    return bookmark


async def _remove(db: AsyncSession, favorite: Favorite) -> None:
    await db.delete(favorite)
    await db.flush()


async def toggle_favorite(
    db: AsyncSession,
    user_id: int | None,
    bookmark_id: int,
) -> bool:
    """
    Flip the favorite state of a bookmark for a user.

    Deletes the (user, bookmark) favorite row if it exists, inserts it otherwise.
    Two calls in a row return to the starting state.

    If the insert hits the unique constraint, another toggle for the same pair
    inserted in the meantime. The transaction is rolled back and the lookup +
    delete path is taken instead, so the pair of toggles nets out.

    Args:
        db: Database session.
        user_id: Signed-in user, None when nobody is signed in.
        bookmark_id: Bookmark to (un)favorite.

    Returns:
        True if the bookmark is now favorited, False if it no longer is.

    Raises:
        AuthRequiredError: If no user is signed in (checked before any query).
        NotFoundError: If the bookmark doesn't exist or is someone else's private one.
        StoreError: If the database fails, or the race cannot be reconciled.

    Note:
        Does not commit. Caller (session generator) handles commit at request end.
        On a lost race the whole session transaction is rolled back, so call this
        before any other writes in the same request.
    """
    if user_id is None:
        raise AuthRequiredError()

    with translate_store_errors("toggle favorite"):
        await _get_visible_bookmark(db, user_id, bookmark_id)

        existing = await _find_favorite(db, user_id, bookmark_id)
        if existing is not None:
            await _remove(db, existing)
            logger.info("User %s unfavorited bookmark %s", user_id, bookmark_id)
            return False

        db.add(Favorite(user_id=user_id, bookmark_id=bookmark_id))
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            logger.warning(
                "Favorite for user %s / bookmark %s was inserted concurrently; "
                "removing it instead",
                user_id,
                bookmark_id,
            )
            existing = await _find_favorite(db, user_id, bookmark_id)
            if existing is None:
                raise StoreError(
                    "Failed to toggle favorite",
                    cause="favorite changed concurrently, please retry",
                )
            await _remove(db, existing)
            return False

    logger.info("User %s favorited bookmark %s", user_id, bookmark_id)
    return True

