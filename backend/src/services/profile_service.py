"""Service layer for user profiles."""
import logging
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models.profile import Profile
from schemas.profile import (
    BIO_PLACEHOLDER,
    USERNAME_FALLBACK,
    ProfileResponse,
    ProfileStatsResponse,
    ProfileUpdate,
)
from services import bookmark_service
from services.exceptions import UsernameTakenError, translate_store_errors

logger = logging.getLogger(__name__)


async def get_profile(db: AsyncSession, user_id: int) -> Profile | None:
    """Get a user's profile. Returns None if the user has none (or doesn't exist)."""
    with translate_store_errors("get profile"):
        result = await db.execute(select(Profile).where(Profile.user_id == user_id))
        return result.scalar_one_or_none()


async def username_in_use(
    db: AsyncSession,
    username: str,
    exclude_user_id: int | None = None,
) -> bool:
    """Check whether another profile already has this username."""
    query = select(Profile.user_id).where(Profile.username == username)
    if exclude_user_id is not None:
        query = query.where(Profile.user_id != exclude_user_id)
    with translate_store_errors("check username"):
        result = await db.execute(query)
        return result.first() is not None


async def create_profile(db: AsyncSession, user_id: int, username: str) -> Profile:
    """
    Create the profile row for a new user.

    Raises:
        UsernameTakenError: If another profile claimed the username since it was
            checked. The transaction is rolled back, new user row included.

    Note:
        Does not commit. Caller handles commit.
    """
    profile = Profile(user_id=user_id, username=username)
    with translate_store_errors("create profile"):
        db.add(profile)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            logger.warning("Username %r was claimed concurrently", username)
            raise UsernameTakenError(username) from None
        await db.refresh(profile)
    return profile


async def update_profile(
    db: AsyncSession,
    user_id: int,
    data: ProfileUpdate,
) -> Profile | None:
    """
    Apply a partial update to the user's own profile.

    Args:
        db: Database session.
        user_id: Owner of the profile; nobody edits another user's profile.
        data: Fields to change. Unset fields are left alone.

    Returns:
        The updated profile, or None if the user has no profile.

    Raises:
        UsernameTakenError: If the new username belongs to another profile.
    """
    profile = await get_profile(db, user_id)
    if profile is None:
        return None

    update_data = data.model_dump(exclude_unset=True, mode="json")
    new_username = update_data.get("username")
    if new_username is not None and await username_in_use(db, new_username, user_id):
        raise UsernameTakenError(new_username)

    with translate_store_errors("update profile"):
        for field, value in update_data.items():
            setattr(profile, field, value)
        profile.updated_at = datetime.now(UTC)
        await db.flush()
        await db.refresh(profile)

    logger.info("User %s updated profile fields %s", user_id, sorted(update_data))
    return profile


async def get_profile_stats(db: AsyncSession, user_id: int) -> ProfileStatsResponse:
    """
    Count the user's bookmarks and the favorites that still resolve to a visible bookmark.

    Uses the same listings the profile page shows, so the numbers always agree
    with what the user sees.
    """
    bookmarks = await bookmark_service.list_by_owner(db, user_id, viewer_id=user_id)
    favorites = await bookmark_service.list_favorites(db, user_id)
    return ProfileStatsResponse(
        bookmarks_count=len(bookmarks),
        favorites_count=len(favorites),
    )


def to_profile_response(profile: Profile) -> ProfileResponse:
    """Build a profile response with display fallbacks for a missing username or bio."""
    return ProfileResponse(
        user_id=profile.user_id,
        username=profile.username,
        bio=profile.bio,
        website=profile.website,
        avatar_url=profile.avatar_url,
        updated_at=profile.updated_at,
        display_name=profile.username or USERNAME_FALLBACK,
        display_bio=profile.bio or BIO_PLACEHOLDER,
    )
