"""Tests for toggling favorites."""
import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.bookmark import Bookmark
from models.favorite import Favorite
from models.user import User
from services import favorite_service
from services.exceptions import AuthRequiredError, NotFoundError, StoreError


@pytest.fixture
async def public_bookmark(db_session: AsyncSession, other_user: User) -> Bookmark:
    """Public bookmark owned by bob."""
    bookmark = Bookmark(
        user_id=other_user.id,
        url="https://example.com/",
        title="Bob's public link",
        is_public=True,
    )
    db_session.add(bookmark)
    await db_session.flush()
    await db_session.refresh(bookmark)
    return bookmark


async def count_favorites(db_session: AsyncSession, user_id: int, bookmark_id: int) -> int:
    result = await db_session.execute(
        select(func.count()).select_from(Favorite).where(
            Favorite.user_id == user_id,
            Favorite.bookmark_id == bookmark_id,
        ),
    )
    return result.scalar_one()


async def test__toggle_favorite__adds_then_removes_then_adds(
    db_session: AsyncSession, test_user: User, public_bookmark: Bookmark,
) -> None:
    """Toggling is a 2-cycle: True, False, then True again."""
    results = []
    for expected_count in (1, 0, 1):
        results.append(
            await favorite_service.toggle_favorite(db_session, test_user.id, public_bookmark.id),
        )
        assert await count_favorites(db_session, test_user.id, public_bookmark.id) == expected_count

    assert results == [True, False, True]


async def test__toggle_favorite__starting_from_favorited(
    db_session: AsyncSession, test_user: User, public_bookmark: Bookmark,
) -> None:
    db_session.add(Favorite(user_id=test_user.id, bookmark_id=public_bookmark.id))
    await db_session.flush()

    results = [
        await favorite_service.toggle_favorite(db_session, test_user.id, public_bookmark.id)
        for _ in range(3)
    ]

    assert results == [False, True, False]
    assert await count_favorites(db_session, test_user.id, public_bookmark.id) == 0


async def test__toggle_favorite__is_per_user(
    db_session: AsyncSession,
    test_user: User,
    other_user: User,
    public_bookmark: Bookmark,
) -> None:
    await favorite_service.toggle_favorite(db_session, test_user.id, public_bookmark.id)

    assert await count_favorites(db_session, other_user.id, public_bookmark.id) == 0
    assert await favorite_service.toggle_favorite(
        db_session, other_user.id, public_bookmark.id,
    ) is True


async def test__toggle_favorite__requires_user(
    db_session: AsyncSession, public_bookmark: Bookmark,
) -> None:
    with pytest.raises(AuthRequiredError):
        await favorite_service.toggle_favorite(db_session, None, public_bookmark.id)

    result = await db_session.execute(select(func.count()).select_from(Favorite))
    assert result.scalar_one() == 0


async def test__toggle_favorite__requires_user_before_looking_up_bookmark(
    db_session: AsyncSession,
) -> None:
    """Anonymous callers get AuthRequiredError even for bookmarks that don't exist."""
    with pytest.raises(AuthRequiredError):
        await favorite_service.toggle_favorite(db_session, None, 999_999)


async def test__toggle_favorite__missing_bookmark(
    db_session: AsyncSession, test_user: User,
) -> None:
    with pytest.raises(NotFoundError):
        await favorite_service.toggle_favorite(db_session, test_user.id, 999_999)


async def test__toggle_favorite__other_users_private_bookmark(
    db_session: AsyncSession, test_user: User, other_user: User,
) -> None:
    private = Bookmark(
        user_id=other_user.id, url="https://example.com/", title="Private", is_public=False,
    )
    db_session.add(private)
    await db_session.flush()

    with pytest.raises(NotFoundError):
        await favorite_service.toggle_favorite(db_session, test_user.id, private.id)


async def test__toggle_favorite__own_private_bookmark(
    db_session: AsyncSession, test_user: User,
) -> None:
    private = Bookmark(
        user_id=test_user.id, url="https://example.com/", title="Mine", is_public=False,
    )
    db_session.add(private)
    await db_session.flush()

    assert await favorite_service.toggle_favorite(db_session, test_user.id, private.id)


async def test__toggle_favorite__lost_insert_race_removes_favorite(
    db_session: AsyncSession,
    test_user: User,
    public_bookmark: Bookmark,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """
    A concurrent toggle inserted the row between our lookup and our insert.

    The unique constraint rejects our insert, and the toggle falls back to
    deleting the row, so the two toggles net out to "not favorited".
    """
    # Rollback expires every loaded object, so keep plain ids
    user_id, bookmark_id = test_user.id, public_bookmark.id
    db_session.add(Favorite(user_id=user_id, bookmark_id=bookmark_id))
    await db_session.commit()

    real_find = favorite_service._find_favorite
    calls = 0

    async def stale_then_real(*args: object) -> Favorite | None:
        nonlocal calls
        calls += 1
        if calls == 1:
            return None
        return await real_find(*args)

    monkeypatch.setattr(favorite_service, "_find_favorite", stale_then_real)

    favorited = await favorite_service.toggle_favorite(db_session, user_id, bookmark_id)

    assert favorited is False
    assert calls == 2
    assert await count_favorites(db_session, user_id, bookmark_id) == 0


async def test__toggle_favorite__unreconcilable_race_raises_store_error(
    db_session: AsyncSession,
    test_user: User,
    public_bookmark: Bookmark,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    db_session.add(Favorite(user_id=test_user.id, bookmark_id=public_bookmark.id))
    await db_session.commit()

    async def never_found(*_args: object) -> None:
        return None

    monkeypatch.setattr(favorite_service, "_find_favorite", never_found)

    with pytest.raises(StoreError):
        await favorite_service.toggle_favorite(db_session, test_user.id, public_bookmark.id)
