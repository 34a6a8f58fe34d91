"""Bookmark feed, CRUD and favorite endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user, get_optional_user
from models.bookmark import Category
from models.user import User
from schemas.bookmark import (
    BookmarkCreate,
    BookmarkUpdate,
    BookmarkView,
    FavoriteToggleResponse,
)
from services import bookmark_service, favorite_service
from services.bookmark_filter import ALL_CATEGORIES, FilterCriteria, filter_bookmarks
from services.view_model import build_view_model, build_view_models

router = APIRouter(prefix="/bookmarks", tags=["bookmarks"])

_CATEGORY_CHOICES = {ALL_CATEGORIES, *(c.value for c in Category)}


def _user_id(user: User | None) -> int | None:
    return user.id if user is not None else None


async def _view(
    db: AsyncSession,
    bookmark_id: int,
    viewer_id: int | None,
) -> BookmarkView:
    record = await bookmark_service.get_bookmark_record(db, bookmark_id, viewer_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Bookmark not found")
    return build_view_model(record, viewer_id)


@router.get("/public", response_model=list[BookmarkView])
async def list_public_bookmarks(
    category: str = Query(default=ALL_CATEGORIES, description="'all' or a category"),
    q: str = Query(default="", description="Search title, description and tags"),
    current_user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_session),
) -> list[BookmarkView]:
    """
    Public feed, newest first.

    - **category**: 'all' (default) or one of the bookmark categories
    - **q**: case-insensitive substring match on title, description or any tag
    """
    if category not in _CATEGORY_CHOICES:
        raise HTTPException(
            status_code=422,
            detail=f"Unknown category '{category}'. Use one of: {sorted(_CATEGORY_CHOICES)}",
        )
    viewer_id = _user_id(current_user)
    records = await bookmark_service.list_public(db, viewer_id)
    views = build_view_models(records, viewer_id)
    return filter_bookmarks(views, FilterCriteria(category=category, term=q))


@router.get("/mine", response_model=list[BookmarkView])
async def list_my_bookmarks(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> list[BookmarkView]:
    """All of the current user's bookmarks, private ones included."""
    records = await bookmark_service.list_by_owner(db, current_user.id, current_user.id)
    return build_view_models(records, current_user.id)


@router.get("/favorites", response_model=list[BookmarkView])
async def list_my_favorites(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> list[BookmarkView]:
    """Bookmarks the current user favorited, most recently favorited first."""
    records = await bookmark_service.list_favorites(db, current_user.id)
    return build_view_models(records, current_user.id)


@router.post("/", response_model=BookmarkView, status_code=201)
async def create_bookmark(
    data: BookmarkCreate,
    current_user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_session),
) -> BookmarkView:
    """Create a new bookmark. Requires a signed-in user."""
    owner_id = _user_id(current_user)
    bookmark = await bookmark_service.create_bookmark(db, owner_id, data)
    return await _view(db, bookmark.id, owner_id)


@router.get("/{bookmark_id}", response_model=BookmarkView)
async def get_bookmark(
    bookmark_id: int,
    current_user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_session),
) -> BookmarkView:
    """Get a single bookmark: any public one, or one of your own private ones."""
    return await _view(db, bookmark_id, _user_id(current_user))


@router.patch("/{bookmark_id}", response_model=BookmarkView)
async def update_bookmark(
    bookmark_id: int,
    data: BookmarkUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> BookmarkView:
    """Update one of your bookmarks."""
    bookmark = await bookmark_service.update_bookmark(
        db, current_user.id, bookmark_id, data,
    )
    if bookmark is None:
        raise HTTPException(status_code=404, detail="Bookmark not found")
    return await _view(db, bookmark.id, current_user.id)


@router.delete("/{bookmark_id}", status_code=204)
async def delete_bookmark(
    bookmark_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """Delete one of your bookmarks."""
    deleted = await bookmark_service.delete_bookmark(db, current_user.id, bookmark_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Bookmark not found")


@router.post("/{bookmark_id}/favorite", response_model=FavoriteToggleResponse)
async def toggle_favorite(
    bookmark_id: int,
    current_user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_session),
) -> FavoriteToggleResponse:
    """Favorite the bookmark if it isn't yet, unfavorite it if it is."""
    favorited = await favorite_service.toggle_favorite(
        db, _user_id(current_user), bookmark_id,
    )
    return FavoriteToggleResponse(bookmark_id=bookmark_id, favorited=favorited)
