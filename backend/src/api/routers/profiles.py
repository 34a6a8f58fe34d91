"""Profile endpoints."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from models.user import User
from schemas.profile import ProfileResponse, ProfileStatsResponse, ProfileUpdate
from services import profile_service

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ProfileResponse:
    """Get the current user's profile."""
    profile = await profile_service.get_profile(db, current_user.id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile_service.to_profile_response(profile)


@router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ProfileResponse:
    """Update the current user's username, bio, website or avatar URL."""
    profile = await profile_service.update_profile(db, current_user.id, data)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile_service.to_profile_response(profile)


@router.get("/me/stats", response_model=ProfileStatsResponse)
async def get_my_profile_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ProfileStatsResponse:
    """Count the current user's bookmarks and favorites."""
    return await profile_service.get_profile_stats(db, current_user.id)


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_profile(
    user_id: int,
    db: AsyncSession = Depends(get_async_session),
) -> ProfileResponse:
    """Get any user's public profile."""
    profile = await profile_service.get_profile(db, user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile_service.to_profile_response(profile)
