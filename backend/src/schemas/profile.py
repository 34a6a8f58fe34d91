"""Pydantic schemas for profile endpoints."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

from core.config import get_settings

USERNAME_FALLBACK = "user"
BIO_PLACEHOLDER = "This user hasn't written a bio yet."


def validate_username(username: str) -> str:
    """Trim a username and check it is non-empty."""
    username = username.strip()
    if not username:
        raise ValueError("Username cannot be empty")
    return username


def blank_to_none(value: str | None) -> str | None:
    """Forms send "" to clear an optional field."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


class ProfileUpdate(BaseModel):
    """Schema for editing the current user's profile. Only provided fields are applied."""

    username: str | None = Field(default=None, max_length=50)
    bio: str | None = None
    website: HttpUrl | None = None
    avatar_url: HttpUrl | None = None

    @field_validator("username")
    @classmethod
    def check_username(cls, v: str | None) -> str:
        """A username may be changed but not cleared."""
        if v is None:
            raise ValueError("Username cannot be empty")
        return validate_username(v)

    @field_validator("bio")
    @classmethod
    def check_bio(cls, v: str | None) -> str | None:
        """Trim bio and check its length."""
        v = blank_to_none(v)
        if v is None:
            return None
        v = v.strip()
        settings = get_settings()
        if len(v) > settings.max_bio_length:
            raise ValueError(
                f"Bio exceeds maximum length of {settings.max_bio_length:,} characters "
                f"(got {len(v):,} characters).",
            )
        return v

    @field_validator("website", "avatar_url", mode="before")
    @classmethod
    def blank_url(cls, v: str | None) -> str | None:
        """Treat a blank URL as cleared."""
        return blank_to_none(v)


class ProfileResponse(BaseModel):
    """Schema for profile responses, with display fallbacks applied."""

    model_config = ConfigDict(from_attributes=True)

    user_id: int
    username: str | None
    bio: str | None
    website: str | None
    avatar_url: str | None
    updated_at: datetime
    display_name: str
    display_bio: str


class ProfileStatsResponse(BaseModel):
    """Counts shown on the profile page."""

    bookmarks_count: int
    favorites_count: int
