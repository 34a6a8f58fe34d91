"""Pydantic schemas for bookmark endpoints."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, HttpUrl, field_validator

from core.config import get_settings
from models.bookmark import Category


def normalize_tags(tags: list[str] | str | None) -> list[str]:
    """
    Normalize tags: accept a list or a comma-separated string, trim each tag, drop empties.

    Order and case are preserved (e.g. "JavaScript, tutorial, " -> ["JavaScript", "tutorial"]).
    """
    if tags is None:
        return []
    if isinstance(tags, str):
        tags = tags.split(",")
    normalized = []
    for tag in tags:
        if tag is None:
            continue
        if not isinstance(tag, str):
            raise ValueError(f"Invalid tag: {tag!r}. Tags must be strings.")
        trimmed = tag.strip()
        if trimmed:
            normalized.append(trimmed)
    return normalized


def validate_title(title: str) -> str:
    """Trim a title and check it is non-empty and within the configured length."""
    settings = get_settings()
    title = title.strip()
    if not title:
        raise ValueError("Title cannot be empty")
    if len(title) > settings.max_title_length:
        raise ValueError(
            f"Title exceeds maximum length of {settings.max_title_length:,} characters "
            f"(got {len(title):,} characters).",
        )
    return title


def validate_description(description: str | None) -> str | None:
    """Trim a description (empty becomes None) and check its length."""
    if description is None:
        return None
    description = description.strip()
    if not description:
        return None
    settings = get_settings()
    if len(description) > settings.max_description_length:
        max_len = settings.max_description_length
        raise ValueError(
            f"Description exceeds maximum length of {max_len:,} characters "
            f"(got {len(description):,} characters).",
        )
    return description


def empty_category_to_none(category: str | None) -> str | None:
    """Forms send "" for "no category"; store that as NULL."""
    if isinstance(category, str) and not category.strip():
        return None
    return category


class BookmarkCreate(BaseModel):
    """Schema for creating a new bookmark."""

    # HttpUrl normalizes root domains with trailing slash (example.com -> example.com/)
    # but preserves paths as-is (example.com/page stays example.com/page)
    url: HttpUrl
    title: str
    description: str | None = None
    category: Category | None = None
    tags: list[str] = []
    is_public: bool = False

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        """Reject empty or overlong titles."""
        return validate_title(v)

    @field_validator("description")
    @classmethod
    def check_description(cls, v: str | None) -> str | None:
        """Normalize and validate description."""
        return validate_description(v)

    @field_validator("category", mode="before")
    @classmethod
    def blank_category(cls, v: str | None) -> str | None:
        """Treat a blank category as uncategorized."""
        return empty_category_to_none(v)

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tag_input(cls, v: list[str] | str | None) -> list[str]:
        """Normalize tags from a list or comma-separated string."""
        return normalize_tags(v)


class BookmarkUpdate(BaseModel):
    """
    Schema for a partial bookmark update.

    Only fields present in the request are applied. Required columns (url, title,
    is_public) may be omitted but not set to null.
    """

    url: HttpUrl | None = None
    title: str | None = None
    description: str | None = None
    category: Category | None = None
    tags: list[str] | None = None
    is_public: bool | None = None

    @field_validator("url", "is_public")
    @classmethod
    def reject_null(cls, v: object) -> object:
        """Required columns may be left out, but not cleared."""
        if v is None:
            raise ValueError("Field cannot be null")
        return v

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str | None) -> str:
        """Reject null, empty or overlong titles."""
        if v is None:
            raise ValueError("Title cannot be empty")
        return validate_title(v)

    @field_validator("description")
    @classmethod
    def check_description(cls, v: str | None) -> str | None:
        """Normalize and validate description."""
        return validate_description(v)

    @field_validator("category", mode="before")
    @classmethod
    def blank_category(cls, v: str | None) -> str | None:
        """Treat a blank category as uncategorized."""
        return empty_category_to_none(v)

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tag_input(cls, v: list[str] | str | None) -> list[str]:
        """Normalize tags; null clears them."""
        return normalize_tags(v)


class BookmarkView(BaseModel):
    """
    Render-ready bookmark for responses.

    Built fresh per response by the view-model builder; carries the viewer-specific
    flags (is_owner, is_favorited) and display helpers next to the stored fields.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    user_id: int
    url: str
    title: str
    description: str | None
    category: str | None
    tags: list[str]
    is_public: bool
    created_at: datetime
    updated_at: datetime
    is_owner: bool
    is_favorited: bool
    owner_username: str
    display_host: str
    tags_display: str


class FavoriteToggleResponse(BaseModel):
    """Result of toggling a favorite."""

    bookmark_id: int
    favorited: bool
