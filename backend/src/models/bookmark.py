"""Bookmark model for storing shared bookmarks."""
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, ForeignKey, Index, String, Text, false
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from models.user import User


class Category(StrEnum):
    """Fixed set of bookmark categories."""

    TECHNOLOGY = "technology"
    DESIGN = "design"
    EDUCATION = "education"
    ENTERTAINMENT = "entertainment"
    BUSINESS = "business"
    NEWS = "news"
    OTHER = "other"


class Bookmark(Base, TimestampMixin):
    """Bookmark model - a URL with metadata, owned by one user, optionally public."""

    __tablename__ = "bookmarks"
    __table_args__ = (
        # Public feed: WHERE is_public ORDER BY created_at DESC
        Index("ix_bookmarks_public_created_at", "is_public", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    url: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)  # Length limit lives in settings
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(
        String(32),
        nullable=True,
        comment="One of Category, or NULL when uncategorized",
    )
    tags: Mapped[list[str]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=list,
    )
    is_public: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )

    user: Mapped["User"] = relationship(back_populates="bookmarks")
