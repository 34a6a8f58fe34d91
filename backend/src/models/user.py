"""User model for storing credentials of registered users."""
from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from models.api_token import ApiToken
    from models.bookmark import Bookmark
    from models.profile import Profile


class User(Base, TimestampMixin):
    """User model - auth identity that bookmarks, favorites and the profile hang off."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        comment="Stored lowercased; login identifier",
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        comment="Argon2id hash - plaintext passwords are never stored",
    )

    bookmarks: Mapped[list["Bookmark"]] = relationship(
        back_populates="user",
        passive_deletes=True,
    )
    profile: Mapped["Profile | None"] = relationship(
        back_populates="user",
        passive_deletes=True,
    )
    api_tokens: Mapped[list["ApiToken"]] = relationship(
        back_populates="user",
        passive_deletes=True,
    )
