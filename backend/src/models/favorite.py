"""Favorite model linking a user to a bookmark they favorited."""
from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, CreatedAtMixin


class Favorite(Base, CreatedAtMixin):
    """
    Favorite model - one row per (user, bookmark) pair.

    Uniqueness of the pair is enforced here by the database, not by callers;
    concurrent toggles rely on the constraint to detect a lost race.
    """

    __tablename__ = "favorites"
    __table_args__ = (
        UniqueConstraint("user_id", "bookmark_id", name="uq_favorite_user_bookmark"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    bookmark_id: Mapped[int] = mapped_column(
        ForeignKey("bookmarks.id", ondelete="CASCADE"),
        index=True,
    )
