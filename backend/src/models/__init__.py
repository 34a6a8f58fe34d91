"""SQLAlchemy models."""
from models.api_token import ApiToken
from models.base import Base, CreatedAtMixin, TimestampMixin
from models.bookmark import Bookmark, Category
from models.favorite import Favorite
from models.profile import Profile
from models.user import User

__all__ = [
    "ApiToken",
    "Base",
    "Bookmark",
    "Category",
    "CreatedAtMixin",
    "Favorite",
    "Profile",
    "TimestampMixin",
    "User",
]
