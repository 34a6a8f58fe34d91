"""Pydantic schemas for sign-up, sign-in and session responses."""
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from core.config import get_settings
from schemas.profile import validate_username


def validate_password(password: str) -> str:
    """Check the password meets the configured minimum length."""
    settings = get_settings()
    if len(password) < settings.min_password_length:
        raise ValueError(
            f"Password must be at least {settings.min_password_length} characters",
        )
    return password


class SignUpRequest(BaseModel):
    """Schema for creating an account."""

    email: EmailStr
    password: str
    username: str = Field(..., max_length=50)

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        """Reject passwords that are too short."""
        return validate_password(v)

    @field_validator("username")
    @classmethod
    def check_username(cls, v: str) -> str:
        """Reject blank usernames."""
        return validate_username(v)


class SignInRequest(BaseModel):
    """Schema for signing in with email and password."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """Current user as returned to clients: identifier and email only."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str


class SessionResponse(BaseModel):
    """
    Response for sign-up and sign-in.

    IMPORTANT: `token` is the plaintext session token and is only returned here.
    Send it as `Authorization: Bearer <token>` on later requests.
    """

    user: UserResponse
    token: str
