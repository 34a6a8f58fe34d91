"""Sign-up, sign-in and sign-out endpoints."""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_bearer_token, get_current_user
from models.user import User
from schemas.auth import SessionResponse, SignInRequest, SignUpRequest, UserResponse
from services import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=SessionResponse, status_code=201)
async def sign_up(
    data: SignUpRequest,
    db: AsyncSession = Depends(get_async_session),
) -> SessionResponse:
    """
    Create an account and sign it in.

    IMPORTANT: The plaintext session token is only returned here and by /auth/login.
    """
    user, token = await auth_service.sign_up(db, data.email, data.password, data.username)
    return SessionResponse(user=UserResponse.model_validate(user), token=token)


@router.post("/login", response_model=SessionResponse)
async def sign_in(
    data: SignInRequest,
    db: AsyncSession = Depends(get_async_session),
) -> SessionResponse:
    """Sign in with email and password and get a new session token."""
    user, token = await auth_service.sign_in(db, data.email, data.password)
    return SessionResponse(user=UserResponse.model_validate(user), token=token)


@router.post("/logout", status_code=204)
async def sign_out(
    current_user: User = Depends(get_current_user),
    token: str | None = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """Revoke the session token used for this request."""
    if token is None:
        # DEV_MODE resolves a user without any token; there is no session to end
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No session token to revoke",
        )
    await auth_service.sign_out(db, token, current_user)
