"""API routes for registration, sign-in and token rotation."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from recipehub.auth import TokenPair, get_current_user
from recipehub.database import get_db
from recipehub.models import User
from recipehub.schemas import (
    ApiResponse,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    UserPrivate,
)
from recipehub.services import users as service

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _session_payload(user: User, tokens: TokenPair) -> dict:
    return {
        "user": UserPrivate.model_validate(user),
        "accessToken": tokens.access_token,
        "refreshToken": tokens.refresh_token,
    }


@router.post("/register", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    """Register with email and password; the username is derived from the email."""
    user, tokens = await service.register(db, request.name, request.email, request.password)
    return ApiResponse(
        message="User registered successfully", data=_session_payload(user, tokens)
    )


@router.post("/login", response_model=ApiResponse)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    user, tokens = await service.login(db, request.email, request.password)
    return ApiResponse(message="Login successful", data=_session_payload(user, tokens))


@router.post("/refresh", response_model=ApiResponse)
async def refresh(
    request: RefreshRequest,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    """Exchange a refresh token for a new token pair; the old one stops working."""
    tokens = await service.refresh(db, request.refresh_token)
    return ApiResponse(
        data={"accessToken": tokens.access_token, "refreshToken": tokens.refresh_token}
    )


@router.post("/logout", response_model=ApiResponse)
async def logout(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    await service.logout(db, user)
    return ApiResponse(message="Logged out successfully")


@router.get("/me", response_model=ApiResponse)
async def me(user: User = Depends(get_current_user)) -> ApiResponse:
    return ApiResponse(data={"user": UserPrivate.model_validate(user)})
