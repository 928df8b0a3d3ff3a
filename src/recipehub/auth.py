"""
JWT authentication for FastAPI.

Issues HS256 access and refresh tokens, hashes passwords with bcrypt and
resolves the calling user from the ``Authorization: Bearer`` header.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from recipehub.config import get_settings
from recipehub.database import get_db
from recipehub.errors import UnauthorizedError
from recipehub.logging_config import get_logger, set_context
from recipehub.models import User

logger = get_logger(__name__)

# HTTP Bearer scheme for extracting tokens
security = HTTPBearer(auto_error=False)


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    salt = bcrypt.gensalt(rounds=get_settings().bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Check a plain password against a stored bcrypt hash."""
    if not hashed_password:
        return False
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def create_tokens(user: User) -> TokenPair:
    """
    Issue a fresh access/refresh token pair for ``user``.

    Every token carries a random ``jti`` so two pairs issued within the same
    second still differ, which refresh rotation relies on.
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)

    access_payload = {
        "sub": user.id,
        "email": user.email,
        "role": user.role,
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_access_expires_minutes),
    }
    refresh_payload = {
        "sub": user.id,
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + timedelta(days=settings.jwt_refresh_expires_days),
    }

    return TokenPair(
        access_token=jwt.encode(
            access_payload, settings.jwt_access_secret, algorithm=settings.jwt_algorithm
        ),
        refresh_token=jwt.encode(
            refresh_payload, settings.jwt_refresh_secret, algorithm=settings.jwt_algorithm
        ),
    )


def _decode(token: str, secret: str) -> dict:
    settings = get_settings()
    try:
        return jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token has expired")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid token")


def verify_access_token(token: str) -> dict:
    return _decode(token, get_settings().jwt_access_secret)


def verify_refresh_token(token: str) -> dict:
    return _decode(token, get_settings().jwt_refresh_secret)


async def _user_from_credentials(
    credentials: HTTPAuthorizationCredentials | None,
    db: AsyncSession,
) -> User:
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Not authorized, no token")

    payload = verify_access_token(credentials.credentials)
    user_id = payload.get("sub")
    if not user_id:
        raise UnauthorizedError("Invalid token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise UnauthorizedError("User no longer exists")

    set_context(user_id=user.id)
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Get the current authenticated user.

    Raises UnauthorizedError if there is no token, the token is invalid or
    expired, or its user no longer exists.
    """
    return await _user_from_credentials(credentials, db)


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """
    Get the current user if authenticated, otherwise None.

    Useful for endpoints that work for both public and signed-in callers.
    """
    if credentials is None:
        return None
    try:
        return await _user_from_credentials(credentials, db)
    except UnauthorizedError as e:
        logger.debug(f"Ignoring invalid optional credentials: {e.message}")
        return None
