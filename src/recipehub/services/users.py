"""Accounts: registration, sign-in, token rotation, profiles and follows."""

from typing import Any

from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from recipehub.auth import (
    TokenPair,
    create_tokens,
    hash_password,
    verify_password,
    verify_refresh_token,
)
from recipehub.errors import NotFoundError, UnauthorizedError, ValidationError
from recipehub.logging_config import get_logger
from recipehub.models import User, default_preferences, follows, utcnow
from recipehub.normalize import numbered_candidates, username_base
from recipehub.services.notifications import notify

logger = get_logger(__name__)

MIN_PASSWORD_LENGTH = 8
# Room for a numeric suffix within the 30 character username limit
USERNAME_STEM_LENGTH = 25


async def generate_username(db: AsyncSession, email: str) -> str:
    """Username from the email's local part; ``name``, ``name1``, ``name2``... until free."""
    base = username_base(email)[:USERNAME_STEM_LENGTH]
    for candidate in numbered_candidates(base, separator=""):
        if await db.scalar(select(User.id).where(User.username == candidate)) is None:
            return candidate
    raise AssertionError("numbered_candidates is unbounded")


async def get_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


async def get_by_username(db: AsyncSession, username: str) -> User:
    result = await db.execute(select(User).where(User.username == username.lower()))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError.for_entity("User")
    return user


async def _issue_tokens(db: AsyncSession, user: User) -> TokenPair:
    tokens = create_tokens(user)
    user.refresh_token = tokens.refresh_token
    await db.commit()
    return tokens


async def register(
    db: AsyncSession, name: str, email: str, password: str
) -> tuple[User, TokenPair]:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if await get_by_email(db, email) is not None:
        raise ValidationError("User already exists with this email")

    user = User(
        name=name.strip(),
        email=email.strip().lower(),
        username=await generate_username(db, email),
        hashed_password=hash_password(password),
    )
    db.add(user)
    await db.flush()

    tokens = await _issue_tokens(db, user)
    logger.info(f"Registered user {user.id} as {user.username}")
    return user, tokens


async def login(db: AsyncSession, email: str, password: str) -> tuple[User, TokenPair]:
    user = await get_by_email(db, email)
    if user is None or not verify_password(password, user.hashed_password):
        logger.info("Rejected login attempt")
        raise UnauthorizedError("Invalid credentials")

    user.last_active = utcnow()
    tokens = await _issue_tokens(db, user)
    logger.info(f"User {user.id} logged in")
    return user, tokens


async def refresh(db: AsyncSession, refresh_token: str) -> TokenPair:
    """
    Rotate a refresh token.

    The token must verify and be the one currently stored for its user;
    a reused old token is rejected.
    """
    if not refresh_token:
        raise ValidationError("Refresh token is required")

    try:
        payload = verify_refresh_token(refresh_token)
    except UnauthorizedError:
        raise UnauthorizedError("Invalid refresh token")

    user_id = payload.get("sub")
    user = await db.get(User, user_id) if user_id else None
    if user is None or user.refresh_token != refresh_token:
        raise UnauthorizedError("Invalid refresh token")

    return await _issue_tokens(db, user)


async def logout(db: AsyncSession, user: User) -> None:
    user.refresh_token = None
    await db.commit()


async def update_profile(db: AsyncSession, user: User, changes: dict[str, Any]) -> User:
    for key in ("name", "bio", "location", "avatar"):
        if changes.get(key) is not None:
            setattr(user, key, changes[key])
    await db.commit()
    return user


async def update_preferences(db: AsyncSession, user: User, changes: dict[str, Any]) -> User:
    """Merge ``changes`` into the stored preferences; None values are ignored."""
    preferences = {**default_preferences(), **(user.preferences or {})}
    preferences.update({key: value for key, value in changes.items() if value is not None})
    # JSON columns only detect reassignment
    user.preferences = preferences
    await db.commit()
    return user


async def _is_following(db: AsyncSession, follower_id: str, followed_id: str) -> bool:
    found = await db.scalar(
        select(follows.c.followed_id).where(
            follows.c.follower_id == follower_id, follows.c.followed_id == followed_id
        )
    )
    return found is not None


async def follow(db: AsyncSession, user: User, target_id: str) -> User:
    """
    Follow another user and notify them.

    Raises:
        ValidationError: Following yourself, or a user you already follow.
        NotFoundError: The target does not exist.
    """
    if target_id == user.id:
        raise ValidationError("You cannot follow yourself")
    target = await db.get(User, target_id)
    if target is None:
        raise NotFoundError.for_entity("User")
    if await _is_following(db, user.id, target.id):
        raise ValidationError("You are already following this user")

    await db.execute(insert(follows).values(follower_id=user.id, followed_id=target.id))
    target.followers = (target.followers or 0) + 1
    user.following = (user.following or 0) + 1
    await notify(
        db,
        recipient_id=target.id,
        sender=user,
        type="new_follower",
        message=f"{user.name} started following you",
    )
    await db.commit()

    logger.info(f"User {user.id} followed user {target.id}")
    return target


async def unfollow(db: AsyncSession, user: User, target_id: str) -> User:
    """Stop following a user; counters only drop when a follow existed."""
    target = await db.get(User, target_id)
    if target is None:
        raise NotFoundError.for_entity("User")

    result = await db.execute(
        delete(follows).where(
            follows.c.follower_id == user.id, follows.c.followed_id == target.id
        )
    )
    if result.rowcount:
        target.followers = max(0, (target.followers or 0) - 1)
        user.following = max(0, (user.following or 0) - 1)
        logger.info(f"User {user.id} unfollowed user {target.id}")
    await db.commit()
    return target
