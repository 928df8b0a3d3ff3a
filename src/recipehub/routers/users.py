"""API routes for user profiles, preferences and follows."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from recipehub.auth import get_current_user, get_optional_user
from recipehub.database import get_db
from recipehub.models import User
from recipehub.schemas import (
    ApiResponse,
    CollectionOut,
    Pagination,
    PreferencesUpdate,
    ProfileUpdate,
    RecipeOut,
    UserPrivate,
    UserPublic,
)
from recipehub.services import collections as collection_service
from recipehub.services import recipes as recipe_service
from recipehub.services import users as service

router = APIRouter(prefix="/api/users", tags=["users"])


@router.put("/profile", response_model=ApiResponse)
async def update_profile(
    request: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    updated = await service.update_profile(db, user, request.model_dump(exclude_unset=True))
    return ApiResponse(
        message="Profile updated", data={"user": UserPrivate.model_validate(updated)}
    )


@router.put("/preferences", response_model=ApiResponse)
async def update_preferences(
    request: PreferencesUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    """Update dietary, cuisine, skill level and theme preferences."""
    updated = await service.update_preferences(db, user, request.model_dump(exclude_unset=True))
    return ApiResponse(
        message="Preferences updated successfully",
        data={"user": UserPrivate.model_validate(updated)},
    )


@router.post("/{user_id}/follow", response_model=ApiResponse)
async def follow_user(
    user_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    target = await service.follow(db, user, user_id)
    return ApiResponse(message=f"You are now following {target.name}")


@router.delete("/{user_id}/follow", response_model=ApiResponse)
async def unfollow_user(
    user_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    target = await service.unfollow(db, user, user_id)
    return ApiResponse(message=f"You have unfollowed {target.name}")


@router.get("/{username}/recipes", response_model=ApiResponse)
async def list_user_recipes(
    username: str,
    page: int = 1,
    limit: int = 12,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    """A user's published recipes, newest first."""
    owner = await service.get_by_username(db, username)
    page, limit = recipe_service.clamp_page(page, limit)
    recipes, total = await recipe_service.list_recipes(
        db, author_id=owner.id, sort="newest", page=page, limit=limit
    )
    return ApiResponse(
        data={
            "recipes": [RecipeOut.model_validate(recipe) for recipe in recipes],
            "pagination": Pagination.build(page, limit, total),
        }
    )


@router.get("/{username}/collections", response_model=ApiResponse)
async def list_user_collections(
    username: str,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    """A user's public collections."""
    owner = await service.get_by_username(db, username)
    collections = await collection_service.list_public(db, owner)
    return ApiResponse(
        data={"collections": [CollectionOut.model_validate(c) for c in collections]}
    )


@router.get("/{username}", response_model=ApiResponse)
async def get_profile(
    username: str,
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    """Public profile; the email is included only for the profile's owner."""
    user = await service.get_by_username(db, username)
    schema = UserPrivate if viewer is not None and viewer.id == user.id else UserPublic
    return ApiResponse(data={"user": schema.model_validate(user)})
