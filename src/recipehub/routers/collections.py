"""API routes for recipe collections."""

from fastapi import APIRouter, Depends, status
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from recipehub.auth import get_current_user, get_optional_user
from recipehub.database import get_db
from recipehub.models import User
from recipehub.schemas import (
    ApiResponse,
    CamelModel,
    CollectionCreate,
    CollectionOut,
    CollectionUpdate,
)
from recipehub.services import collections as service

router = APIRouter(prefix="/api/collections", tags=["collections"])


class AddRecipeRequest(CamelModel):
    recipe_id: str = Field(min_length=1)


@router.get("", response_model=ApiResponse)
async def list_my_collections(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    """List the caller's collections, creating the default ones on first access."""
    collections = await service.list_own(db, user)
    return ApiResponse(
        data={"collections": [CollectionOut.model_validate(c) for c in collections]}
    )


@router.get("/{collection_id}", response_model=ApiResponse)
async def get_collection(
    collection_id: str,
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    """Get a collection. Private collections are visible to their owner only."""
    collection = await service.get_collection(db, collection_id, viewer)
    return ApiResponse(data={"collection": CollectionOut.model_validate(collection)})


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_collection(
    request: CollectionCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    collection = await service.create_collection(db, user, request.model_dump())
    return ApiResponse(
        message="Collection created successfully",
        data={"collection": CollectionOut.model_validate(collection)},
    )


@router.put("/{collection_id}", response_model=ApiResponse)
async def update_collection(
    collection_id: str,
    request: CollectionUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    collection = await service.update_collection(
        db, user, collection_id, request.model_dump(exclude_unset=True)
    )
    return ApiResponse(
        message="Collection updated",
        data={"collection": CollectionOut.model_validate(collection)},
    )


@router.delete("/{collection_id}", response_model=ApiResponse)
async def delete_collection(
    collection_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    await service.delete_collection(db, user, collection_id)
    return ApiResponse(message="Collection deleted")


@router.post("/{collection_id}/recipes", response_model=ApiResponse)
async def add_recipe_to_collection(
    collection_id: str,
    request: AddRecipeRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    collection = await service.add_recipe(db, user, collection_id, request.recipe_id)
    return ApiResponse(
        message="Recipe added to collection",
        data={"collection": CollectionOut.model_validate(collection)},
    )


@router.delete("/{collection_id}/recipes/{recipe_id}", response_model=ApiResponse)
async def remove_recipe_from_collection(
    collection_id: str,
    recipe_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    await service.remove_recipe(db, user, collection_id, recipe_id)
    return ApiResponse(message="Recipe removed from collection")
