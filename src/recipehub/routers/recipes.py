"""API routes for browsing, authoring and engaging with recipes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from recipehub.auth import get_current_user
from recipehub.database import get_db
from recipehub.logging_config import get_logger
from recipehub.models import User
from recipehub.schemas import (
    ApiResponse,
    CategoryCount,
    Pagination,
    RecipeCreate,
    RecipeOut,
    RecipeUpdate,
)
from recipehub.services import recipes as service

logger = get_logger(__name__)

router = APIRouter(prefix="/api/recipes", tags=["recipes"])


@router.get("", response_model=ApiResponse)
async def list_recipes(
    q: Annotated[str | None, Query(description="Search in title and description")] = None,
    category: str | None = None,
    cuisine: str | None = None,
    difficulty: str | None = None,
    dietary: Annotated[list[str] | None, Query(description="All must apply")] = None,
    max_time: Annotated[int | None, Query(alias="maxTime", ge=0)] = None,
    min_rating: Annotated[float | None, Query(alias="minRating", ge=0, le=5)] = None,
    ingredients: Annotated[list[str] | None, Query(description="All must appear")] = None,
    sort: Annotated[str, Query(description="newest, oldest, popular, rating or time")] = "newest",
    page: int = 1,
    limit: int = 12,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    """
    List published recipes with filtering, sorting and pagination.

    ``limit`` is clamped to 1..50.
    """
    page, limit = service.clamp_page(page, limit)
    recipes, total = await service.list_recipes(
        db,
        q=q,
        category=category,
        cuisine=cuisine,
        difficulty=difficulty,
        dietary=dietary,
        max_time=max_time,
        min_rating=min_rating,
        ingredients=ingredients,
        sort=sort,
        page=page,
        limit=limit,
    )
    return ApiResponse(
        data={
            "data": [RecipeOut.model_validate(recipe) for recipe in recipes],
            "pagination": Pagination.build(page, limit, total),
        }
    )


@router.get("/featured", response_model=ApiResponse)
async def get_featured_recipes(db: AsyncSession = Depends(get_db)) -> ApiResponse:
    recipes = await service.featured_recipes(db)
    return ApiResponse(data={"recipes": [RecipeOut.model_validate(r) for r in recipes]})


@router.get("/trending", response_model=ApiResponse)
async def get_trending_recipes(db: AsyncSession = Depends(get_db)) -> ApiResponse:
    """Most viewed, then most saved, published recipes."""
    recipes = await service.trending_recipes(db)
    return ApiResponse(data={"recipes": [RecipeOut.model_validate(r) for r in recipes]})


@router.get("/categories", response_model=ApiResponse)
async def get_categories(db: AsyncSession = Depends(get_db)) -> ApiResponse:
    """Published recipe counts per category, largest first."""
    counts = await service.category_counts(db)
    return ApiResponse(data={"categories": [CategoryCount(**entry) for entry in counts]})


@router.get("/{slug}", response_model=ApiResponse)
async def get_recipe(slug: str, db: AsyncSession = Depends(get_db)) -> ApiResponse:
    recipe = await service.get_by_slug(db, slug)
    return ApiResponse(data={"recipe": RecipeOut.model_validate(recipe)})


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_recipe(
    request: RecipeCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    recipe = await service.create_recipe(db, user, request.model_dump())
    return ApiResponse(
        message="Recipe created successfully",
        data={"recipe": RecipeOut.model_validate(recipe)},
    )


@router.put("/{recipe_id}", response_model=ApiResponse)
async def update_recipe(
    recipe_id: str,
    request: RecipeUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    """Update a recipe (author or admin). Slug, author and stats are not writable."""
    recipe = await service.update_recipe(
        db, user, recipe_id, request.model_dump(exclude_unset=True)
    )
    return ApiResponse(
        message="Recipe updated successfully",
        data={"recipe": RecipeOut.model_validate(recipe)},
    )


@router.delete("/{recipe_id}", response_model=ApiResponse)
async def delete_recipe(
    recipe_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    await service.delete_recipe(db, user, recipe_id)
    return ApiResponse(message="Recipe deleted successfully")


@router.post("/{recipe_id}/save", response_model=ApiResponse)
async def save_recipe(
    recipe_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    await service.save_recipe(db, user, recipe_id)
    return ApiResponse(message="Recipe saved successfully")


@router.delete("/{recipe_id}/save", response_model=ApiResponse)
async def unsave_recipe(
    recipe_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    await service.unsave_recipe(db, user, recipe_id)
    return ApiResponse(message="Recipe removed from saved")


@router.post("/{recipe_id}/made-it", response_model=ApiResponse)
async def mark_recipe_made(
    recipe_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    await service.mark_made(db, user, recipe_id)
    return ApiResponse(message="Marked as made!")
