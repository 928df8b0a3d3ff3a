"""API routes for recipe reviews."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from recipehub.auth import get_current_user
from recipehub.database import get_db
from recipehub.models import User
from recipehub.schemas import (
    ApiResponse,
    Pagination,
    RatingBucket,
    ReviewCreate,
    ReviewOut,
    ReviewUpdate,
)
from recipehub.services import reviews as service
from recipehub.services.recipes import clamp_page

router = APIRouter(prefix="/api/reviews", tags=["reviews"])


@router.get("/recipe/{recipe_id}", response_model=ApiResponse)
async def list_recipe_reviews(
    recipe_id: str,
    sort: str = "newest",
    page: int = 1,
    limit: int = 10,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    """
    List a recipe's reviews.

    ``sort`` is one of newest, oldest, helpful, rating-high or rating-low.
    The response includes the recipe's rating distribution.
    """
    page, limit = clamp_page(page, limit, default_limit=10)
    reviews, total, distribution = await service.list_reviews(
        db, recipe_id, sort=sort, page=page, limit=limit
    )
    return ApiResponse(
        data={
            "reviews": [ReviewOut.model_validate(review) for review in reviews],
            "pagination": Pagination.build(page, limit, total),
            "ratingDistribution": [RatingBucket(**bucket) for bucket in distribution],
        }
    )


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_review(
    request: ReviewCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    review = await service.create_review(
        db, user, request.recipe_id, request.model_dump(exclude={"recipe_id"})
    )
    return ApiResponse(
        message="Review submitted successfully",
        data={"review": ReviewOut.model_validate(review)},
    )


@router.put("/{review_id}", response_model=ApiResponse)
async def update_review(
    review_id: str,
    request: ReviewUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    review = await service.update_review(
        db, user, review_id, request.model_dump(exclude_unset=True)
    )
    return ApiResponse(
        message="Review updated successfully",
        data={"review": ReviewOut.model_validate(review)},
    )


@router.delete("/{review_id}", response_model=ApiResponse)
async def delete_review(
    review_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    await service.delete_review(db, user, review_id)
    return ApiResponse(message="Review deleted successfully")


@router.post("/{review_id}/helpful", response_model=ApiResponse)
async def toggle_review_helpful(
    review_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    review, marked = await service.toggle_helpful(db, user, review_id)
    return ApiResponse(
        message="Marked as helpful" if marked else "Removed helpful vote",
        data={"helpfulCount": len(review.helpful or [])},
    )
