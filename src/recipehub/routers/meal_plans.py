"""API routes for meal plans and their shopping lists."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from recipehub.auth import get_current_user
from recipehub.database import get_db
from recipehub.logging_config import get_logger
from recipehub.models import User
from recipehub.schemas import (
    ApiResponse,
    MealPlanCreate,
    MealPlanOut,
    SetSlotRequest,
    ShoppingListItemOut,
)
from recipehub.services import meal_plans as service

logger = get_logger(__name__)

router = APIRouter(prefix="/api/meal-plans", tags=["meal-plans"])


@router.get("", response_model=ApiResponse)
async def list_meal_plans(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    """List the caller's meal plans, latest start date first."""
    plans = await service.list_plans(db, user)
    return ApiResponse(data={"plans": [MealPlanOut.model_validate(plan) for plan in plans]})


@router.get("/current", response_model=ApiResponse)
async def get_current_meal_plan(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    """Get the active plan covering today, or null."""
    plan = await service.current_plan(db, user)
    return ApiResponse(data={"plan": MealPlanOut.model_validate(plan) if plan else None})


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_meal_plan(
    request: MealPlanCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    """
    Create a meal plan.

    The plan gets one empty day for every calendar date from start to end,
    inclusive.
    """
    logger.info(f"Creating meal plan: {request.start_date} to {request.end_date}")
    plan = await service.create_plan(
        db,
        user,
        start_date=request.start_date,
        end_date=request.end_date,
        name=request.name,
        notes=request.notes,
    )
    return ApiResponse(message="Meal plan created", data={"plan": MealPlanOut.model_validate(plan)})


@router.get("/{plan_id}", response_model=ApiResponse)
async def get_meal_plan(
    plan_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    plan = await service.get_owned_plan(db, plan_id, user)
    return ApiResponse(data={"plan": MealPlanOut.model_validate(plan)})


@router.put("/{plan_id}/day", response_model=ApiResponse)
async def update_meal_plan_day(
    plan_id: str,
    request: SetSlotRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    """
    Set one meal slot.

    Breakfast, lunch and dinner are replaced, or cleared when no recipe is
    given. Snacks are appended.
    """
    plan = await service.set_slot(
        db,
        user,
        plan_id,
        date=request.date,
        meal_type=request.meal_type,
        recipe_id=request.recipe_id,
        servings=request.servings,
        notes=request.notes,
    )
    return ApiResponse(message="Meal plan updated", data={"plan": MealPlanOut.model_validate(plan)})


@router.delete("/{plan_id}/day/snacks/{index}", response_model=ApiResponse)
async def remove_meal_plan_snack(
    plan_id: str,
    index: int,
    date: Annotated[str, Query(description="Day of the snack, YYYY-MM-DD")],
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    """Remove one snack by its zero-based position on the given day."""
    plan = await service.remove_snack_at(db, user, plan_id, date=date, index=index)
    return ApiResponse(message="Snack removed", data={"plan": MealPlanOut.model_validate(plan)})


@router.get("/{plan_id}/shopping-list", response_model=ApiResponse)
async def get_shopping_list(
    plan_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    """Aggregate every slot's ingredients, scaled to the slot's servings."""
    shopping_list = await service.build_shopping_list(db, user, plan_id)
    return ApiResponse(
        data={
            "shoppingList": [
                ShoppingListItemOut.model_validate(item) for item in shopping_list.items
            ],
            "planName": shopping_list.plan_name,
        }
    )


@router.delete("/{plan_id}", response_model=ApiResponse)
async def delete_meal_plan(
    plan_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    await service.delete_plan(db, user, plan_id)
    return ApiResponse(message="Meal plan deleted")
