"""Meal plan persistence and ownership checks."""

from datetime import date, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from recipehub.config import get_settings
from recipehub.errors import ForbiddenError, NotFoundError, ValidationError
from recipehub.logging_config import get_logger
from recipehub.models import MealPlan, Recipe, User, utcnow
from recipehub.plan import (
    ShoppingList,
    aggregate_ingredients,
    assign_slot,
    build_days,
    find_day,
    remove_snack,
    to_date_key,
)
from recipehub.plan.meal_plan import (
    validate_meal_type,
    validate_notes,
    validate_recipe_ref,
    validate_servings,
)

logger = get_logger(__name__)

RECENT_PLANS_LIMIT = 20


async def _load_plan(db: AsyncSession, plan_id: str) -> MealPlan:
    """Fetch a plan with days, slots and slot recipes freshly loaded."""
    result = await db.execute(
        select(MealPlan)
        .where(MealPlan.id == plan_id)
        .execution_options(populate_existing=True)
    )
    plan = result.scalar_one_or_none()
    if plan is None:
        raise NotFoundError.for_entity("Meal plan")
    return plan


async def get_owned_plan(db: AsyncSession, plan_id: str, user: User) -> MealPlan:
    plan = await _load_plan(db, plan_id)
    if plan.user_id != user.id:
        raise ForbiddenError()
    return plan


async def create_plan(
    db: AsyncSession,
    user: User,
    start_date: date | datetime | str,
    end_date: date | datetime | str,
    name: str | None = None,
    notes: str | None = None,
) -> MealPlan:
    """
    Create a plan with one empty day per calendar date from start to end.

    Times of day are ignored. Raises ValidationError when the end precedes the
    start or the range is longer than ``max_plan_days``.
    """
    start = to_date_key(start_date)
    end = to_date_key(end_date)
    days = build_days(start, end)

    max_days = get_settings().max_plan_days
    if len(days) > max_days:
        raise ValidationError(f"Maximum plan duration is {max_days} days")

    plan = MealPlan(
        user_id=user.id,
        name=name or "My Meal Plan",
        start_date=start,
        end_date=end,
        notes=notes,
        days=days,
    )
    db.add(plan)
    await db.commit()

    logger.info(f"Created meal plan {plan.id} for user {user.id}: {start} to {end}")
    return await _load_plan(db, plan.id)


async def set_slot(
    db: AsyncSession,
    user: User,
    plan_id: str,
    date: Any,
    meal_type: Any,
    recipe_id: Any = None,
    servings: Any = None,
    notes: Any = None,
) -> MealPlan:
    """
    Assign, replace or clear one meal of one day.

    Field values arrive unvalidated. Checks run in a fixed order: plan
    exists, caller owns it, meal type, servings, notes and recipe id are
    well formed, recipe exists, day is in the plan.
    """
    plan = await get_owned_plan(db, plan_id, user)

    meal_type = validate_meal_type(meal_type)
    servings = validate_servings(servings)
    notes = validate_notes(notes)
    recipe_id = validate_recipe_ref(recipe_id)

    recipe = None
    if recipe_id:
        recipe = await db.get(Recipe, recipe_id)
        if recipe is None:
            raise NotFoundError.for_entity("Recipe")

    if date is None:
        raise ValidationError("Date is required")
    day = find_day(plan.days, date)

    assign_slot(day, meal_type, recipe, servings=servings, notes=notes)
    plan.updated_at = utcnow()
    await db.commit()

    action = f"set to recipe {recipe.id}" if recipe else "cleared"
    logger.info(f"Meal plan {plan.id} {day.date} {meal_type} {action}")
    return await _load_plan(db, plan.id)


async def remove_snack_at(
    db: AsyncSession,
    user: User,
    plan_id: str,
    date: date | datetime | str,
    index: int,
) -> MealPlan:
    """Remove the snack at zero-based ``index`` on ``date``."""
    plan = await get_owned_plan(db, plan_id, user)
    day = find_day(plan.days, date)

    remove_snack(day, index)
    plan.updated_at = utcnow()
    await db.commit()

    logger.info(f"Removed snack {index} from meal plan {plan.id} on {day.date}")
    return await _load_plan(db, plan.id)


async def delete_plan(db: AsyncSession, user: User, plan_id: str) -> None:
    plan = await get_owned_plan(db, plan_id, user)
    await db.delete(plan)
    await db.commit()
    logger.info(f"Deleted meal plan {plan_id}")


async def list_plans(db: AsyncSession, user: User) -> list[MealPlan]:
    """The caller's plans, latest start date first."""
    result = await db.execute(
        select(MealPlan)
        .where(MealPlan.user_id == user.id)
        .order_by(MealPlan.start_date.desc())
        .limit(RECENT_PLANS_LIMIT)
    )
    return list(result.scalars().all())


async def current_plan(
    db: AsyncSession, user: User, today: date | None = None
) -> MealPlan | None:
    """The active plan whose range contains ``today`` (UTC), if any."""
    today = today or utcnow().date()
    result = await db.execute(
        select(MealPlan)
        .where(
            MealPlan.user_id == user.id,
            MealPlan.is_active.is_(True),
            MealPlan.start_date <= today,
            MealPlan.end_date >= today,
        )
        .order_by(MealPlan.start_date.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def build_shopping_list(db: AsyncSession, user: User, plan_id: str) -> ShoppingList:
    plan = await get_owned_plan(db, plan_id, user)
    shopping_list = aggregate_ingredients(plan)
    logger.info(f"Built shopping list for meal plan {plan.id}: {len(shopping_list.items)} items")
    return shopping_list
