"""Meal planning logic: day schedules and shopping lists."""

from recipehub.plan.meal_plan import (
    DEFAULT_SERVINGS,
    MEAL_TYPES,
    assign_slot,
    build_days,
    date_range,
    find_day,
    remove_snack,
    to_date_key,
)
from recipehub.plan.shopping_list import (
    ShoppingItem,
    ShoppingList,
    aggregate_ingredients,
    iter_plan_slots,
)

__all__ = [
    "DEFAULT_SERVINGS",
    "MEAL_TYPES",
    "ShoppingItem",
    "ShoppingList",
    "aggregate_ingredients",
    "assign_slot",
    "build_days",
    "date_range",
    "find_day",
    "iter_plan_slots",
    "remove_snack",
    "to_date_key",
]
