"""Shopping list generation from meal plans."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from recipehub.logging_config import get_logger
from recipehub.normalize import as_quantity, ingredient_key, round_half_up

logger = get_logger(__name__)


@dataclass
class ShoppingItem:
    """A single consolidated line in the shopping list."""

    item: str
    quantity: float
    unit: str


@dataclass
class ShoppingList:
    """Consolidated shopping list for a meal plan."""

    plan_name: str
    items: list[ShoppingItem] = field(default_factory=list)


def _get(obj: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from a mapping or an attribute-style object."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def iter_plan_slots(plan: Any) -> Iterator[Any]:
    """Yield every occupied slot: per day, breakfast, lunch, dinner, then snacks."""
    for day in _get(plan, "days") or []:
        for meal_type in ("breakfast", "lunch", "dinner"):
            slot = _get(day, meal_type)
            if slot is not None:
                yield slot
        yield from _get(day, "snacks") or []


def aggregate_ingredients(plan: Any) -> ShoppingList:
    """
    Build a consolidated shopping list from a plan with recipes resolved.

    Each slot's ingredient quantities are scaled by
    ``slot.servings / recipe.servings`` and summed per case-insensitive
    (item, unit) pair. The display name comes from the first occurrence.
    Slots without a recipe or ingredients are skipped. Quantities are
    rounded to one decimal only after all additions.

    Args:
        plan: A meal plan (ORM object or plain mapping) whose slot recipes
            are loaded.

    Returns:
        ShoppingList sorted by item name, case-insensitive.
    """
    totals: dict[str, ShoppingItem] = {}

    for slot in iter_plan_slots(plan):
        recipe = _get(slot, "recipe")
        ingredients = _get(recipe, "ingredients")
        if not ingredients:
            continue

        native_servings = _get(recipe, "servings") or 1
        multiplier = (_get(slot, "servings") or 2) / native_servings

        for ingredient in ingredients:
            item = _get(ingredient, "item")
            if not item:
                continue
            unit = _get(ingredient, "unit") or ""
            scaled = as_quantity(_get(ingredient, "quantity")) * multiplier

            key = ingredient_key(item, unit)
            existing = totals.get(key)
            if existing is not None:
                existing.quantity += scaled
            else:
                totals[key] = ShoppingItem(item=item, quantity=scaled, unit=unit)

    items = sorted(totals.values(), key=lambda entry: entry.item.lower())
    for entry in items:
        entry.quantity = round_half_up(entry.quantity, 1)

    plan_name = _get(plan, "name") or ""
    logger.debug(f"Aggregated {len(items)} shopping list items for plan '{plan_name}'")
    return ShoppingList(plan_name=plan_name, items=items)
