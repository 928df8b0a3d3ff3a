"""Meal plan day synthesis and slot editing.

These helpers operate on ``MealPlan``/``MealPlanDay`` objects in memory. They
never touch the session, so the service layer decides when changes are
flushed and the rules can be unit-tested on transient objects.
"""

from datetime import date, datetime, timedelta, timezone

from recipehub.errors import NotFoundError, ValidationError
from recipehub.models import MealPlanDay, MealSlot, Recipe

SINGLE_MEAL_TYPES = ("breakfast", "lunch", "dinner")
SNACKS = "snacks"
MEAL_TYPES = (*SINGLE_MEAL_TYPES, SNACKS)

DEFAULT_SERVINGS = {
    "breakfast": 2,
    "lunch": 2,
    "dinner": 2,
    SNACKS: 1,
}

MAX_SLOT_NOTES = 200

# "YYYY-MM-DD" may only be followed by a time part
DATE_KEY_LENGTH = 10
DATE_TIME_SEPARATORS = ("T", "t", " ")


def to_date_key(value: date | datetime | str) -> date:
    """
    Normalize a date-ish value to a calendar date, ignoring time of day.

    Aware datetimes are converted to UTC first, so ``2024-05-02T01:00:00+02:00``
    keys to ``2024-05-01``.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if len(text) > DATE_KEY_LENGTH and text[DATE_KEY_LENGTH] not in DATE_TIME_SEPARATORS:
            raise ValidationError(f"Invalid date: {value!r}")
        try:
            return to_date_key(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError:
            pass
    raise ValidationError(f"Invalid date: {value!r}")


def date_range(start: date, end: date) -> list[date]:
    """Every calendar date from ``start`` to ``end`` inclusive."""
    if end < start:
        raise ValidationError("End date must be on or after start date")
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


def build_days(start: date, end: date) -> list[MealPlanDay]:
    """Synthesize one empty day per date in the plan's range."""
    return [MealPlanDay(date=day, slots=[]) for day in date_range(start, end)]


def find_day(days: list[MealPlanDay], target: date | datetime | str) -> MealPlanDay:
    key = to_date_key(target)
    for day in days:
        if to_date_key(day.date) == key:
            return day
    raise NotFoundError("Day not found in this meal plan")


def validate_meal_type(meal_type: str | None) -> str:
    if meal_type not in MEAL_TYPES:
        raise ValidationError("Invalid meal type")
    return meal_type


def validate_servings(servings: object) -> int | None:
    """
    Coerce a raw servings value to an int of at least 1.

    Whole-number floats and digit strings are accepted (``2.0``, ``"3"``);
    fractions, booleans and anything else are rejected.
    """
    if servings is None:
        return None
    if isinstance(servings, float) and servings.is_integer():
        servings = int(servings)
    elif isinstance(servings, str) and servings.strip().isdigit():
        servings = int(servings.strip())
    if isinstance(servings, bool) or not isinstance(servings, int) or servings < 1:
        raise ValidationError("Servings must be a whole number of at least 1")
    return servings


def validate_notes(notes: object) -> str | None:
    if notes is None:
        return None
    if not isinstance(notes, str):
        raise ValidationError("Notes must be text")
    if len(notes) > MAX_SLOT_NOTES:
        raise ValidationError(f"Notes cannot exceed {MAX_SLOT_NOTES} characters")
    return notes


def validate_recipe_ref(recipe_id: object) -> str | None:
    """A recipe id is an optional non-empty string; empty means no recipe."""
    if recipe_id is None or recipe_id == "":
        return None
    if not isinstance(recipe_id, str):
        raise ValidationError("Recipe id must be a string")
    return recipe_id


def assign_slot(
    day: MealPlanDay,
    meal_type: str,
    recipe: Recipe | None,
    servings: int | None = None,
    notes: str | None = None,
) -> MealSlot | None:
    """
    Apply a slot edit to ``day``.

    Breakfast, lunch and dinner hold at most one slot: a recipe replaces the
    current one and no recipe clears it. Snacks are appended; a snack edit
    without a recipe is a no-op. Returns the slot that now holds the recipe,
    or None when nothing was assigned.
    """
    meal_type = validate_meal_type(meal_type)
    servings = validate_servings(servings) or DEFAULT_SERVINGS[meal_type]
    notes = validate_notes(notes)

    if meal_type == SNACKS:
        if recipe is None:
            return None
        position = max((slot.position or 0 for slot in day.snacks), default=-1) + 1
        slot = MealSlot(
            meal_type=SNACKS,
            position=position,
            recipe_id=recipe.id,
            recipe=recipe,
            servings=servings,
            notes=notes,
        )
        day.slots.append(slot)
        return slot

    existing = [slot for slot in day.slots if slot.meal_type == meal_type]
    for slot in existing:
        day.slots.remove(slot)

    if recipe is None:
        return None

    slot = MealSlot(
        meal_type=meal_type,
        position=0,
        recipe_id=recipe.id,
        recipe=recipe,
        servings=servings,
        notes=notes,
    )
    day.slots.append(slot)
    return slot


def remove_snack(day: MealPlanDay, index: int) -> MealSlot:
    """Remove the snack at zero-based ``index``; the rest keep their order."""
    snacks = day.snacks
    if index < 0 or index >= len(snacks):
        raise NotFoundError("Snack not found on this day")
    removed = snacks[index]
    day.slots.remove(removed)
    return removed
