"""Unit tests for meal plan day synthesis and slot editing."""

from datetime import date, datetime, timedelta, timezone

import pytest

from recipehub.errors import NotFoundError, ValidationError
from recipehub.models import MealPlanDay, Recipe
from recipehub.plan.meal_plan import (
    DEFAULT_SERVINGS,
    assign_slot,
    build_days,
    date_range,
    find_day,
    remove_snack,
    to_date_key,
    validate_notes,
    validate_recipe_ref,
    validate_servings,
)


@pytest.fixture
def day():
    return MealPlanDay(date=date(2024, 5, 1), slots=[])


@pytest.fixture
def soup():
    return Recipe(id="recipe-soup", title="Soup", servings=4)


@pytest.fixture
def salad():
    return Recipe(id="recipe-salad", title="Salad", servings=2)


# =============================================================================
# Date Handling Tests
# =============================================================================


class TestToDateKey:
    """Tests for to_date_key function."""

    def test_date_passes_through(self):
        assert to_date_key(date(2024, 5, 1)) == date(2024, 5, 1)

    def test_time_of_day_is_ignored(self):
        assert to_date_key(datetime(2024, 5, 1, 23, 59)) == date(2024, 5, 1)

    def test_aware_datetime_uses_utc_date(self):
        """01:00 at UTC+2 is still the previous day in UTC."""
        value = datetime(2024, 5, 2, 1, 0, tzinfo=timezone(timedelta(hours=2)))
        assert to_date_key(value) == date(2024, 5, 1)

    def test_iso_strings(self):
        assert to_date_key("2024-05-01") == date(2024, 5, 1)
        assert to_date_key("2024-05-01T18:30:00Z") == date(2024, 5, 1)
        assert to_date_key("2024-05-02T01:00:00+02:00") == date(2024, 5, 1)

    @pytest.mark.parametrize("value", ["", "   ", "not-a-date", None, 20240501])
    def test_invalid(self, value):
        with pytest.raises(ValidationError):
            to_date_key(value)

    def test_space_separated_time(self):
        assert to_date_key("2024-05-01 18:30") == date(2024, 5, 1)

    @pytest.mark.parametrize(
        "value", ["2024-05-01garbage", "2024-05-01x12:00", "2024-05-01T25:00"]
    )
    def test_trailing_text_is_rejected(self, value):
        """Only a time part may follow the date."""
        with pytest.raises(ValidationError):
            to_date_key(value)


class TestDateRange:
    """Tests for date_range and build_days functions."""

    def test_inclusive(self):
        assert date_range(date(2024, 5, 1), date(2024, 5, 3)) == [
            date(2024, 5, 1),
            date(2024, 5, 2),
            date(2024, 5, 3),
        ]

    def test_single_day(self):
        assert date_range(date(2024, 5, 1), date(2024, 5, 1)) == [date(2024, 5, 1)]

    def test_spans_month_end(self):
        days = date_range(date(2024, 2, 27), date(2024, 3, 1))
        assert days[-2] == date(2024, 2, 29)
        assert len(days) == 4

    def test_reversed_range_rejected(self):
        with pytest.raises(ValidationError):
            date_range(date(2024, 5, 3), date(2024, 5, 1))

    def test_build_days_are_empty(self):
        days = build_days(date(2024, 5, 1), date(2024, 5, 7))

        assert len(days) == 7
        assert all(d.slots == [] for d in days)
        assert all(d.breakfast is None and d.snacks == [] for d in days)


class TestFindDay:
    """Tests for find_day function."""

    def test_matches_by_calendar_date(self):
        days = build_days(date(2024, 5, 1), date(2024, 5, 3))
        assert find_day(days, "2024-05-02T20:00:00").date == date(2024, 5, 2)

    def test_missing_day(self):
        days = build_days(date(2024, 5, 1), date(2024, 5, 3))
        with pytest.raises(NotFoundError, match="Day not found"):
            find_day(days, date(2024, 5, 4))


# =============================================================================
# Slot Editing Tests
# =============================================================================


class TestAssignSlot:
    """Tests for assign_slot function."""

    def test_sets_single_meal_with_default_servings(self, day, soup):
        slot = assign_slot(day, "dinner", soup)

        assert day.dinner is slot
        assert slot.recipe_id == "recipe-soup"
        assert slot.servings == DEFAULT_SERVINGS["dinner"] == 2

    def test_replaces_existing_meal(self, day, soup, salad):
        """Breakfast, lunch and dinner hold at most one recipe."""
        assign_slot(day, "lunch", soup)
        assign_slot(day, "lunch", salad, servings=3, notes="extra dressing")

        assert len(day.slots) == 1
        assert day.lunch.recipe_id == "recipe-salad"
        assert day.lunch.servings == 3
        assert day.lunch.notes == "extra dressing"

    def test_no_recipe_clears_meal(self, day, soup):
        assign_slot(day, "breakfast", soup)

        assert assign_slot(day, "breakfast", None) is None
        assert day.breakfast is None

    def test_snacks_append_in_order(self, day, soup, salad):
        assign_slot(day, "snacks", soup)
        assign_slot(day, "snacks", salad)
        assign_slot(day, "snacks", soup, servings=2)

        assert [s.recipe_id for s in day.snacks] == [
            "recipe-soup",
            "recipe-salad",
            "recipe-soup",
        ]
        assert [s.servings for s in day.snacks] == [1, 1, 2]

    def test_snack_without_recipe_is_noop(self, day, soup):
        assign_slot(day, "snacks", soup)

        assert assign_slot(day, "snacks", None) is None
        assert len(day.snacks) == 1

    def test_meals_are_independent(self, day, soup, salad):
        assign_slot(day, "breakfast", soup)
        assign_slot(day, "dinner", salad)
        assign_slot(day, "snacks", soup)
        assign_slot(day, "breakfast", None)

        assert day.breakfast is None
        assert day.dinner.recipe_id == "recipe-salad"
        assert len(day.snacks) == 1

    def test_invalid_meal_type(self, day, soup):
        with pytest.raises(ValidationError, match="Invalid meal type"):
            assign_slot(day, "brunch", soup)
        assert day.slots == []


class TestRemoveSnack:
    """Tests for remove_snack function."""

    def test_removes_by_index_and_keeps_order(self, day, soup, salad):
        assign_slot(day, "snacks", soup, notes="first")
        assign_slot(day, "snacks", salad, notes="second")
        assign_slot(day, "snacks", soup, notes="third")

        removed = remove_snack(day, 1)

        assert removed.notes == "second"
        assert [s.notes for s in day.snacks] == ["first", "third"]

    @pytest.mark.parametrize("index", [-1, 1, 5])
    def test_out_of_range(self, day, soup, index):
        assign_slot(day, "snacks", soup)
        with pytest.raises(NotFoundError):
            remove_snack(day, index)


class TestSlotValidation:
    """Tests for servings and notes validation."""

    @pytest.mark.parametrize("servings", [0, -2, True, 2.5, "abc", "", "-1", [2]])
    def test_invalid_servings(self, servings):
        with pytest.raises(ValidationError):
            validate_servings(servings)

    def test_valid_servings(self):
        assert validate_servings(None) is None
        assert validate_servings(6) == 6

    def test_whole_number_servings_are_coerced(self):
        assert validate_servings(2.0) == 2
        assert validate_servings(" 3 ") == 3

    def test_notes_length(self):
        assert validate_notes("x" * 200) == "x" * 200
        with pytest.raises(ValidationError):
            validate_notes("x" * 201)

    @pytest.mark.parametrize("notes", [42, ["a"], {"text": "a"}])
    def test_notes_must_be_text(self, notes):
        with pytest.raises(ValidationError):
            validate_notes(notes)

    def test_recipe_ref(self):
        assert validate_recipe_ref(None) is None
        assert validate_recipe_ref("") is None
        assert validate_recipe_ref("abc") == "abc"
        with pytest.raises(ValidationError):
            validate_recipe_ref(42)
