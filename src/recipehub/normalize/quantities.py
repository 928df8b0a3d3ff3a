"""Numeric helpers for display quantities and ratings."""

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, places: int = 1) -> float:
    """
    Round ``value`` to ``places`` decimals, ties away from zero.

    The builtin ``round`` uses banker's rounding (``round(0.25, 1) == 0.2``);
    display quantities and ratings round ties up instead.
    """
    exponent = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP))


def as_quantity(value) -> float:
    """Coerce a stored ingredient quantity to a float, treating missing as 0."""
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0
