"""Text and quantity normalization helpers."""

from recipehub.normalize.quantities import as_quantity, round_half_up
from recipehub.normalize.text import (
    ingredient_key,
    numbered_candidates,
    slugify,
    username_base,
)

__all__ = [
    "as_quantity",
    "ingredient_key",
    "numbered_candidates",
    "round_half_up",
    "slugify",
    "username_base",
]
