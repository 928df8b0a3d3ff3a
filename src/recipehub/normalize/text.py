"""Slug, username and ingredient-key normalization."""

import re

_NON_SLUG = re.compile(r"[^a-z0-9]+")
_NON_USERNAME = re.compile(r"[^a-z0-9]")


def slugify(text: str) -> str:
    """
    Convert a title into a URL slug.

    Lowercases, collapses every run of characters outside ``[a-z0-9]`` into a
    single hyphen and trims leading/trailing hyphens.

    >>> slugify("Grandma's  Apple Pie!")
    'grandma-s-apple-pie'
    """
    return _NON_SLUG.sub("-", (text or "").lower()).strip("-")


def numbered_candidates(base: str, separator: str = "-"):
    """Yield ``base``, then ``base-1``, ``base-2``... for uniqueness probing."""
    yield base
    counter = 1
    while True:
        yield f"{base}{separator}{counter}"
        counter += 1


def username_base(email: str) -> str:
    """Derive a username stem from the local part of an email address."""
    local = email.split("@")[0].lower()
    base = _NON_USERNAME.sub("", local)
    return base or "user"


def ingredient_key(item: str, unit: str | None) -> str:
    """Merge key for shopping-list aggregation: case-insensitive item and unit."""
    return f"{(item or '').lower()}_{(unit or '').lower()}"
