"""Recipe catalogue: queries, authoring and engagement counters."""

from typing import Any

from sqlalchemy import delete, func, insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from recipehub.errors import ForbiddenError, NotFoundError, ValidationError
from recipehub.logging_config import get_logger
from recipehub.models import (
    MealSlot,
    Notification,
    Recipe,
    Review,
    User,
    collection_recipes,
    saved_recipes,
)
from recipehub.normalize import numbered_candidates, slugify
from recipehub.services.notifications import notify

logger = get_logger(__name__)

MAX_PAGE_SIZE = 50
FEATURED_LIMIT = 6
TRENDING_LIMIT = 10

SORT_ORDERS = {
    "newest": (Recipe.created_at.desc(),),
    "oldest": (Recipe.created_at.asc(),),
    "popular": (Recipe.views.desc(),),
    "rating": (Recipe.avg_rating.desc(), Recipe.review_count.desc()),
    "time": (Recipe.total_time.asc(),),
}

# Fields a recipe author may never write directly
_PROTECTED_FIELDS = {
    "id",
    "author_id",
    "slug",
    "views",
    "saves",
    "made_it",
    "avg_rating",
    "review_count",
    "total_time",
    "featured",
    "created_at",
    "updated_at",
}


def clamp_page(page: int | None, limit: int | None, default_limit: int = 12) -> tuple[int, int]:
    page = max(1, page or 1)
    limit = min(MAX_PAGE_SIZE, max(1, limit or default_limit))
    return page, limit


async def unique_slug(db: AsyncSession, title: str, exclude_id: str | None = None) -> str:
    """Slug for ``title``, suffixed ``-1``, ``-2``... until no other recipe uses it."""
    base = slugify(title) or "recipe"
    for candidate in numbered_candidates(base):
        query = select(Recipe.id).where(Recipe.slug == candidate)
        if exclude_id is not None:
            query = query.where(Recipe.id != exclude_id)
        if await db.scalar(query) is None:
            return candidate
    raise AssertionError("numbered_candidates is unbounded")


def _matches_json_filters(
    recipe: Recipe, dietary: list[str] | None, ingredients: list[str] | None
) -> bool:
    if dietary and not set(dietary).issubset(recipe.dietary or []):
        return False
    if ingredients:
        items = [str(entry.get("item", "")).lower() for entry in recipe.ingredients or []]
        for wanted in ingredients:
            if not any(wanted.lower() in item for item in items):
                return False
    return True


async def list_recipes(
    db: AsyncSession,
    q: str | None = None,
    category: str | None = None,
    cuisine: str | None = None,
    difficulty: str | None = None,
    dietary: list[str] | None = None,
    max_time: int | None = None,
    min_rating: float | None = None,
    ingredients: list[str] | None = None,
    sort: str = "newest",
    page: int = 1,
    limit: int = 12,
    author_id: str | None = None,
) -> tuple[list[Recipe], int]:
    """
    Published recipes matching every given filter.

    Scalar filters run in SQL. Dietary tags (all required) and ingredient
    substrings (all required) live in JSON columns and are matched in Python
    before paging.

    Returns:
        The requested page and the total number of matches.
    """
    page, limit = clamp_page(page, limit)

    query = select(Recipe).where(Recipe.status == "published")
    if q:
        pattern = f"%{q}%"
        query = query.where(or_(Recipe.title.ilike(pattern), Recipe.description.ilike(pattern)))
    if category:
        query = query.where(Recipe.category == category)
    if cuisine:
        query = query.where(Recipe.cuisine == cuisine)
    if difficulty:
        query = query.where(Recipe.difficulty == difficulty)
    if max_time is not None:
        query = query.where(Recipe.total_time <= max_time)
    if min_rating is not None:
        query = query.where(Recipe.avg_rating >= min_rating)
    if author_id:
        query = query.where(Recipe.author_id == author_id)

    query = query.order_by(*SORT_ORDERS.get(sort, SORT_ORDERS["newest"]), Recipe.id)
    offset = (page - 1) * limit

    if dietary or ingredients:
        result = await db.execute(query)
        matches = [
            recipe
            for recipe in result.scalars().all()
            if _matches_json_filters(recipe, dietary, ingredients)
        ]
        return matches[offset : offset + limit], len(matches)

    total = await db.scalar(select(func.count()).select_from(query.order_by(None).subquery()))
    result = await db.execute(query.offset(offset).limit(limit))
    return list(result.scalars().all()), total or 0


async def featured_recipes(db: AsyncSession) -> list[Recipe]:
    result = await db.execute(
        select(Recipe)
        .where(Recipe.featured.is_(True), Recipe.status == "published")
        .order_by(Recipe.created_at.desc())
        .limit(FEATURED_LIMIT)
    )
    return list(result.scalars().all())


async def trending_recipes(db: AsyncSession) -> list[Recipe]:
    result = await db.execute(
        select(Recipe)
        .where(Recipe.status == "published")
        .order_by(Recipe.views.desc(), Recipe.saves.desc())
        .limit(TRENDING_LIMIT)
    )
    return list(result.scalars().all())


async def category_counts(db: AsyncSession) -> list[dict[str, Any]]:
    count = func.count(Recipe.id)
    result = await db.execute(
        select(Recipe.category, count)
        .where(Recipe.status == "published")
        .group_by(Recipe.category)
        .order_by(count.desc(), Recipe.category)
    )
    return [{"category": category, "count": total} for category, total in result.all()]


async def get_recipe(db: AsyncSession, recipe_id: str) -> Recipe:
    recipe = await db.get(Recipe, recipe_id)
    if recipe is None:
        raise NotFoundError.for_entity("Recipe")
    return recipe


async def _reload(db: AsyncSession, recipe_id: str) -> Recipe:
    result = await db.execute(
        select(Recipe).where(Recipe.id == recipe_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def get_by_slug(db: AsyncSession, slug: str) -> Recipe:
    """A published recipe by slug; each read counts as a view."""
    result = await db.execute(
        select(Recipe).where(Recipe.slug == slug, Recipe.status == "published")
    )
    recipe = result.scalar_one_or_none()
    if recipe is None:
        raise NotFoundError.for_entity("Recipe")

    await db.execute(
        update(Recipe).where(Recipe.id == recipe.id).values(views=Recipe.views + 1)
    )
    await db.commit()
    return await _reload(db, recipe.id)


def _ensure_can_edit(recipe: Recipe, user: User, action: str) -> None:
    if recipe.author_id != user.id and not user.is_admin:
        raise ForbiddenError(f"Not authorized to {action} this recipe")


async def create_recipe(db: AsyncSession, user: User, data: dict[str, Any]) -> Recipe:
    """
    Create a recipe authored by ``user``.

    Assigns a unique slug, derives total time and bumps the author's
    submitted-recipe counter in the same transaction.
    """
    fields = {key: value for key, value in data.items() if key not in _PROTECTED_FIELDS}
    recipe = Recipe(**fields, author_id=user.id)
    recipe.slug = await unique_slug(db, recipe.title)
    recipe.total_time = (recipe.prep_time or 0) + (recipe.cook_time or 0)
    db.add(recipe)

    user.recipes_submitted = (user.recipes_submitted or 0) + 1
    await db.commit()

    logger.info(f"Created recipe {recipe.id} ({recipe.slug}) by user {user.id}")
    return await _reload(db, recipe.id)


async def update_recipe(
    db: AsyncSession, user: User, recipe_id: str, changes: dict[str, Any]
) -> Recipe:
    recipe = await get_recipe(db, recipe_id)
    _ensure_can_edit(recipe, user, "update")

    for key, value in changes.items():
        if key not in _PROTECTED_FIELDS:
            setattr(recipe, key, value)

    if "title" in changes:
        recipe.slug = await unique_slug(db, recipe.title, exclude_id=recipe.id)
    recipe.total_time = (recipe.prep_time or 0) + (recipe.cook_time or 0)
    await db.commit()

    logger.info(f"Updated recipe {recipe.id}: {sorted(changes)}")
    return await _reload(db, recipe.id)


async def delete_recipe(db: AsyncSession, user: User, recipe_id: str) -> None:
    """Delete a recipe and every row that references it."""
    recipe = await get_recipe(db, recipe_id)
    _ensure_can_edit(recipe, user, "delete")

    review_ids = select(Review.id).where(Review.recipe_id == recipe.id)
    await db.execute(
        delete(Notification).where(
            or_(Notification.recipe_id == recipe.id, Notification.review_id.in_(review_ids))
        )
    )
    await db.execute(delete(Review).where(Review.recipe_id == recipe.id))
    await db.execute(delete(MealSlot).where(MealSlot.recipe_id == recipe.id))
    for table in (collection_recipes, saved_recipes):
        await db.execute(delete(table).where(table.c.recipe_id == recipe.id))

    author = await db.get(User, recipe.author_id)
    if author is not None:
        author.recipes_submitted = max(0, (author.recipes_submitted or 0) - 1)

    await db.delete(recipe)
    await db.commit()
    logger.info(f"Deleted recipe {recipe_id}")


async def save_recipe(db: AsyncSession, user: User, recipe_id: str) -> None:
    recipe = await get_recipe(db, recipe_id)

    already = await db.scalar(
        select(saved_recipes.c.recipe_id).where(
            saved_recipes.c.user_id == user.id, saved_recipes.c.recipe_id == recipe.id
        )
    )
    if already is not None:
        raise ValidationError("Recipe already saved")

    await db.execute(insert(saved_recipes).values(user_id=user.id, recipe_id=recipe.id))
    await db.execute(update(Recipe).where(Recipe.id == recipe.id).values(saves=Recipe.saves + 1))
    await notify(
        db,
        recipient_id=recipe.author_id,
        sender=user,
        type="recipe_saved",
        message=f"{user.name} saved your recipe \"{recipe.title}\"",
        recipe_id=recipe.id,
    )
    await db.commit()
    logger.info(f"User {user.id} saved recipe {recipe.id}")


async def unsave_recipe(db: AsyncSession, user: User, recipe_id: str) -> None:
    """Remove a saved recipe; the saves counter only drops when a save existed."""
    result = await db.execute(
        delete(saved_recipes).where(
            saved_recipes.c.user_id == user.id, saved_recipes.c.recipe_id == recipe_id
        )
    )
    if result.rowcount:
        await db.execute(
            update(Recipe)
            .where(Recipe.id == recipe_id, Recipe.saves > 0)
            .values(saves=Recipe.saves - 1)
        )
    await db.commit()


async def mark_made(db: AsyncSession, user: User, recipe_id: str) -> None:
    recipe = await get_recipe(db, recipe_id)

    await db.execute(
        update(Recipe).where(Recipe.id == recipe.id).values(made_it=Recipe.made_it + 1)
    )
    user.recipes_cooked = (user.recipes_cooked or 0) + 1
    await notify(
        db,
        recipient_id=recipe.author_id,
        sender=user,
        type="made_it",
        message=f"{user.name} made your recipe \"{recipe.title}\"",
        recipe_id=recipe.id,
    )
    await db.commit()
