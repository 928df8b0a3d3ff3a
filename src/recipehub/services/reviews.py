"""Recipe reviews. Every write is followed by a rating refresh of its recipe."""

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from recipehub.errors import ForbiddenError, NotFoundError, ValidationError
from recipehub.logging_config import get_logger
from recipehub.models import Notification, Recipe, Review, User
from recipehub.ratings import refresh_recipe_rating
from recipehub.services.notifications import notify
from recipehub.services.recipes import clamp_page

logger = get_logger(__name__)

SORT_ORDERS = {
    "newest": (Review.created_at.desc(),),
    "oldest": (Review.created_at.asc(),),
    "rating-high": (Review.rating.desc(), Review.created_at.desc()),
    "rating-low": (Review.rating.asc(), Review.created_at.desc()),
}


async def _get_review(db: AsyncSession, review_id: str) -> Review:
    review = await db.get(Review, review_id)
    if review is None:
        raise NotFoundError.for_entity("Review")
    return review


async def _reload(db: AsyncSession, review_id: str) -> Review:
    result = await db.execute(
        select(Review).where(Review.id == review_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def list_reviews(
    db: AsyncSession,
    recipe_id: str,
    sort: str = "newest",
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Review], int, list[dict[str, Any]]]:
    """
    One page of a recipe's reviews plus its rating distribution.

    ``helpful`` sorts by number of helpful votes, most first. The
    distribution lists each rating that occurs with its count, highest
    rating first.
    """
    page, limit = clamp_page(page, limit, default_limit=10)
    offset = (page - 1) * limit
    base = select(Review).where(Review.recipe_id == recipe_id)

    if sort == "helpful":
        result = await db.execute(base.order_by(Review.created_at.desc()))
        everything = sorted(
            result.scalars().all(), key=lambda review: len(review.helpful or []), reverse=True
        )
        reviews = everything[offset : offset + limit]
        total = len(everything)
    else:
        order = SORT_ORDERS.get(sort, SORT_ORDERS["newest"])
        result = await db.execute(base.order_by(*order, Review.id).offset(offset).limit(limit))
        reviews = list(result.scalars().all())
        total = await db.scalar(
            select(func.count()).select_from(Review).where(Review.recipe_id == recipe_id)
        )

    count = func.count(Review.id)
    buckets = await db.execute(
        select(Review.rating, count)
        .where(Review.recipe_id == recipe_id)
        .group_by(Review.rating)
        .order_by(Review.rating.desc())
    )
    distribution = [{"rating": rating, "count": n} for rating, n in buckets.all()]

    return reviews, total or 0, distribution


async def create_review(
    db: AsyncSession, user: User, recipe_id: str, data: dict[str, Any]
) -> Review:
    """
    Review a recipe once.

    Refreshes the recipe's rating and tells its author, unless the author is
    reviewing their own recipe.
    """
    recipe = await db.get(Recipe, recipe_id)
    if recipe is None:
        raise NotFoundError.for_entity("Recipe")

    existing = await db.scalar(
        select(Review.id).where(Review.recipe_id == recipe.id, Review.author_id == user.id)
    )
    if existing is not None:
        raise ValidationError("You have already reviewed this recipe")

    review = Review(
        recipe_id=recipe.id,
        author_id=user.id,
        rating=data["rating"],
        title=data.get("title"),
        text=data["text"],
        images=list(data.get("images") or []),
        helpful=[],
    )
    db.add(review)
    await refresh_recipe_rating(db, recipe.id)

    await notify(
        db,
        recipient_id=recipe.author_id,
        sender=user,
        type="new_review",
        message=f"{user.name} reviewed your recipe \"{recipe.title}\"",
        recipe_id=recipe.id,
        review_id=review.id,
    )
    await db.commit()

    logger.info(f"User {user.id} reviewed recipe {recipe.id} with rating {review.rating}")
    return await _reload(db, review.id)


async def update_review(
    db: AsyncSession, user: User, review_id: str, changes: dict[str, Any]
) -> Review:
    review = await _get_review(db, review_id)
    if review.author_id != user.id:
        raise ForbiddenError("Not authorized to update this review")

    for key in ("rating", "title", "text", "images"):
        if key in changes:
            setattr(review, key, changes[key])

    await refresh_recipe_rating(db, review.recipe_id)
    await db.commit()
    return await _reload(db, review.id)


async def delete_review(db: AsyncSession, user: User, review_id: str) -> None:
    review = await _get_review(db, review_id)
    if review.author_id != user.id and not user.is_admin:
        raise ForbiddenError("Not authorized to delete this review")

    recipe_id = review.recipe_id
    notifications = await db.execute(
        select(Notification).where(Notification.review_id == review.id)
    )
    for notification in notifications.scalars().all():
        await db.delete(notification)

    await db.delete(review)
    await refresh_recipe_rating(db, recipe_id)
    await db.commit()
    logger.info(f"Deleted review {review_id} of recipe {recipe_id}")


async def toggle_helpful(db: AsyncSession, user: User, review_id: str) -> tuple[Review, bool]:
    """Add or remove the caller's helpful vote. Returns the review and the new state."""
    review = await _get_review(db, review_id)

    voters = list(review.helpful or [])
    if user.id in voters:
        voters.remove(user.id)
        marked = False
    else:
        voters.append(user.id)
        marked = True

    # JSON columns only persist on reassignment
    review.helpful = voters
    await db.commit()
    return await _reload(db, review.id), marked
