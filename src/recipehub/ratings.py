"""Recipe rating aggregation."""

from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from recipehub.logging_config import get_logger
from recipehub.models import Recipe, Review
from recipehub.normalize import round_half_up

logger = get_logger(__name__)


@dataclass(frozen=True)
class RatingStats:
    """Denormalized rating summary stored on a recipe."""

    avg_rating: float
    review_count: int


def compute_rating_stats(ratings: Iterable[int]) -> RatingStats:
    """Mean rating rounded half-up to one decimal, or zeros when there are none."""
    values = list(ratings)
    if not values:
        return RatingStats(avg_rating=0.0, review_count=0)
    mean = sum(values) / len(values)
    return RatingStats(avg_rating=round_half_up(mean, 1), review_count=len(values))


async def refresh_recipe_rating(db: AsyncSession, recipe_id: str) -> RatingStats:
    """
    Recompute a recipe's rating from every review that references it.

    Always a full rescan, never an increment, so repeated calls converge on
    the same value. Concurrent writers are last-writer-wins. The caller
    commits.
    """
    await db.flush()
    result = await db.execute(select(Review.rating).where(Review.recipe_id == recipe_id))
    stats = compute_rating_stats(result.scalars().all())

    await db.execute(
        update(Recipe)
        .where(Recipe.id == recipe_id)
        .values(avg_rating=stats.avg_rating, review_count=stats.review_count)
        .execution_options(synchronize_session="fetch")
    )
    logger.info(
        f"Refreshed rating for recipe {recipe_id}: "
        f"avg={stats.avg_rating}, count={stats.review_count}"
    )
    return stats
