"""Tests for recipe rating aggregation."""

import pytest

from recipehub.models import Recipe, Review
from recipehub.ratings import RatingStats, compute_rating_stats, refresh_recipe_rating


class TestComputeRatingStats:
    """Tests for compute_rating_stats function."""

    def test_no_reviews(self):
        assert compute_rating_stats([]) == RatingStats(avg_rating=0.0, review_count=0)

    @pytest.mark.parametrize(
        "ratings,expected",
        [
            ([5], 5.0),
            ([5, 4], 4.5),
            ([5, 4, 4], 4.3),
            ([4, 4, 4, 5], 4.3),  # 4.25 rounds up
            ([1, 2, 2], 1.7),
        ],
    )
    def test_mean_rounded_to_one_decimal(self, ratings, expected):
        stats = compute_rating_stats(ratings)
        assert stats.avg_rating == expected
        assert stats.review_count == len(ratings)

    def test_accepts_any_iterable(self):
        assert compute_rating_stats(r for r in (3, 5)).avg_rating == 4.0


class TestRefreshRecipeRating:
    """Tests for refresh_recipe_rating against the database."""

    async def test_full_rescan(self, db_session, create_user, create_recipe):
        """Stored stats reflect every review, and rerunning changes nothing."""
        author = await create_user("author@example.com")
        recipe = await create_recipe(author)
        for n, rating in enumerate((5, 4, 4, 4)):
            reviewer = await create_user(f"reviewer{n}@example.com")
            db_session.add(
                Review(recipe_id=recipe.id, author_id=reviewer.id, rating=rating, text="ok")
            )

        first = await refresh_recipe_rating(db_session, recipe.id)
        await db_session.commit()
        second = await refresh_recipe_rating(db_session, recipe.id)
        await db_session.commit()

        assert first == second == RatingStats(avg_rating=4.3, review_count=4)
        stored = await db_session.get(Recipe, recipe.id, populate_existing=True)
        assert stored.avg_rating == 4.3
        assert stored.review_count == 4

    async def test_no_reviews_resets_to_zero(self, db_session, create_user, create_recipe):
        author = await create_user("author@example.com")
        recipe = await create_recipe(author, avg_rating=3.5, review_count=2)

        stats = await refresh_recipe_rating(db_session, recipe.id)
        await db_session.commit()

        assert stats == RatingStats(avg_rating=0.0, review_count=0)
        stored = await db_session.get(Recipe, recipe.id, populate_existing=True)
        assert stored.review_count == 0
