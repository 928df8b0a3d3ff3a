"""API tests for recipes."""

import pytest_asyncio

# =============================================================================
# Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def chef(create_user):
    return await create_user("chef@example.com", name="Chef")


@pytest_asyncio.fixture
async def fan(create_user):
    return await create_user("fan@example.com", name="Fan")


async def submit(client, headers, payload, **overrides):
    response = await client.post("/api/recipes", json={**payload, **overrides}, headers=headers)
    assert response.status_code == 201, response.json()
    return response.json()["data"]["recipe"]


# =============================================================================
# Authoring
# =============================================================================


class TestCreateRecipe:
    """Tests for POST /api/recipes."""

    async def test_create(self, client, chef, auth_headers, recipe_payload):
        recipe = await submit(client, auth_headers(chef), recipe_payload)

        assert recipe["slug"] == "pad-thai"
        assert recipe["totalTime"] == 35
        assert recipe["author"]["username"] == "chef"
        assert recipe["stats"] == {
            "views": 0,
            "saves": 0,
            "madeIt": 0,
            "avgRating": 0.0,
            "reviewCount": 0,
        }

    async def test_slugs_are_unique(self, client, chef, auth_headers, recipe_payload):
        headers = auth_headers(chef)
        slugs = [(await submit(client, headers, recipe_payload))["slug"] for _ in range(3)]
        assert slugs == ["pad-thai", "pad-thai-1", "pad-thai-2"]

    async def test_server_assigned_fields_are_ignored(
        self, client, chef, auth_headers, recipe_payload
    ):
        recipe = await submit(
            client,
            auth_headers(chef),
            recipe_payload,
            slug="custom",
            views=1000,
            avgRating=5,
        )

        assert recipe["slug"] == "pad-thai"
        assert recipe["stats"]["views"] == 0
        assert recipe["stats"]["avgRating"] == 0.0

    async def test_counts_submission(self, client, chef, auth_headers, recipe_payload):
        await submit(client, auth_headers(chef), recipe_payload)

        response = await client.get("/api/users/chef")
        assert response.json()["data"]["user"]["recipesSubmitted"] == 1

    async def test_invalid_payload(self, client, chef, auth_headers, recipe_payload):
        response = await client.post(
            "/api/recipes",
            json={**recipe_payload, "category": "brunch", "ingredients": []},
            headers=auth_headers(chef),
        )

        assert response.status_code == 400
        fields = {error["field"] for error in response.json()["errors"]}
        assert "category" in fields
        assert "ingredients" in fields

    async def test_requires_authentication(self, client, recipe_payload):
        response = await client.post("/api/recipes", json=recipe_payload)
        assert response.status_code == 401


class TestUpdateRecipe:
    """Tests for PUT and DELETE /api/recipes/{id}."""

    async def test_title_change_regenerates_slug(
        self, client, chef, auth_headers, recipe_payload
    ):
        headers = auth_headers(chef)
        recipe = await submit(client, headers, recipe_payload)

        response = await client.put(
            f"/api/recipes/{recipe['id']}",
            json={"title": "Pad See Ew", "cookTime": 25},
            headers=headers,
        )

        updated = response.json()["data"]["recipe"]
        assert updated["slug"] == "pad-see-ew"
        assert updated["totalTime"] == 45

    async def test_only_author_may_edit(self, client, chef, fan, auth_headers, recipe_payload):
        recipe = await submit(client, auth_headers(chef), recipe_payload)

        response = await client.put(
            f"/api/recipes/{recipe['id']}", json={"title": "Mine now"}, headers=auth_headers(fan)
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Not authorized to update this recipe"

    async def test_admin_may_delete(
        self, client, chef, create_user, auth_headers, recipe_payload
    ):
        admin = await create_user("admin@example.com", role="admin")
        recipe = await submit(client, auth_headers(chef), recipe_payload)

        response = await client.delete(f"/api/recipes/{recipe['id']}", headers=auth_headers(admin))

        assert response.status_code == 200
        assert (await client.get("/api/recipes/pad-thai")).status_code == 404

    async def test_delete_removes_reviews(self, client, chef, fan, auth_headers, recipe_payload):
        recipe = await submit(client, auth_headers(chef), recipe_payload)
        await client.post(
            "/api/reviews",
            json={"recipeId": recipe["id"], "rating": 5, "text": "Great"},
            headers=auth_headers(fan),
        )

        await client.delete(f"/api/recipes/{recipe['id']}", headers=auth_headers(chef))

        response = await client.get(f"/api/reviews/recipe/{recipe['id']}")
        assert response.json()["data"]["reviews"] == []
        response = await client.get("/api/notifications", headers=auth_headers(chef))
        assert response.json()["data"]["notifications"] == []


# =============================================================================
# Browsing
# =============================================================================


class TestBrowseRecipes:
    """Tests for listing and reading recipes."""

    async def test_read_counts_views(self, client, chef, create_recipe):
        await create_recipe(chef, "Tomato Soup")

        await client.get("/api/recipes/tomato-soup")
        response = await client.get("/api/recipes/tomato-soup")

        assert response.status_code == 200
        assert response.json()["data"]["recipe"]["stats"]["views"] == 2

    async def test_unknown_slug(self, client):
        response = await client.get("/api/recipes/nothing-here")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Recipe not found"}

    async def test_drafts_are_hidden(self, client, chef, create_recipe):
        await create_recipe(chef, "Secret Stew", status="draft")

        assert (await client.get("/api/recipes/secret-stew")).status_code == 404
        listing = await client.get("/api/recipes")
        assert listing.json()["data"]["data"] == []

    async def test_filters(self, client, chef, create_recipe):
        await create_recipe(chef, "Tomato Soup", dietary=["vegan", "gluten-free"])
        await create_recipe(chef, "Chicken Curry", category="main-course", cuisine="indian")
        await create_recipe(chef, "Quick Salad", category="salad", total_time=5)

        async def titles(**params):
            response = await client.get("/api/recipes", params=params)
            return sorted(r["title"] for r in response.json()["data"]["data"])

        assert await titles(category="soup") == ["Tomato Soup"]
        assert await titles(cuisine="indian") == ["Chicken Curry"]
        assert await titles(q="curry") == ["Chicken Curry"]
        assert await titles(maxTime=10) == ["Quick Salad"]
        assert await titles(dietary=["vegan", "gluten-free"]) == ["Tomato Soup"]
        assert await titles(dietary=["vegan", "keto"]) == []
        assert await titles(ingredients=["tomato"]) == [
            "Chicken Curry",
            "Quick Salad",
            "Tomato Soup",
        ]

    async def test_pagination(self, client, chef, create_recipe):
        for n in range(5):
            await create_recipe(chef, f"Recipe {n}")

        response = await client.get("/api/recipes", params={"page": 2, "limit": 2})

        body = response.json()["data"]
        assert len(body["data"]) == 2
        assert body["pagination"] == {
            "currentPage": 2,
            "totalPages": 3,
            "totalItems": 5,
            "hasNext": True,
            "hasPrev": True,
        }

    async def test_limit_is_capped(self, client, chef, create_recipe):
        await create_recipe(chef)
        response = await client.get("/api/recipes", params={"limit": 500})
        assert response.json()["data"]["pagination"]["totalPages"] == 1

    async def test_categories(self, client, chef, create_recipe):
        await create_recipe(chef, "Soup A")
        await create_recipe(chef, "Soup B")
        await create_recipe(chef, "Cake", category="dessert")

        response = await client.get("/api/recipes/categories")

        assert response.json()["data"]["categories"] == [
            {"category": "soup", "count": 2},
            {"category": "dessert", "count": 1},
        ]

    async def test_featured_and_trending(self, client, chef, create_recipe):
        await create_recipe(chef, "Star Dish", featured=True, views=3)
        await create_recipe(chef, "Popular Dish", views=10)

        featured = await client.get("/api/recipes/featured")
        trending = await client.get("/api/recipes/trending")

        assert [r["title"] for r in featured.json()["data"]["recipes"]] == ["Star Dish"]
        assert [r["title"] for r in trending.json()["data"]["recipes"]] == [
            "Popular Dish",
            "Star Dish",
        ]


# =============================================================================
# Engagement
# =============================================================================


class TestEngagement:
    """Tests for saving and marking recipes as made."""

    async def test_save_and_unsave(self, client, chef, fan, auth_headers, create_recipe):
        recipe = await create_recipe(chef)
        headers = auth_headers(fan)

        first = await client.post(f"/api/recipes/{recipe.id}/save", headers=headers)
        assert first.status_code == 200
        again = await client.post(f"/api/recipes/{recipe.id}/save", headers=headers)
        assert again.status_code == 400
        assert again.json()["message"] == "Recipe already saved"

        saved = await client.get(f"/api/recipes/{recipe.slug}")
        assert saved.json()["data"]["recipe"]["stats"]["saves"] == 1

        await client.delete(f"/api/recipes/{recipe.id}/save", headers=headers)
        await client.delete(f"/api/recipes/{recipe.id}/save", headers=headers)
        unsaved = await client.get(f"/api/recipes/{recipe.slug}")
        assert unsaved.json()["data"]["recipe"]["stats"]["saves"] == 0

    async def test_save_notifies_author(self, client, chef, fan, auth_headers, create_recipe):
        recipe = await create_recipe(chef)
        await client.post(f"/api/recipes/{recipe.id}/save", headers=auth_headers(fan))

        response = await client.get("/api/notifications", headers=auth_headers(chef))

        [notification] = response.json()["data"]["notifications"]
        assert notification["type"] == "recipe_saved"
        assert notification["sender"]["name"] == "Fan"

    async def test_made_it(self, client, chef, fan, auth_headers, create_recipe):
        recipe = await create_recipe(chef)

        response = await client.post(f"/api/recipes/{recipe.id}/made-it", headers=auth_headers(fan))

        assert response.json()["message"] == "Marked as made!"
        read = await client.get(f"/api/recipes/{recipe.slug}")
        assert read.json()["data"]["recipe"]["stats"]["madeIt"] == 1
        profile = await client.get("/api/users/fan")
        assert profile.json()["data"]["user"]["recipesCooked"] == 1

    async def test_own_recipe_does_not_notify(self, client, chef, auth_headers, create_recipe):
        recipe = await create_recipe(chef)
        await client.post(f"/api/recipes/{recipe.id}/made-it", headers=auth_headers(chef))

        response = await client.get("/api/notifications/unread-count", headers=auth_headers(chef))
        assert response.json()["data"]["count"] == 0
