"""API tests for the cached Spoonacular proxy."""

from unittest.mock import AsyncMock, patch

import pytest

from recipehub.cache import InMemoryTTLCache
from recipehub.ingest.connectors import ConnectorError, ConnectorResponse, SpoonacularConnector
from recipehub.main import app
from recipehub.routers.spoonacular import get_spoonacular


@pytest.fixture
def upstream(client):
    """Mocked upstream call behind a connector with a private cache."""
    connector = SpoonacularConnector(api_key="test-key", cache=InMemoryTTLCache(), cache_ttl=300)
    app.dependency_overrides[get_spoonacular] = lambda: connector
    with patch.object(connector, "_request", new_callable=AsyncMock) as mock_request:
        mock_request.return_value = ConnectorResponse(
            data={"results": [{"id": 1}]}, status_code=200, headers={}
        )
        yield mock_request
    app.dependency_overrides.pop(get_spoonacular, None)


class TestSpoonacularProxy:
    """Tests for /api/spoonacular."""

    async def test_search_passes_parameters(self, client, upstream):
        response = await client.get(
            "/api/spoonacular/search",
            params={"query": "pasta", "maxReadyTime": 30, "number": 5},
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": {"results": [{"id": 1}]}}
        params = upstream.await_args.kwargs["params"]
        assert params["query"] == "pasta"
        assert params["maxReadyTime"] == 30
        assert params["number"] == 5
        assert "cuisine" not in params

    async def test_repeated_reads_are_cached(self, client, upstream):
        await client.get("/api/spoonacular/recipe/42")
        await client.get("/api/spoonacular/recipe/42")

        upstream.assert_awaited_once()

    async def test_meal_plan_is_not_cached(self, client, upstream):
        await client.get("/api/spoonacular/meal-plan", params={"timeFrame": "week"})
        await client.get("/api/spoonacular/meal-plan", params={"timeFrame": "week"})

        assert upstream.await_count == 2
        assert upstream.await_args.kwargs["params"]["targetCalories"] == 2000

    @pytest.mark.parametrize(
        "path",
        ["/api/spoonacular/autocomplete", "/api/spoonacular/search-by-ingredients"],
    )
    async def test_empty_input_skips_upstream(self, client, upstream, path):
        response = await client.get(path)

        assert response.json() == {"success": True, "data": []}
        upstream.assert_not_awaited()

    async def test_upstream_status_is_propagated(self, client, upstream):
        upstream.side_effect = ConnectorError("quota", status_code=402, response="quota")

        response = await client.get("/api/spoonacular/recipe/7/similar")

        assert response.status_code == 402
        assert response.json() == {"success": False, "message": "Failed to fetch similar recipes"}

    async def test_network_failure_is_500(self, client, upstream):
        upstream.side_effect = ConnectorError("Request failed after 3 attempts")

        response = await client.get("/api/spoonacular/random", params={"tags": "vegan"})

        assert response.status_code == 500
        assert response.json()["message"] == "Failed to fetch random recipes"

    async def test_invalid_time_frame(self, client, upstream):
        response = await client.get("/api/spoonacular/meal-plan", params={"timeFrame": "month"})

        assert response.status_code == 400
        upstream.assert_not_awaited()
