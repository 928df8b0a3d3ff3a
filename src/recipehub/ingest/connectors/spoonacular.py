"""Spoonacular API connector with response caching."""

import json
from typing import Any

import httpx
from tenacity import (
    RetryError,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from recipehub.cache import CacheBackend, InMemoryTTLCache
from recipehub.config import get_settings
from recipehub.ingest.connectors.base import (
    ConnectorError,
    ConnectorResponse,
    RecipeSourceConnector,
)
from recipehub.logging_config import get_logger

logger = get_logger(__name__)


def _clean_params(params: dict[str, Any]) -> dict[str, Any]:
    """Drop unset parameters so they neither reach the API nor the cache key."""
    return {key: value for key, value in params.items() if value is not None and value != ""}


def _params_key(params: dict[str, Any]) -> str:
    return json.dumps(params, sort_keys=True, default=str)


class SpoonacularConnector(RecipeSourceConnector):
    """
    Connector for the Spoonacular recipe API.

    Read operations are cached for ``cache_ttl`` seconds under keys derived
    from their parameters. Generated meal plans are never cached.
    """

    DEFAULT_TIMEOUT = 30.0
    MAX_RETRIES = 3
    BACKOFF_BASE = 1
    BACKOFF_MAX = 10
    QUOTA_WARNING_POINTS = 10

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        cache: CacheBackend | None = None,
        cache_ttl: float | None = None,
    ):
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.spoonacular_api_key
        self.base_url = (base_url or settings.spoonacular_base_url).rstrip("/")
        self.timeout = timeout or settings.spoonacular_timeout or self.DEFAULT_TIMEOUT
        self.cache = cache if cache is not None else InMemoryTTLCache()
        self.cache_ttl = cache_ttl if cache_ttl is not None else settings.spoonacular_cache_ttl
        self._client: httpx.AsyncClient | None = None

    @property
    def name(self) -> str:
        """Return connector name."""
        return "spoonacular"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                params={"apiKey": self.api_key},
                headers={
                    "Accept": "application/json",
                    "User-Agent": "Recipehub/1.0",
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
    ) -> ConnectorResponse:
        """Make an HTTP request with retry logic."""
        client = await self._get_client()

        @retry(
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
            stop=stop_after_attempt(self.MAX_RETRIES),
            wait=wait_exponential(multiplier=self.BACKOFF_BASE, max=self.BACKOFF_MAX),
            reraise=True,
        )
        async def _do_request() -> httpx.Response:
            return await client.get(endpoint, params=params)

        try:
            response = await _do_request()
        except (RetryError, httpx.TransportError) as e:
            logger.error(f"Request failed after {self.MAX_RETRIES} attempts: {endpoint}")
            raise ConnectorError(
                f"Request failed after {self.MAX_RETRIES} attempts",
                response=str(e),
            ) from e

        if response.status_code >= 400:
            error_detail = response.text[:500] if response.text else "No details"
            error = ConnectorError(
                f"API request failed with status {response.status_code}",
                status_code=response.status_code,
                response=error_detail,
            )
            if error.is_quota_exhausted:
                logger.error(f"Spoonacular quota exhausted ({response.status_code}) for {endpoint}")
            else:
                logger.error(f"API error {response.status_code} for {endpoint}: {error_detail}")
            raise error

        try:
            data = response.json() if response.text else {}
        except ValueError as e:
            logger.warning(f"Failed to parse JSON response: {e}")
            data = {}

        result = ConnectorResponse(
            data=data,
            status_code=response.status_code,
            headers=dict(response.headers),
        )
        if result.quota_left is not None and result.quota_left < self.QUOTA_WARNING_POINTS:
            logger.warning(f"Spoonacular quota nearly spent: {result.quota_left} points left")
        return result

    async def _cached(
        self,
        cache_key: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Serve ``endpoint`` from the cache, fetching and storing on a miss."""
        cached = await self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Cache hit: {cache_key}")
            return cached

        response = await self._request(endpoint, params=params)
        await self.cache.set(cache_key, response.data, self.cache_ttl)
        return response.data

    async def search_recipes(self, params: dict[str, Any]) -> Any:
        """
        Search recipes via ``complexSearch``.

        Args:
            params: Filters such as query, cuisine, diet, intolerances, type,
                maxReadyTime, nutrient bounds, sort, offset and number.

        Returns:
            Search payload with ``results`` and ``totalResults``.
        """
        params = _clean_params(params)
        logger.info(f"Searching Spoonacular recipes: {params}")
        query = {
            **params,
            "addRecipeInformation": True,
            "addRecipeNutrition": True,
            "fillIngredients": True,
            "number": params.get("number") or 12,
        }
        return await self._cached(
            f"search:{_params_key(params)}", "/recipes/complexSearch", params=query
        )

    async def get_recipe(self, recipe_id: int) -> Any:
        logger.info(f"Fetching Spoonacular recipe {recipe_id}")
        return await self._cached(
            f"recipe:{recipe_id}",
            f"/recipes/{recipe_id}/information",
            params={"includeNutrition": True, "addTasteData": True},
        )

    async def get_recipe_nutrition(self, recipe_id: int) -> Any:
        return await self._cached(
            f"nutrition:{recipe_id}", f"/recipes/{recipe_id}/nutritionWidget.json"
        )

    async def get_similar_recipes(self, recipe_id: int, number: int = 6) -> Any:
        return await self._cached(
            f"similar:{recipe_id}:{number}",
            f"/recipes/{recipe_id}/similar",
            params={"number": number},
        )

    async def get_random_recipes(self, tags: str | None = None, number: int = 10) -> Any:
        return await self._cached(
            f"random:{tags or 'all'}:{number}",
            "/recipes/random",
            params=_clean_params({"tags": tags, "number": number}),
        )

    async def autocomplete(self, query: str, number: int = 10) -> Any:
        return await self._cached(
            f"autocomplete:{query}:{number}",
            "/recipes/autocomplete",
            params={"query": query, "number": number},
        )

    async def generate_meal_plan(
        self,
        time_frame: str = "day",
        target_calories: int = 2000,
        diet: str | None = None,
        exclude: str | None = None,
    ) -> Any:
        """Generate a fresh meal plan. Never cached."""
        logger.info(f"Generating Spoonacular meal plan: {time_frame}, {target_calories} kcal")
        response = await self._request(
            "/mealplanner/generate",
            params=_clean_params(
                {
                    "timeFrame": time_frame or "day",
                    "targetCalories": target_calories or 2000,
                    "diet": diet,
                    "exclude": exclude,
                }
            ),
        )
        return response.data

    async def search_by_ingredients(
        self,
        ingredients: str,
        number: int = 12,
        ranking: int = 1,
    ) -> Any:
        return await self._cached(
            f"byIngredients:{ingredients}:{number}:{ranking}",
            "/recipes/findByIngredients",
            params={
                "ingredients": ingredients,
                "number": number,
                "ranking": ranking,
                "ignorePantry": True,
            },
        )

    async def search_by_nutrients(self, params: dict[str, Any]) -> Any:
        params = _clean_params(params)
        query = {**params, "number": params.get("number") or 12}
        return await self._cached(
            f"byNutrients:{_params_key(params)}", "/recipes/findByNutrients", params=query
        )

    async def get_analyzed_instructions(self, recipe_id: int) -> Any:
        return await self._cached(
            f"instructions:{recipe_id}",
            f"/recipes/{recipe_id}/analyzedInstructions",
            params={"stepBreakdown": True},
        )

    async def health_check(self) -> bool:
        """Check if the API is reachable with the configured key."""
        try:
            await self._request("/recipes/autocomplete", params={"query": "a", "number": 1})
            return True
        except ConnectorError as e:
            logger.warning(f"Spoonacular health check failed: {e}")
            return False
