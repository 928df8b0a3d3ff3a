"""Cached proxy routes for the Spoonacular recipe API."""

from collections.abc import Awaitable
from typing import Annotated, Any, Literal

from fastapi import APIRouter, Depends, Query

from recipehub.cache import get_cache
from recipehub.errors import AppError
from recipehub.ingest.connectors import ConnectorError, SpoonacularConnector
from recipehub.logging_config import get_logger
from recipehub.schemas import ApiResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/api/spoonacular", tags=["spoonacular"])

_connector: SpoonacularConnector | None = None


def get_spoonacular() -> SpoonacularConnector:
    """Shared connector backed by the configured cache."""
    global _connector
    if _connector is None:
        _connector = SpoonacularConnector(cache=get_cache())
    return _connector


async def close_spoonacular() -> None:
    global _connector
    if _connector is not None:
        await _connector.close()
        _connector = None


async def _proxy(call: Awaitable[Any], failure: str) -> ApiResponse:
    """Await a connector call, surfacing upstream failures with the upstream status."""
    try:
        data = await call
    except ConnectorError as e:
        logger.error(f"Spoonacular error: {e} ({e.response})")
        raise AppError(failure, status_code=e.status_code or 500)
    return ApiResponse(data=data)


@router.get("/search", response_model=ApiResponse)
async def search(
    query: str | None = None,
    cuisine: str | None = None,
    diet: str | None = None,
    intolerances: str | None = None,
    type: str | None = None,
    max_ready_time: Annotated[int | None, Query(alias="maxReadyTime")] = None,
    min_calories: Annotated[float | None, Query(alias="minCalories")] = None,
    max_calories: Annotated[float | None, Query(alias="maxCalories")] = None,
    min_protein: Annotated[float | None, Query(alias="minProtein")] = None,
    max_protein: Annotated[float | None, Query(alias="maxProtein")] = None,
    min_carbs: Annotated[float | None, Query(alias="minCarbs")] = None,
    max_carbs: Annotated[float | None, Query(alias="maxCarbs")] = None,
    min_fat: Annotated[float | None, Query(alias="minFat")] = None,
    max_fat: Annotated[float | None, Query(alias="maxFat")] = None,
    sort: str | None = None,
    sort_direction: Annotated[str | None, Query(alias="sortDirection")] = None,
    offset: int | None = None,
    number: int = 12,
    include_ingredients: Annotated[str | None, Query(alias="includeIngredients")] = None,
    exclude_ingredients: Annotated[str | None, Query(alias="excludeIngredients")] = None,
    connector: SpoonacularConnector = Depends(get_spoonacular),
) -> ApiResponse:
    """Complex recipe search; parameters are passed through under Spoonacular's names."""
    params = {
        "query": query,
        "cuisine": cuisine,
        "diet": diet,
        "intolerances": intolerances,
        "type": type,
        "maxReadyTime": max_ready_time,
        "minCalories": min_calories,
        "maxCalories": max_calories,
        "minProtein": min_protein,
        "maxProtein": max_protein,
        "minCarbs": min_carbs,
        "maxCarbs": max_carbs,
        "minFat": min_fat,
        "maxFat": max_fat,
        "sort": sort,
        "sortDirection": sort_direction,
        "offset": offset,
        "number": number,
        "includeIngredients": include_ingredients,
        "excludeIngredients": exclude_ingredients,
    }
    return await _proxy(connector.search_recipes(params), "Failed to search recipes")


@router.get("/recipe/{recipe_id}", response_model=ApiResponse)
async def get_recipe(
    recipe_id: int, connector: SpoonacularConnector = Depends(get_spoonacular)
) -> ApiResponse:
    return await _proxy(connector.get_recipe(recipe_id), "Failed to fetch recipe")


@router.get("/recipe/{recipe_id}/nutrition", response_model=ApiResponse)
async def get_recipe_nutrition(
    recipe_id: int, connector: SpoonacularConnector = Depends(get_spoonacular)
) -> ApiResponse:
    return await _proxy(connector.get_recipe_nutrition(recipe_id), "Failed to fetch nutrition")


@router.get("/recipe/{recipe_id}/similar", response_model=ApiResponse)
async def get_similar_recipes(
    recipe_id: int,
    number: int = 6,
    connector: SpoonacularConnector = Depends(get_spoonacular),
) -> ApiResponse:
    return await _proxy(
        connector.get_similar_recipes(recipe_id, number), "Failed to fetch similar recipes"
    )


@router.get("/recipe/{recipe_id}/instructions", response_model=ApiResponse)
async def get_analyzed_instructions(
    recipe_id: int, connector: SpoonacularConnector = Depends(get_spoonacular)
) -> ApiResponse:
    return await _proxy(
        connector.get_analyzed_instructions(recipe_id), "Failed to fetch instructions"
    )


@router.get("/random", response_model=ApiResponse)
async def get_random_recipes(
    tags: str | None = None,
    number: int = 10,
    connector: SpoonacularConnector = Depends(get_spoonacular),
) -> ApiResponse:
    return await _proxy(
        connector.get_random_recipes(tags, number), "Failed to fetch random recipes"
    )


@router.get("/autocomplete", response_model=ApiResponse)
async def autocomplete(
    query: str | None = None,
    number: int = 10,
    connector: SpoonacularConnector = Depends(get_spoonacular),
) -> ApiResponse:
    """Title suggestions; an empty query returns nothing without calling upstream."""
    if not query:
        return ApiResponse(data=[])
    return await _proxy(connector.autocomplete(query, number), "Failed to autocomplete")


@router.get("/meal-plan", response_model=ApiResponse)
async def generate_meal_plan(
    time_frame: Annotated[Literal["day", "week"], Query(alias="timeFrame")] = "day",
    target_calories: Annotated[int, Query(alias="targetCalories")] = 2000,
    diet: str | None = None,
    exclude: str | None = None,
    connector: SpoonacularConnector = Depends(get_spoonacular),
) -> ApiResponse:
    """Generate a fresh plan. Never served from the cache."""
    return await _proxy(
        connector.generate_meal_plan(time_frame, target_calories, diet, exclude),
        "Failed to generate meal plan",
    )


@router.get("/search-by-ingredients", response_model=ApiResponse)
async def search_by_ingredients(
    ingredients: str | None = None,
    number: int = 12,
    ranking: int = 1,
    connector: SpoonacularConnector = Depends(get_spoonacular),
) -> ApiResponse:
    """Recipes using a comma-separated list of ingredients."""
    if not ingredients:
        return ApiResponse(data=[])
    return await _proxy(
        connector.search_by_ingredients(ingredients, number, ranking),
        "Failed to search by ingredients",
    )


@router.get("/search-by-nutrients", response_model=ApiResponse)
async def search_by_nutrients(
    min_calories: Annotated[float | None, Query(alias="minCalories")] = None,
    max_calories: Annotated[float | None, Query(alias="maxCalories")] = None,
    min_protein: Annotated[float | None, Query(alias="minProtein")] = None,
    max_protein: Annotated[float | None, Query(alias="maxProtein")] = None,
    min_carbs: Annotated[float | None, Query(alias="minCarbs")] = None,
    max_carbs: Annotated[float | None, Query(alias="maxCarbs")] = None,
    min_fat: Annotated[float | None, Query(alias="minFat")] = None,
    max_fat: Annotated[float | None, Query(alias="maxFat")] = None,
    number: int = 12,
    connector: SpoonacularConnector = Depends(get_spoonacular),
) -> ApiResponse:
    params = {
        "minCalories": min_calories,
        "maxCalories": max_calories,
        "minProtein": min_protein,
        "maxProtein": max_protein,
        "minCarbs": min_carbs,
        "maxCarbs": max_carbs,
        "minFat": min_fat,
        "maxFat": max_fat,
        "number": number,
    }
    return await _proxy(connector.search_by_nutrients(params), "Failed to search by nutrients")
