"""API routers for the recipehub application."""

from recipehub.routers.auth import router as auth_router
from recipehub.routers.collections import router as collections_router
from recipehub.routers.meal_plans import router as meal_plans_router
from recipehub.routers.notifications import router as notifications_router
from recipehub.routers.recipes import router as recipes_router
from recipehub.routers.reviews import router as reviews_router
from recipehub.routers.spoonacular import router as spoonacular_router
from recipehub.routers.users import router as users_router

__all__ = [
    "auth_router",
    "collections_router",
    "meal_plans_router",
    "notifications_router",
    "recipes_router",
    "reviews_router",
    "spoonacular_router",
    "users_router",
]
