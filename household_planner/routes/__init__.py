"""API routers."""

from .ai import router as ai_router
from .households import router as households_router
from .meal_plans import router as meal_plans_router
from .recipes import router as recipes_router
from .shopping import router as shopping_router

__all__ = [
    "ai_router",
    "households_router",
    "meal_plans_router",
    "recipes_router",
    "shopping_router",
]
