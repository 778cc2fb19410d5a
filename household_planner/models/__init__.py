"""Database models for the household planner."""

from .base import Base, TimestampMixin, new_id, normalize_name
from .household import Household, HouseholdMember, DietaryPreference
from .recipe import Recipe
from .ingredient import Ingredient, RecipeIngredient, ShoppingListItem
from .meal_plan import MealPlan, MealPlanMeal, MealPlanStatus
from .shopping_list import ShoppingList, ShoppingListStatus

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "new_id",
    "normalize_name",
    # Households
    "Household",
    "HouseholdMember",
    "DietaryPreference",
    # Recipes
    "Recipe",
    "Ingredient",
    "RecipeIngredient",
    # Meal plans
    "MealPlan",
    "MealPlanMeal",
    "MealPlanStatus",
    # Shopping
    "ShoppingList",
    "ShoppingListStatus",
    "ShoppingListItem",
]
