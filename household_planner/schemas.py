"""
Pydantic request models for the HTTP API.

Request bodies use camelCase keys (householdId, dietaryRestrictions, ...);
every model also accepts the snake_case field names.
"""

import re
from datetime import date
from typing import Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    FiniteFloat,
    field_validator,
    model_validator,
)

PreferenceType = Literal["allergy", "intolerance", "restriction", "preference"]
RestrictionType = Literal["allergy", "intolerance", "restriction"]
MealType = Literal["breakfast", "lunch", "dinner", "snack"]
Difficulty = Literal["easy", "medium", "hard"]
Status = Literal["active", "completed", "archived"]


class RequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# =============================================================================
# Households
# =============================================================================


class HouseholdCreate(RequestModel):
    name: str = Field(..., min_length=2, max_length=100)
    budget_weekly: float | None = Field(None, gt=0, allow_inf_nan=False, alias="budgetWeekly")


class HouseholdUpdate(RequestModel):
    name: str | None = Field(None, min_length=2, max_length=100)
    budget_weekly: float | None = Field(None, gt=0, allow_inf_nan=False, alias="budgetWeekly")


class TypedRestrictionInput(RequestModel):
    """A restriction tagged with its kind, e.g. {"type": "allergy", "item": "peanuts"}."""

    type: RestrictionType
    item: str = Field(..., min_length=1)
    severity: int | None = Field(None, ge=1, le=10)


class MemberPreferencesInput(RequestModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    likes: list[str] = Field(default_factory=list)
    dislikes: list[str] = Field(default_factory=list)


class MemberCreate(RequestModel):
    name: str = Field(..., min_length=2, max_length=100)
    age: int | None = Field(None, ge=0, le=150)
    dietary_restrictions: list[str | TypedRestrictionInput] = Field(
        default_factory=list, alias="dietaryRestrictions"
    )
    preferences: MemberPreferencesInput = Field(default_factory=MemberPreferencesInput)

    def restrictions_json(self) -> list:
        """Restrictions in their stored form: plain strings or typed objects."""
        return [
            r if isinstance(r, str) else r.model_dump(exclude_none=True)
            for r in self.dietary_restrictions
        ]


class PreferenceCreate(RequestModel):
    user_id: str | None = Field(None, alias="userId")
    preference_type: PreferenceType = Field(..., alias="preferenceType")
    item: str = Field(..., min_length=1, max_length=255)
    severity: int = Field(5, ge=1, le=10)


# =============================================================================
# Recipes
# =============================================================================


class RecipeIngredientInput(RequestModel):
    name: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0, allow_inf_nan=False)
    unit: str = Field(..., min_length=1, max_length=50)
    notes: str | None = None
    category: str | None = Field(None, max_length=100)


class RecipeCreate(RequestModel):
    name: str = Field(..., min_length=2, max_length=200)
    description: str | None = Field(None, max_length=1000)
    prep_time: int = Field(..., ge=0, alias="prepTime")
    cook_time: int = Field(..., ge=0, alias="cookTime")
    servings: int = Field(..., ge=1)
    difficulty: Difficulty = "medium"
    cuisine: str | None = Field(None, max_length=100)
    ingredients: list[RecipeIngredientInput] = Field(..., min_length=1)
    instructions: list[str] = Field(..., min_length=1)
    nutrition_info: dict[str, FiniteFloat] | None = Field(None, alias="nutritionInfo")
    tags: list[str] = Field(default_factory=list)
    image_url: str | None = Field(None, alias="imageUrl")


class RecipeUpdate(RequestModel):
    """Partial recipe update. A given ingredients list replaces the old one."""

    name: str | None = Field(None, min_length=2, max_length=200)
    description: str | None = Field(None, max_length=1000)
    prep_time: int | None = Field(None, ge=0, alias="prepTime")
    cook_time: int | None = Field(None, ge=0, alias="cookTime")
    servings: int | None = Field(None, ge=1)
    difficulty: Difficulty | None = None
    cuisine: str | None = Field(None, max_length=100)
    ingredients: list[RecipeIngredientInput] | None = Field(None, min_length=1)
    instructions: list[str] | None = Field(None, min_length=1)
    nutrition_info: dict[str, FiniteFloat] | None = Field(None, alias="nutritionInfo")
    image_url: str | None = Field(None, alias="imageUrl")


def drop_empty_values(data):
    """Treat null, empty and zero values as missing so field defaults apply."""
    if isinstance(data, dict):
        return {k: v for k, v in data.items() if v not in (None, "", 0)}
    return data


class SavedIngredient(RequestModel):
    name: str = Field(..., min_length=1)
    amount: float = Field(1, gt=0, allow_inf_nan=False)
    unit: str = Field("piece", min_length=1, max_length=50)
    category: str | None = Field(None, max_length=100)

    @model_validator(mode="before")
    @classmethod
    def use_defaults_for_empty(cls, data):
        return drop_empty_values(data)


class SavedRecipe(RequestModel):
    """Recipe data stored in a planned meal's notes by AI-generated plans."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    prep_time: int | None = Field(None, alias="prepTime")
    cook_time: int | None = Field(None, alias="cookTime")
    servings: int = Field(4, ge=1)
    difficulty: Difficulty = "medium"
    ingredients: list[SavedIngredient]
    instructions: list[str] = Field(default_factory=list)
    nutrition: dict = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def use_defaults_for_empty(cls, data):
        return drop_empty_values(data)

    @field_validator("prep_time", "cook_time", mode="before")
    @classmethod
    def minutes_from_text(cls, v):
        """Accept "15 minutes" style durations; unreadable text becomes None."""
        if isinstance(v, str):
            match = re.search(r"\d+", v)
            return int(match.group()) if match else None
        return v


# =============================================================================
# Meal plans
# =============================================================================


class MealInput(RequestModel):
    recipe_id: str | None = Field(None, alias="recipeId")
    day_of_week: int = Field(..., ge=0, le=6, alias="dayOfWeek")
    meal_type: MealType = Field(..., alias="mealType")
    servings: int | None = Field(None, ge=1)
    notes: str | None = Field(None, max_length=500)


class MealPlanCreate(RequestModel):
    household_id: str = Field(..., alias="householdId")
    week_start: date = Field(..., alias="weekStart")
    week_end: date | None = Field(None, alias="weekEnd")
    budget: float | None = Field(None, gt=0, allow_inf_nan=False)
    meals: list[MealInput] = Field(default_factory=list)


class MealPlanUpdate(RequestModel):
    week_start: date | None = Field(None, alias="weekStart")
    week_end: date | None = Field(None, alias="weekEnd")
    budget: float | None = Field(None, gt=0, allow_inf_nan=False)
    status: Status | None = None


class MealUpdate(RequestModel):
    recipe_id: str | None = Field(None, alias="recipeId")
    day_of_week: int | None = Field(None, ge=0, le=6, alias="dayOfWeek")
    meal_type: MealType | None = Field(None, alias="mealType")
    servings: int | None = Field(None, ge=1)
    notes: str | None = Field(None, max_length=500)


# =============================================================================
# Shopping lists
# =============================================================================


class ShoppingItemInput(RequestModel):
    name: str = Field(..., min_length=1, max_length=200)
    quantity: float = Field(..., gt=0, allow_inf_nan=False)
    unit: str = Field(..., min_length=1, max_length=50)
    category: str | None = Field(None, max_length=100)
    notes: str | None = Field(None, max_length=500)


class ShoppingListCreate(RequestModel):
    household_id: str = Field(..., alias="householdId")
    meal_plan_id: str | None = Field(None, alias="mealPlanId")
    name: str = Field(..., min_length=2, max_length=200)
    items: list[ShoppingItemInput] = Field(default_factory=list)


class FromMealPlanRequest(RequestModel):
    meal_plan_id: str = Field(..., alias="mealPlanId")
    name: str | None = Field(None, min_length=2, max_length=200)


class ShoppingListUpdate(RequestModel):
    name: str | None = Field(None, min_length=2, max_length=200)
    status: Status | None = None


class ShoppingItemUpdate(RequestModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    quantity: float | None = Field(None, gt=0, allow_inf_nan=False)
    unit: str | None = Field(None, min_length=1, max_length=50)
    category: str | None = Field(None, max_length=100)
    is_purchased: bool | None = None
    notes: str | None = Field(None, max_length=500)


# =============================================================================
# AI
# =============================================================================


class AIMealPlanRequest(RequestModel):
    household_id: str | None = Field(None, alias="householdId")
    household_size: int = Field(2, ge=1, le=20, alias="householdSize")
    budget: float = Field(150, gt=0, allow_inf_nan=False)
    dietary_restrictions: list[str] = Field(default_factory=list, alias="dietaryRestrictions")
    cuisine_preferences: list[str] = Field(default_factory=list, alias="cuisinePreferences")
    days: int = Field(7, ge=1, le=14)


class ChatMessage(RequestModel):
    role: Literal["user", "assistant", "system"]
    content: str


class ChatRequest(RequestModel):
    message: str = Field(..., min_length=1, max_length=5000)
    conversation_history: list[ChatMessage] = Field(
        default_factory=list, alias="conversationHistory"
    )
    household_id: str | None = Field(None, alias="householdId")
