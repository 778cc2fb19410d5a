"""Helpers shared by the API routers."""

from typing import TypeVar

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from ..context import RequestContext
from ..models import Base, MealPlanMeal

ModelT = TypeVar("ModelT", bound=Base)


def not_found(label: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")


def get_or_404(db: Session, model: type[ModelT], object_id: str, label: str) -> ModelT:
    """Load a row by primary key or raise 404 "<label> not found"."""
    obj = db.get(model, object_id)
    if obj is None:
        raise not_found(label)
    return obj


def load_meal(db: Session, ctx: RequestContext, meal_id: str) -> MealPlanMeal:
    """Load a planned meal, checking the caller belongs to its plan's household."""
    meal = get_or_404(db, MealPlanMeal, meal_id, "Meal")
    ctx.require_household(meal.meal_plan.household_id)
    return meal
