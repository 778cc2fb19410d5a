"""Meal plan models for weekly meal planning."""

import enum
from datetime import date
from typing import Optional

from sqlalchemy import Integer, String, Float, Date, Enum, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, new_id


class MealPlanStatus(enum.Enum):
    """Status of a meal plan."""

    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class MealPlan(Base, TimestampMixin):
    """Model for storing weekly meal plans."""

    __tablename__ = "meal_plans"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    week_start: Mapped[date] = mapped_column(Date, nullable=False)
    week_end: Mapped[date | None] = mapped_column(Date, nullable=True)
    budget: Mapped[float | None] = mapped_column(Float, nullable=True)
    status: Mapped[MealPlanStatus] = mapped_column(
        Enum(MealPlanStatus), default=MealPlanStatus.ACTIVE, nullable=False
    )
    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)

    household: Mapped["Household"] = relationship("Household", back_populates="meal_plans")
    meals: Mapped[list["MealPlanMeal"]] = relationship(
        "MealPlanMeal",
        back_populates="meal_plan",
        cascade="all, delete-orphan",
        order_by="MealPlanMeal.day_of_week",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "household_id": self.household_id,
            "week_start": self.week_start.isoformat() if self.week_start else None,
            "week_end": self.week_end.isoformat() if self.week_end else None,
            "budget": self.budget,
            "status": self.status.value,
            "created_by": self.created_by,
        }

    def __repr__(self) -> str:
        return f"<MealPlan(id={self.id}, week_start={self.week_start}, status={self.status.value})>"


class MealPlanMeal(Base):
    """One planned meal: a recipe in a day/meal-type slot.

    day_of_week is 0-6; meal_type is breakfast, lunch, dinner, or snack.
    """

    __tablename__ = "meal_plan_meals"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    meal_plan_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("meal_plans.id", ondelete="CASCADE"), nullable=False
    )
    recipe_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("recipes.id", ondelete="SET NULL"), nullable=True
    )
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    meal_type: Mapped[str] = mapped_column(String(20), nullable=False)
    servings: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    meal_plan: Mapped["MealPlan"] = relationship("MealPlan", back_populates="meals")
    recipe: Mapped[Optional["Recipe"]] = relationship("Recipe")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "meal_plan_id": self.meal_plan_id,
            "recipe_id": self.recipe_id,
            "recipe_name": self.recipe.name if self.recipe else None,
            "day_of_week": self.day_of_week,
            "meal_type": self.meal_type,
            "servings": self.servings,
            "notes": self.notes,
        }

    def __repr__(self) -> str:
        return f"<MealPlanMeal(id={self.id}, day={self.day_of_week}, type='{self.meal_type}')>"
