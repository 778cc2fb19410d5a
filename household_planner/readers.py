"""Database readers that feed the aggregation and consolidation logic."""

import logging

from sqlalchemy.orm import Session

from .models import (
    DietaryPreference,
    HouseholdMember,
    Ingredient,
    MealPlanMeal,
    RecipeIngredient,
    normalize_name,
)

logger = logging.getLogger(__name__)


def load_household_members(db_session: Session, household_id: str) -> list[HouseholdMember]:
    """Get all members of a household."""
    return (
        db_session.query(HouseholdMember)
        .filter(HouseholdMember.household_id == household_id)
        .order_by(HouseholdMember.created_at)
        .all()
    )


def load_dietary_preferences(db_session: Session, household_id: str) -> list[DietaryPreference]:
    """Get the standalone preference records of a household."""
    return (
        db_session.query(DietaryPreference)
        .filter(DietaryPreference.household_id == household_id)
        .order_by(DietaryPreference.created_at)
        .all()
    )


def collect_meal_plan_ingredients(db_session: Session, meal_plan_id: str) -> list[dict]:
    """Flatten every recipe ingredient referenced by a meal plan.

    A recipe planned for several meals contributes its ingredients once
    per meal. Meals without a recipe are skipped.

    Returns:
        List of {name, quantity, unit, category, ingredient_id} dicts in
        meal order.
    """
    meals = (
        db_session.query(MealPlanMeal)
        .filter(MealPlanMeal.meal_plan_id == meal_plan_id)
        .order_by(MealPlanMeal.day_of_week, MealPlanMeal.meal_type)
        .all()
    )

    all_ingredients = []
    for meal in meals:
        if not meal.recipe_id:
            continue

        rows = (
            db_session.query(RecipeIngredient, Ingredient)
            .join(Ingredient, RecipeIngredient.ingredient_id == Ingredient.id)
            .filter(RecipeIngredient.recipe_id == meal.recipe_id)
            .order_by(RecipeIngredient.position)
            .all()
        )
        for ri, ingredient in rows:
            all_ingredients.append({
                "name": ingredient.name,
                "quantity": ri.quantity,
                "unit": ri.unit,
                "category": ingredient.category,
                "ingredient_id": ingredient.id,
            })

    logger.info(
        f"Collected {len(all_ingredients)} ingredient rows from {len(meals)} meals "
        f"(meal_plan_id={meal_plan_id})"
    )
    return all_ingredients


def find_ingredient(db_session: Session, name: str) -> Ingredient | None:
    """Find an ingredient by normalized name."""
    return (
        db_session.query(Ingredient)
        .filter(Ingredient.normalized_name == normalize_name(name))
        .first()
    )


def get_or_create_ingredient(
    db_session: Session, name: str, category: str | None = None
) -> Ingredient:
    """Find existing ingredient by normalized name, or create new one."""
    ingredient = find_ingredient(db_session, name)
    if not ingredient:
        ingredient = Ingredient(name=name.strip(), category=category)
        db_session.add(ingredient)
        db_session.flush()
    elif category and not ingredient.category:
        ingredient.category = category
    return ingredient
