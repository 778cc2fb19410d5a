"""Recipe endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..context import RequestContext, get_request_context
from ..database import get_db
from ..models import Recipe, RecipeIngredient
from ..preferences import parse_or_default
from ..readers import get_or_create_ingredient
from ..schemas import RecipeCreate, RecipeUpdate, SavedRecipe
from .common import get_or_404, load_meal

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/recipes", tags=["recipes"])


def _ingredient_lines(db: Session, ingredients) -> list[RecipeIngredient]:
    """Recipe lines in the given order, reusing existing ingredient rows by name."""
    lines = []
    for position, ing in enumerate(ingredients):
        ingredient = get_or_create_ingredient(db, ing.name, ing.category)
        lines.append(
            RecipeIngredient(
                ingredient_id=ingredient.id,
                quantity=ing.amount,
                unit=ing.unit,
                notes=getattr(ing, "notes", None),
                position=position,
            )
        )
    return lines


def _require_creator(recipe: Recipe, ctx: RequestContext, action: str) -> None:
    if recipe.created_by and recipe.created_by != ctx.user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"You can only {action} your own recipes",
        )


@router.post("", status_code=status.HTTP_201_CREATED)
def create_recipe(
    body: RecipeCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Create a recipe, reusing existing ingredient rows by name."""
    recipe = Recipe(
        name=body.name,
        description=body.description,
        prep_time=body.prep_time,
        cook_time=body.cook_time,
        servings=body.servings,
        difficulty=body.difficulty,
        cuisine=body.cuisine,
        instructions=body.instructions,
        nutrition_info=body.nutrition_info or {},
        tags=body.tags,
        image_url=body.image_url,
        created_by=ctx.user_id,
    )
    db.add(recipe)
    recipe.recipe_ingredients = _ingredient_lines(db, body.ingredients)

    db.commit()
    db.refresh(recipe)
    logger.info(f"Recipe created: {recipe.name} ({len(body.ingredients)} ingredients)")
    return {"success": True, "recipe": recipe.to_dict(include_ingredients=True)}


@router.get("")
def list_recipes(
    cuisine: str | None = None,
    difficulty: str | None = None,
    max_time: int | None = Query(None, alias="maxTime", ge=0),
    search: str | None = None,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """List recipes, newest first.

    maxTime bounds prep_time + cook_time; search matches name or description.
    """
    q = db.query(Recipe)
    if cuisine:
        q = q.filter(Recipe.cuisine == cuisine)
    if difficulty:
        q = q.filter(Recipe.difficulty == difficulty)
    if max_time is not None:
        q = q.filter((Recipe.prep_time + Recipe.cook_time) <= max_time)
    if search:
        term = f"%{search}%"
        q = q.filter(or_(Recipe.name.ilike(term), Recipe.description.ilike(term)))

    recipes = q.order_by(Recipe.created_at.desc()).all()
    return {
        "success": True,
        "count": len(recipes),
        "recipes": [r.to_dict() for r in recipes],
    }


@router.get("/my-recipes")
def list_my_recipes(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Recipes created by the caller, newest first."""
    recipes = (
        db.query(Recipe)
        .filter(Recipe.created_by == ctx.user_id)
        .order_by(Recipe.created_at.desc())
        .all()
    )
    return {
        "success": True,
        "count": len(recipes),
        "recipes": [r.to_dict() for r in recipes],
    }


@router.post("/save-from-meal/{meal_id}", status_code=status.HTTP_201_CREATED)
def save_recipe_from_meal(
    meal_id: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Copy the recipe an AI-generated plan stored in a meal's notes into the caller's library."""
    meal = load_meal(db, ctx, meal_id)
    try:
        data = SavedRecipe.model_validate(
            parse_or_default(meal.notes, {}, field_name="meal notes")
        )
    except ValidationError as e:
        logger.warning(f"Meal {meal_id} has no usable recipe data: {e.error_count()} errors")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid recipe data in meal",
        )

    recipe = Recipe(
        name=data.name,
        description=data.description,
        prep_time=data.prep_time,
        cook_time=data.cook_time,
        servings=data.servings,
        difficulty=data.difficulty,
        instructions=data.instructions,
        nutrition_info=data.nutrition,
        tags=data.tags,
        created_by=ctx.user_id,
    )
    db.add(recipe)
    recipe.recipe_ingredients = _ingredient_lines(db, data.ingredients)
    db.commit()
    logger.info(f"Recipe saved from meal {meal_id}: {recipe.name}")
    return {
        "success": True,
        "message": "Recipe saved to your library",
        "recipe": {"id": recipe.id, "name": recipe.name},
    }


@router.get("/{recipe_id}")
def get_recipe(
    recipe_id: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    recipe = get_or_404(db, Recipe, recipe_id, "Recipe")
    return {"success": True, "recipe": recipe.to_dict(include_ingredients=True)}


@router.put("/{recipe_id}")
def update_recipe(
    recipe_id: str,
    body: RecipeUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Update a recipe. Only its creator may change it."""
    recipe = get_or_404(db, Recipe, recipe_id, "Recipe")
    _require_creator(recipe, ctx, "update")

    changes = body.model_dump(exclude_none=True, exclude={"ingredients"})
    for field, value in changes.items():
        setattr(recipe, field, value)
    if body.ingredients is not None:
        recipe.recipe_ingredients = _ingredient_lines(db, body.ingredients)

    db.commit()
    db.refresh(recipe)
    logger.info(f"Recipe updated: {recipe_id}")
    return {
        "success": True,
        "message": "Recipe updated successfully",
        "recipe": recipe.to_dict(include_ingredients=True),
    }


@router.delete("/{recipe_id}")
def delete_recipe(
    recipe_id: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Delete a recipe. Only its creator may delete it."""
    recipe = get_or_404(db, Recipe, recipe_id, "Recipe")
    _require_creator(recipe, ctx, "delete")
    db.delete(recipe)
    db.commit()
    logger.info(f"Recipe deleted: {recipe_id}")
    return {"success": True, "message": "Recipe deleted successfully"}
