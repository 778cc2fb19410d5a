"""Meal plan endpoints."""

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..context import RequestContext, get_request_context
from ..database import get_db
from ..models import MealPlan, MealPlanMeal, MealPlanStatus, Recipe
from ..schemas import MealInput, MealPlanCreate, MealPlanUpdate, MealUpdate, Status
from .common import get_or_404, load_meal, not_found

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/meal-plans", tags=["meal-plans"])


def _new_meal(db: Session, meal: MealInput) -> MealPlanMeal:
    if meal.recipe_id and db.get(Recipe, meal.recipe_id) is None:
        raise not_found("Recipe")
    return MealPlanMeal(
        recipe_id=meal.recipe_id,
        day_of_week=meal.day_of_week,
        meal_type=meal.meal_type,
        servings=meal.servings,
        notes=meal.notes,
    )


def _load_plan(db: Session, ctx: RequestContext, meal_plan_id: str) -> MealPlan:
    plan = get_or_404(db, MealPlan, meal_plan_id, "Meal plan")
    ctx.require_household(plan.household_id)
    return plan



def _plan_detail(plan: MealPlan) -> dict:
    """Meal plan with its meals, also grouped by day of week."""
    meals = sorted(plan.meals, key=lambda m: (m.day_of_week, m.meal_type))
    meal_dicts = [m.to_dict() for m in meals]

    grouped: dict[str, list[dict]] = {}
    for meal in meal_dicts:
        grouped.setdefault(str(meal["day_of_week"]), []).append(meal)

    return {
        **plan.to_dict(),
        "meals": meal_dicts,
        "groupedMeals": grouped,
        "totalMeals": len(meal_dicts),
    }

@router.post("", status_code=status.HTTP_201_CREATED)
def create_meal_plan(
    body: MealPlanCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    ctx.require_household(body.household_id)
    plan = MealPlan(
        household_id=body.household_id,
        week_start=body.week_start,
        week_end=body.week_end,
        budget=body.budget,
        status=MealPlanStatus.ACTIVE,
        created_by=ctx.user_id,
    )
    plan.meals = [_new_meal(db, meal) for meal in body.meals]
    db.add(plan)
    db.commit()
    db.refresh(plan)
    logger.info(f"Meal plan created: {plan.id} with {len(body.meals)} meals")
    return {
        "success": True,
        "mealPlan": {**plan.to_dict(), "mealCount": len(body.meals)},
    }


@router.get("/household/{household_id}")
def list_meal_plans(
    household_id: str,
    status_filter: Status | None = Query(None, alias="status"),
    limit: int | None = Query(None, ge=1),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """List a household's meal plans, latest week first, with meal counts."""
    ctx.require_household(household_id)
    q = db.query(MealPlan).filter(MealPlan.household_id == household_id)
    if status_filter:
        q = q.filter(MealPlan.status == MealPlanStatus(status_filter))
    q = q.order_by(MealPlan.week_start.desc())
    if limit:
        q = q.limit(limit)
    plans = q.all()

    counts = {}
    if plans:
        rows = (
            db.query(MealPlanMeal.meal_plan_id, func.count(MealPlanMeal.id))
            .filter(MealPlanMeal.meal_plan_id.in_([p.id for p in plans]))
            .group_by(MealPlanMeal.meal_plan_id)
            .all()
        )
        counts = dict(rows)

    return {
        "success": True,
        "count": len(plans),
        "mealPlans": [{**p.to_dict(), "mealCount": counts.get(p.id, 0)} for p in plans],
    }


@router.get("/household/{household_id}/current")
def get_current_meal_plan(
    household_id: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """The active plan covering today; open-ended plans run until replaced."""
    ctx.require_household(household_id)
    today = date.today()
    plan = (
        db.query(MealPlan)
        .filter(
            MealPlan.household_id == household_id,
            MealPlan.status == MealPlanStatus.ACTIVE,
            MealPlan.week_start <= today,
            or_(MealPlan.week_end.is_(None), MealPlan.week_end >= today),
        )
        .order_by(MealPlan.week_start.desc())
        .first()
    )
    if plan is None:
        return {
            "success": True,
            "mealPlan": None,
            "message": "No active meal plan for current week",
        }
    return {"success": True, "mealPlan": _plan_detail(plan)}


@router.get("/{meal_plan_id}")
def get_meal_plan(
    meal_plan_id: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    plan = _load_plan(db, ctx, meal_plan_id)
    return {"success": True, "mealPlan": _plan_detail(plan)}


@router.put("/{meal_plan_id}")
def update_meal_plan(
    meal_plan_id: str,
    body: MealPlanUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    plan = _load_plan(db, ctx, meal_plan_id)
    if body.week_start is not None:
        plan.week_start = body.week_start
    if body.week_end is not None:
        plan.week_end = body.week_end
    if body.budget is not None:
        plan.budget = body.budget
    if body.status is not None:
        plan.status = MealPlanStatus(body.status)
    db.commit()
    db.refresh(plan)
    logger.info(f"Meal plan updated: {meal_plan_id} (status={plan.status.value})")
    return {
        "success": True,
        "message": "Meal plan updated successfully",
        "mealPlan": plan.to_dict(),
    }


@router.delete("/{meal_plan_id}")
def delete_meal_plan(
    meal_plan_id: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Delete a plan and its meals. Only the plan's creator may do this."""
    plan = _load_plan(db, ctx, meal_plan_id)
    if plan.created_by and plan.created_by != ctx.user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the creator can delete this meal plan",
        )
    db.delete(plan)
    db.commit()
    logger.info(f"Meal plan deleted: {meal_plan_id}")
    return {"success": True, "message": "Meal plan deleted successfully"}


@router.post("/{meal_plan_id}/meals", status_code=status.HTTP_201_CREATED)
def add_meal(
    meal_plan_id: str,
    body: MealInput,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    plan = _load_plan(db, ctx, meal_plan_id)
    meal = _new_meal(db, body)
    plan.meals.append(meal)
    db.commit()
    db.refresh(meal)
    logger.info(f"Meal added to plan {meal_plan_id}: day {meal.day_of_week} {meal.meal_type}")
    return {"success": True, "meal": meal.to_dict()}


@router.put("/meals/{meal_id}")
def update_meal(
    meal_id: str,
    body: MealUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Change a planned meal's recipe, slot, servings or notes."""
    meal = load_meal(db, ctx, meal_id)
    changes = body.model_dump(exclude_none=True)
    if changes.get("recipe_id") and db.get(Recipe, changes["recipe_id"]) is None:
        raise not_found("Recipe")
    for field, value in changes.items():
        setattr(meal, field, value)
    db.commit()
    db.refresh(meal)
    logger.info(f"Meal updated: {meal_id} ({', '.join(changes) or 'no changes'})")
    return {
        "success": True,
        "message": "Meal updated successfully",
        "meal": meal.to_dict(),
    }


@router.delete("/meals/{meal_id}")
def delete_meal(
    meal_id: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    meal = load_meal(db, ctx, meal_id)
    db.delete(meal)
    db.commit()
    logger.info(f"Meal removed: {meal_id}")
    return {"success": True, "message": "Meal removed from plan successfully"}
