"""Shopping list endpoints, including generation from a meal plan."""

import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import case, func
from sqlalchemy.orm import Session

from ..consolidation import InvalidQuantityError, consolidate_ingredients
from ..context import RequestContext, get_request_context
from ..database import get_db
from ..models import MealPlan, ShoppingList, ShoppingListItem, ShoppingListStatus
from ..readers import collect_meal_plan_ingredients, find_ingredient
from ..schemas import (
    FromMealPlanRequest,
    ShoppingItemInput,
    ShoppingItemUpdate,
    ShoppingListCreate,
    ShoppingListUpdate,
    Status,
)
from .common import get_or_404

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/shopping", tags=["shopping"])

UNCATEGORIZED = "Uncategorized"


def _default_list_name() -> str:
    return f"Shopping List - {date.today().isoformat()}"


def _load_list(db: Session, ctx: RequestContext, shopping_list_id: str) -> ShoppingList:
    shopping_list = get_or_404(db, ShoppingList, shopping_list_id, "Shopping list")
    ctx.require_household(shopping_list.household_id)
    return shopping_list


def _load_item(db: Session, ctx: RequestContext, item_id: str) -> ShoppingListItem:
    item = get_or_404(db, ShoppingListItem, item_id, "Item")
    ctx.require_household(item.shopping_list.household_id)
    return item


def _manual_item(db: Session, item: ShoppingItemInput) -> ShoppingListItem:
    """Build an item row, linking a known ingredient and borrowing its category."""
    ingredient = find_ingredient(db, item.name)
    category = item.category
    if ingredient is not None:
        category = category or ingredient.category
    return ShoppingListItem(
        ingredient_id=ingredient.id if ingredient else None,
        name=item.name,
        quantity=item.quantity,
        unit=item.unit,
        category=category,
        is_purchased=False,
        notes=item.notes,
    )


# =============================================================================
# Shopping lists
# =============================================================================


@router.post("/from-meal-plan", status_code=status.HTTP_201_CREATED)
def create_from_meal_plan(
    body: FromMealPlanRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Generate a shopping list holding one consolidated line per ingredient and unit."""
    meal_plan = get_or_404(db, MealPlan, body.meal_plan_id, "Meal plan")
    ctx.require_household(meal_plan.household_id)

    ingredients = collect_meal_plan_ingredients(db, meal_plan.id)
    try:
        consolidated = consolidate_ingredients(ingredients)
    except InvalidQuantityError as e:
        logger.error(f"Cannot consolidate meal plan {meal_plan.id}: {e}")
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    shopping_list = ShoppingList(
        household_id=meal_plan.household_id,
        meal_plan_id=meal_plan.id,
        name=body.name or _default_list_name(),
        status=ShoppingListStatus.ACTIVE,
    )
    shopping_list.items = [
        ShoppingListItem(
            ingredient_id=item.ingredient_id,
            name=item.name,
            quantity=item.quantity,
            unit=item.unit,
            category=item.category,
            is_purchased=False,
        )
        for item in consolidated
    ]
    db.add(shopping_list)
    db.commit()
    db.refresh(shopping_list)

    logger.info(
        f"Shopping list {shopping_list.id} created from meal plan {meal_plan.id}: "
        f"{len(ingredients)} ingredient rows -> {len(consolidated)} items"
    )
    return {
        "success": True,
        "shoppingList": {
            "id": shopping_list.id,
            "householdId": shopping_list.household_id,
            "mealPlanId": shopping_list.meal_plan_id,
            "name": shopping_list.name,
            "itemCount": len(consolidated),
        },
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_shopping_list(
    body: ShoppingListCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    ctx.require_household(body.household_id)
    shopping_list = ShoppingList(
        household_id=body.household_id,
        meal_plan_id=body.meal_plan_id,
        name=body.name,
        status=ShoppingListStatus.ACTIVE,
    )
    shopping_list.items = [_manual_item(db, item) for item in body.items]
    db.add(shopping_list)
    db.commit()
    db.refresh(shopping_list)
    logger.info(f"Shopping list created: {shopping_list.id} with {len(body.items)} items")
    return {
        "success": True,
        "shoppingList": {
            "id": shopping_list.id,
            "householdId": shopping_list.household_id,
            "mealPlanId": shopping_list.meal_plan_id,
            "name": shopping_list.name,
            "itemCount": len(body.items),
        },
    }


@router.get("/household/{household_id}")
def list_shopping_lists(
    household_id: str,
    status_filter: Status | None = Query(None, alias="status"),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """List a household's shopping lists, newest first, with item counts."""
    ctx.require_household(household_id)
    q = db.query(ShoppingList).filter(ShoppingList.household_id == household_id)
    if status_filter:
        q = q.filter(ShoppingList.status == ShoppingListStatus(status_filter))
    lists = q.order_by(ShoppingList.created_at.desc()).all()

    counts = {}
    if lists:
        rows = (
            db.query(
                ShoppingListItem.shopping_list_id,
                func.count(ShoppingListItem.id),
                func.sum(case((ShoppingListItem.is_purchased.is_(True), 1), else_=0)),
            )
            .filter(ShoppingListItem.shopping_list_id.in_([sl.id for sl in lists]))
            .group_by(ShoppingListItem.shopping_list_id)
            .all()
        )
        counts = {list_id: (total, purchased) for list_id, total, purchased in rows}

    results = []
    for sl in lists:
        total, purchased = counts.get(sl.id, (0, 0))
        results.append({**sl.to_dict(), "totalItems": total, "purchasedItems": purchased})

    return {"success": True, "count": len(results), "shoppingLists": results}


@router.get("/{shopping_list_id}")
def get_shopping_list(
    shopping_list_id: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Shopping list with its items, also grouped by category."""
    shopping_list = _load_list(db, ctx, shopping_list_id)
    items = sorted(shopping_list.items, key=lambda i: (i.category or "", i.name))
    item_dicts = [i.to_dict() for i in items]

    grouped: dict[str, list[dict]] = {}
    for item in item_dicts:
        grouped.setdefault(item["category"] or UNCATEGORIZED, []).append(item)

    return {
        "success": True,
        "shoppingList": {
            **shopping_list.to_dict(),
            "items": item_dicts,
            "groupedItems": grouped,
            "totalItems": len(item_dicts),
            "purchasedItems": sum(1 for i in items if i.is_purchased),
        },
    }


@router.put("/{shopping_list_id}")
def update_shopping_list(
    shopping_list_id: str,
    body: ShoppingListUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Rename a list or change its status. Completing a list stamps completed_at."""
    shopping_list = _load_list(db, ctx, shopping_list_id)
    if body.name is not None:
        shopping_list.name = body.name
    if body.status is not None:
        shopping_list.status = ShoppingListStatus(body.status)
        if shopping_list.status == ShoppingListStatus.COMPLETED:
            shopping_list.completed_at = datetime.utcnow()
    db.commit()
    db.refresh(shopping_list)
    logger.info(f"Shopping list updated: {shopping_list_id} (status={shopping_list.status.value})")
    return {
        "success": True,
        "message": "Shopping list updated successfully",
        "shoppingList": shopping_list.to_dict(),
    }


@router.delete("/{shopping_list_id}")
def delete_shopping_list(
    shopping_list_id: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    shopping_list = _load_list(db, ctx, shopping_list_id)
    db.delete(shopping_list)
    db.commit()
    logger.info(f"Shopping list deleted: {shopping_list_id}")
    return {"success": True, "message": "Shopping list deleted successfully"}


# =============================================================================
# Items
# =============================================================================


@router.post("/{shopping_list_id}/items", status_code=status.HTTP_201_CREATED)
def add_item(
    shopping_list_id: str,
    body: ShoppingItemInput,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    shopping_list = _load_list(db, ctx, shopping_list_id)
    item = _manual_item(db, body)
    shopping_list.items.append(item)
    db.commit()
    db.refresh(item)
    logger.info(f"Item {item.name} added to shopping list {shopping_list_id}")
    return {"success": True, "item": item.to_dict()}


@router.put("/items/{item_id}")
def update_item(
    item_id: str,
    body: ShoppingItemUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    item = _load_item(db, ctx, item_id)
    for field_name, value in body.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(item, field_name, value)
    db.commit()
    db.refresh(item)
    return {"success": True, "message": "Item updated successfully", "item": item.to_dict()}


@router.patch("/items/{item_id}/toggle")
def toggle_item_purchased(
    item_id: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    item = _load_item(db, ctx, item_id)
    item.is_purchased = not item.is_purchased
    db.commit()
    db.refresh(item)
    return {"success": True, "item": item.to_dict()}


@router.delete("/items/{item_id}")
def delete_item(
    item_id: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    item = _load_item(db, ctx, item_id)
    db.delete(item)
    db.commit()
    logger.info(f"Item deleted: {item_id}")
    return {"success": True, "message": "Item deleted successfully"}
