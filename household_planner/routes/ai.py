"""AI meal-plan generation and chat endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import ai_service
from ..context import RequestContext, get_request_context
from ..database import get_db
from ..models import Household
from ..preferences import aggregate_preferences
from ..readers import load_dietary_preferences, load_household_members
from ..schemas import AIMealPlanRequest, ChatRequest
from .common import get_or_404

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["ai"])


def _household_inputs(db: Session, ctx: RequestContext, household_id: str | None):
    """(household, members, aggregated result), or (None, [], None) without a household."""
    if not household_id:
        return None, [], None
    ctx.require_household(household_id)
    household = get_or_404(db, Household, household_id, "Household")
    members = load_household_members(db, household.id)
    result = aggregate_preferences(members, load_dietary_preferences(db, household.id))
    return household, members, result


def _provider_error(e: Exception) -> HTTPException:
    if isinstance(e, ai_service.AIServiceUnavailable):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.post("/meal-plan")
def generate_meal_plan(
    body: AIMealPlanRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Generate a meal plan, honouring the household's aggregated preferences when given."""
    household, members, result = _household_inputs(db, ctx, body.household_id)

    try:
        plan = ai_service.generate_meal_plan(
            household=household,
            members=members,
            result=result,
            days=body.days,
            household_size=body.household_size,
            budget=body.budget,
            dietary_restrictions=body.dietary_restrictions,
            cuisine_preferences=body.cuisine_preferences,
        )
    except (ai_service.AIServiceUnavailable, ai_service.AIResponseError) as e:
        raise _provider_error(e)

    return {"success": True, "data": plan["data"], "usage": plan["usage"]}


@router.post("/chat")
def chat(
    body: ChatRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Conversational planning help. With householdId the household's preferences are included."""
    household, members, result = _household_inputs(db, ctx, body.household_id)
    context = ""
    if household is not None:
        context = ai_service.build_household_context(household, members, result)

    try:
        reply = ai_service.chat(
            body.message,
            [turn.model_dump() for turn in body.conversation_history],
            household_context=context,
        )
    except (ai_service.AIServiceUnavailable, ai_service.AIResponseError) as e:
        raise _provider_error(e)

    return {"success": True, **reply}
