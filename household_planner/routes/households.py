"""Household, member and dietary preference endpoints."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..context import RequestContext, get_request_context
from ..database import get_db
from ..models import DietaryPreference, Household, HouseholdMember
from ..preferences import aggregate_preferences, parse_or_default
from ..readers import load_dietary_preferences, load_household_members
from ..schemas import HouseholdCreate, HouseholdUpdate, MemberCreate, PreferenceCreate
from .common import get_or_404, not_found

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/households", tags=["households"])


def member_to_dict(member: HouseholdMember) -> dict:
    """Serialize a member with its JSON columns decoded."""
    return {
        "id": member.id,
        "household_id": member.household_id,
        "name": member.name,
        "age": member.age,
        "dietary_restrictions": parse_or_default(
            member.dietary_restrictions, [], field_name="dietary_restrictions"
        ),
        "preferences": parse_or_default(member.preferences, {}, field_name="preferences"),
    }


def _load_household(db: Session, ctx: RequestContext, household_id: str) -> Household:
    ctx.require_household(household_id)
    return get_or_404(db, Household, household_id, "Household")


# =============================================================================
# Households
# =============================================================================


@router.post("", status_code=status.HTTP_201_CREATED)
def create_household(
    body: HouseholdCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    household = Household(
        name=body.name,
        budget_weekly=body.budget_weekly or 0,
        created_by=ctx.user_id,
    )
    db.add(household)
    db.commit()
    db.refresh(household)
    logger.info(f"Household created: {household.id} by user {ctx.user_id}")
    return {"success": True, "household": household.to_dict()}


@router.get("/{household_id}")
def get_household(
    household_id: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    household = _load_household(db, ctx, household_id)
    return {"success": True, "household": household.to_dict()}


@router.put("/{household_id}")
def update_household(
    household_id: str,
    body: HouseholdUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    household = _load_household(db, ctx, household_id)
    if body.name is not None:
        household.name = body.name
    if body.budget_weekly is not None:
        household.budget_weekly = body.budget_weekly
    db.commit()
    db.refresh(household)
    logger.info(f"Household updated: {household_id}")
    return {
        "success": True,
        "message": "Household updated successfully",
        "household": household.to_dict(),
    }


@router.delete("/{household_id}")
def delete_household(
    household_id: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    household = _load_household(db, ctx, household_id)
    db.delete(household)
    db.commit()
    logger.info(f"Household deleted: {household_id}")
    return {"success": True, "message": "Household deleted successfully"}


@router.get("/{household_id}/summary")
def get_household_summary(
    household_id: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Household with members, preference records and the aggregated view."""
    household = _load_household(db, ctx, household_id)
    members = load_household_members(db, household_id)
    preferences = load_dietary_preferences(db, household_id)

    result = aggregate_preferences(members, preferences)

    return {
        "success": True,
        "household": household.to_dict(),
        "members": [member_to_dict(m) for m in members],
        "preferences": [p.to_dict() for p in preferences],
        "aggregated": result.aggregated.to_dict(),
        "stats": {
            **result.stats.to_dict(),
            "weeklyBudget": household.budget_weekly,
        },
    }


# =============================================================================
# Members
# =============================================================================


@router.post("/{household_id}/members", status_code=status.HTTP_201_CREATED)
def add_member(
    household_id: str,
    body: MemberCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    _load_household(db, ctx, household_id)
    member = HouseholdMember(
        household_id=household_id,
        name=body.name,
        age=body.age,
        dietary_restrictions=body.restrictions_json(),
        preferences=body.preferences.model_dump(),
    )
    db.add(member)
    db.commit()
    db.refresh(member)
    logger.info(f"Member {member.id} added to household {household_id}")
    return {"success": True, "member": member_to_dict(member)}


@router.get("/{household_id}/members")
def list_members(
    household_id: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    _load_household(db, ctx, household_id)
    members = load_household_members(db, household_id)
    return {"success": True, "members": [member_to_dict(m) for m in members]}


def _load_member(db: Session, household_id: str, member_id: str) -> HouseholdMember:
    member = get_or_404(db, HouseholdMember, member_id, "Member")
    if member.household_id != household_id:
        raise not_found("Member")
    return member


@router.put("/{household_id}/members/{member_id}")
def update_member(
    household_id: str,
    member_id: str,
    body: MemberCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Replace a member's details."""
    _load_household(db, ctx, household_id)
    member = _load_member(db, household_id, member_id)
    member.name = body.name
    member.age = body.age
    member.dietary_restrictions = body.restrictions_json()
    member.preferences = body.preferences.model_dump()
    db.commit()
    db.refresh(member)
    logger.info(f"Member {member_id} updated")
    return {
        "success": True,
        "message": "Member updated successfully",
        "member": member_to_dict(member),
    }


@router.delete("/{household_id}/members/{member_id}")
def remove_member(
    household_id: str,
    member_id: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    _load_household(db, ctx, household_id)
    member = _load_member(db, household_id, member_id)
    db.delete(member)
    db.commit()
    logger.info(f"Member {member_id} removed from household {household_id}")
    return {"success": True, "message": "Member removed successfully"}


# =============================================================================
# Standalone dietary preferences
# =============================================================================


@router.post("/{household_id}/preferences", status_code=status.HTTP_201_CREATED)
def add_preference(
    household_id: str,
    body: PreferenceCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    _load_household(db, ctx, household_id)
    preference = DietaryPreference(
        household_id=household_id,
        user_id=body.user_id or ctx.user_id,
        preference_type=body.preference_type,
        item=body.item,
        severity=body.severity,
    )
    db.add(preference)
    db.commit()
    db.refresh(preference)
    logger.info(
        f"Preference {preference.preference_type}:{preference.item} added to household {household_id}"
    )
    return {"success": True, "preference": preference.to_dict()}


@router.get("/{household_id}/preferences")
def list_preferences(
    household_id: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    _load_household(db, ctx, household_id)
    preferences = load_dietary_preferences(db, household_id)
    return {"success": True, "preferences": [p.to_dict() for p in preferences]}


@router.delete("/{household_id}/preferences/{preference_id}")
def remove_preference(
    household_id: str,
    preference_id: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    _load_household(db, ctx, household_id)
    preference = get_or_404(db, DietaryPreference, preference_id, "Preference")
    if preference.household_id != household_id:
        raise not_found("Preference")
    db.delete(preference)
    db.commit()
    logger.info(f"Preference {preference_id} removed from household {household_id}")
    return {"success": True, "message": "Preference removed successfully"}
