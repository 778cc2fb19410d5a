"""Household dietary preference aggregation.

Merges per-member restrictions, likes and dislikes with the household's
standalone preference records into a single de-duplicated view used by
the household summary and by meal-plan generation.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

logger = logging.getLogger(__name__)

# Typed restriction kinds that have a bucket of their own
ALLERGY = "allergy"
INTOLERANCE = "intolerance"
RESTRICTION = "restriction"
PREFERENCE = "preference"

# Standalone preference_type -> AggregatedPreferences field
PREFERENCE_TYPE_BUCKETS = {
    ALLERGY: "allergies",
    INTOLERANCE: "intolerances",
    RESTRICTION: "restrictions",
    PREFERENCE: "preferences",
}


@dataclass(frozen=True)
class PlainRestriction:
    """Free-text restriction such as "vegetarian"."""

    text: str


@dataclass(frozen=True)
class TypedRestriction:
    """Restriction tagged with a kind (allergy, intolerance, restriction)."""

    kind: str | None
    item: str | None
    severity: int | None = None


Restriction = PlainRestriction | TypedRestriction


@dataclass
class AggregatedPreferences:
    """De-duplicated household view. Each list keeps first-seen order."""

    allergies: list[str] = field(default_factory=list)
    intolerances: list[str] = field(default_factory=list)
    restrictions: list[str] = field(default_factory=list)
    preferences: list[str] = field(default_factory=list)
    dislikes: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "allergies": list(self.allergies),
            "intolerances": list(self.intolerances),
            "restrictions": list(self.restrictions),
            "preferences": list(self.preferences),
            "dislikes": list(self.dislikes),
        }


@dataclass
class HouseholdStats:
    total_members: int
    total_allergies: int
    total_restrictions: int

    def to_dict(self) -> dict[str, int]:
        return {
            "totalMembers": self.total_members,
            "totalAllergies": self.total_allergies,
            "totalRestrictions": self.total_restrictions,
        }


@dataclass
class AggregationResult:
    aggregated: AggregatedPreferences
    stats: HouseholdStats


def parse_or_default(raw: Any, default: Any, *, field_name: str = "value") -> Any:
    """Resolve a stored JSON column to a structured value.

    Already-structured values (lists, dicts) are returned unchanged and
    serialized text is decoded. Anything that cannot be decoded falls back
    to ``default`` with a warning.

    Args:
        raw: The stored value.
        default: Value to return when raw is missing or unparsable.
        field_name: Column name used in the log message.

    Returns:
        The decoded value, or default.
    """
    if raw is None:
        return default
    if isinstance(raw, (list, dict)):
        return raw
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Could not decode {field_name}, using default: {e}")
            return default
    logger.warning(
        f"Unexpected {type(raw).__name__} for {field_name}, using default"
    )
    return default


def parse_restriction(entry: Any) -> Restriction | None:
    """Convert one stored restriction entry to its typed form.

    Strings become PlainRestriction, mappings become TypedRestriction.
    Returns None for anything else.
    """
    if isinstance(entry, (PlainRestriction, TypedRestriction)):
        return entry
    if isinstance(entry, str):
        return PlainRestriction(entry)
    if isinstance(entry, dict):
        return TypedRestriction(
            kind=entry.get("type"),
            item=entry.get("item"),
            severity=entry.get("severity"),
        )
    logger.debug(f"Ignoring restriction entry of type {type(entry).__name__}")
    return None


def _get(record: Any, name: str, default: Any = None) -> Any:
    """Read a field from an ORM row or a plain mapping."""
    if isinstance(record, dict):
        return record.get(name, default)
    return getattr(record, name, default)


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        items = [v for v in value if isinstance(v, str)]
        if len(items) != len(value):
            logger.debug(f"Dropped {len(value) - len(items)} non-text preference entries")
        return items
    logger.debug(f"Ignoring preference list of type {type(value).__name__}")
    return []


def _dedupe(values: Iterable[str]) -> list[str]:
    # dict preserves insertion order; equality is exact and case-sensitive
    return list(dict.fromkeys(values))


def _collect_member(member: Any, into: AggregatedPreferences) -> None:
    restrictions = parse_or_default(
        _get(member, "dietary_restrictions"), [], field_name="dietary_restrictions"
    )
    if not isinstance(restrictions, list):
        logger.warning(
            f"dietary_restrictions for member {_get(member, 'name')!r} is not a list, skipping"
        )
        restrictions = []

    for entry in restrictions:
        restriction = parse_restriction(entry)
        if isinstance(restriction, PlainRestriction):
            into.restrictions.append(restriction.text)
        elif isinstance(restriction, TypedRestriction):
            if not restriction.item or not isinstance(restriction.item, str):
                logger.debug(f"Dropping typed restriction without item: {restriction}")
            elif restriction.kind == ALLERGY:
                into.allergies.append(restriction.item)
            elif restriction.kind == INTOLERANCE:
                into.intolerances.append(restriction.item)
            else:
                logger.debug(f"Dropping restriction with kind {restriction.kind!r}")

    prefs = parse_or_default(_get(member, "preferences"), {}, field_name="preferences")
    if not isinstance(prefs, dict):
        logger.warning(
            f"preferences for member {_get(member, 'name')!r} is not an object, skipping"
        )
        return
    into.dislikes.extend(_as_list(prefs.get("dislikes")))
    into.preferences.extend(_as_list(prefs.get("likes")))


def aggregate_preferences(members: Iterable[Any], preferences: Iterable[Any]) -> AggregationResult:
    """Aggregate a household's member data and standalone preference records.

    Args:
        members: HouseholdMember rows or mappings with dietary_restrictions
            and preferences.
        preferences: DietaryPreference rows or mappings with
            preference_type and item.

    Returns:
        AggregationResult with the de-duplicated buckets and summary stats.
    """
    members = list(members)
    aggregated = AggregatedPreferences()

    for member in members:
        _collect_member(member, aggregated)

    for pref in preferences:
        pref_type = _get(pref, "preference_type")
        bucket = PREFERENCE_TYPE_BUCKETS.get(pref_type)
        item = _get(pref, "item")
        if bucket is None or not item:
            logger.debug(f"Dropping preference record {pref_type!r}: {item!r}")
            continue
        getattr(aggregated, bucket).append(item)

    aggregated = AggregatedPreferences(
        allergies=_dedupe(aggregated.allergies),
        intolerances=_dedupe(aggregated.intolerances),
        restrictions=_dedupe(aggregated.restrictions),
        preferences=_dedupe(aggregated.preferences),
        dislikes=_dedupe(aggregated.dislikes),
    )

    stats = HouseholdStats(
        total_members=len(members),
        total_allergies=len(aggregated.allergies),
        total_restrictions=len(aggregated.restrictions),
    )
    return AggregationResult(aggregated=aggregated, stats=stats)
