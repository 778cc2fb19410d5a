"""Shopping list ingredient consolidation.

Merges recipe ingredients gathered from every meal in a plan into one
line per (name, unit) pair. Names match case-insensitively; units match
verbatim, so "lb" and "lbs" stay separate lines.
"""

import logging
import math
from dataclasses import dataclass, asdict
from decimal import Decimal
from typing import Any, Iterable

logger = logging.getLogger(__name__)


class InvalidQuantityError(ValueError):
    """Raised when an ingredient quantity cannot be summed."""

    def __init__(self, name: str, quantity: Any):
        self.name = name
        self.quantity = quantity
        super().__init__(f"Invalid quantity {quantity!r} for ingredient '{name}'")


@dataclass
class ShoppingItem:
    """A consolidated shopping list line."""

    name: str
    quantity: float
    unit: str | None
    category: str | None = None
    ingredient_id: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


def consolidation_key(name: str, unit: str | None) -> tuple[str, str | None]:
    """Build the grouping key for an ingredient line."""
    return (name.lower(), unit)


def _coerce_quantity(name: str, quantity: Any) -> float:
    """Return quantity as a finite number, or raise InvalidQuantityError.

    Numeric strings are accepted since some drivers return DECIMAL
    columns as text. NaN and infinity are rejected in every form.
    """
    if isinstance(quantity, bool) or quantity is None:
        raise InvalidQuantityError(name, quantity)
    if isinstance(quantity, Decimal) and not quantity.is_finite():
        raise InvalidQuantityError(name, quantity)
    if isinstance(quantity, (int, float, Decimal)):
        value = float(quantity)
    elif isinstance(quantity, str):
        try:
            value = float(quantity.strip())
        except ValueError:
            raise InvalidQuantityError(name, quantity) from None
    else:
        raise InvalidQuantityError(name, quantity)
    if not math.isfinite(value):
        raise InvalidQuantityError(name, quantity)
    return value


def _to_shopping_item(item: Any) -> ShoppingItem:
    if isinstance(item, ShoppingItem):
        _coerce_quantity(item.name, item.quantity)
        return item
    name = item["name"]
    return ShoppingItem(
        name=name,
        quantity=_coerce_quantity(name, item.get("quantity")),
        unit=item.get("unit"),
        category=item.get("category") or None,
        ingredient_id=item.get("ingredient_id") or item.get("ingredientId") or None,
    )


def consolidate_ingredients(items: Iterable[Any]) -> list[ShoppingItem]:
    """Merge duplicate ingredients by lowercase name and unit.

    The first entry seen for a key supplies the display name, unit,
    category and ingredient_id. Later entries only add their quantity.

    Args:
        items: Mappings with name, quantity, unit and optional category /
            ingredient_id, or ShoppingItem values.

    Returns:
        Consolidated items in first-seen order.

    Raises:
        InvalidQuantityError: If an entry's quantity is missing, not numeric
            or not finite.
    """
    consolidated: dict[tuple[str, str | None], ShoppingItem] = {}

    for raw in items:
        item = _to_shopping_item(raw)
        key = consolidation_key(item.name, item.unit)

        existing = consolidated.get(key)
        if existing is not None:
            existing.quantity += item.quantity
        else:
            consolidated[key] = ShoppingItem(
                name=item.name,
                quantity=item.quantity,
                unit=item.unit,
                category=item.category,
                ingredient_id=item.ingredient_id,
            )

    logger.debug(f"Consolidated ingredients into {len(consolidated)} lines")
    return list(consolidated.values())
