"""
Tests for shopping list ingredient consolidation.
"""

from decimal import Decimal

import pytest

from household_planner.consolidation import (
    InvalidQuantityError,
    ShoppingItem,
    consolidate_ingredients,
    consolidation_key,
)


def line(name, unit, quantity, **extra):
    return {"name": name, "unit": unit, "quantity": quantity, **extra}


class TestConsolidateIngredients:
    """Merging duplicate ingredient lines."""

    def test_names_merge_case_insensitively(self):
        result = consolidate_ingredients([line("Eggs", "dozen", 1), line("eggs", "dozen", 2)])

        assert len(result) == 1
        assert result[0].name == "Eggs"
        assert result[0].unit == "dozen"
        assert result[0].quantity == 3

    def test_different_units_stay_separate(self):
        result = consolidate_ingredients([line("Flour", "lb", 1), line("Flour", "kg", 1)])

        assert [(i.name, i.unit, i.quantity) for i in result] == [
            ("Flour", "lb", 1),
            ("Flour", "kg", 1),
        ]

    def test_unit_spellings_are_not_normalized(self):
        result = consolidate_ingredients([line("Beef", "lb", 1), line("Beef", "lbs", 2)])
        assert len(result) == 2

    def test_first_seen_entry_supplies_metadata(self):
        result = consolidate_ingredients([
            line("Milk", "cup", 1, category="Dairy", ingredient_id="ing-1"),
            line("milk", "cup", 2, category="Other", ingredient_id="ing-2"),
        ])

        assert result == [
            ShoppingItem(name="Milk", quantity=3, unit="cup", category="Dairy", ingredient_id="ing-1")
        ]

    def test_consolidation_is_idempotent(self):
        once = consolidate_ingredients([
            line("Eggs", "dozen", 1),
            line("eggs", "dozen", 2),
            line("Flour", "lb", 1),
        ])
        twice = consolidate_ingredients(once)

        assert twice == once

    def test_inputs_are_not_mutated(self):
        first = ShoppingItem(name="Rice", quantity=1, unit="cup")
        consolidate_ingredients([first, ShoppingItem(name="rice", quantity=2, unit="cup")])
        assert first.quantity == 1

    def test_preserves_first_seen_order(self):
        result = consolidate_ingredients([
            line("Onion", "piece", 1),
            line("Garlic", "clove", 2),
            line("onion", "piece", 1),
        ])
        assert [i.name for i in result] == ["Onion", "Garlic"]

    def test_empty_input(self):
        assert consolidate_ingredients([]) == []

    def test_tomato_scenario(self):
        result = consolidate_ingredients([
            line("Tomato", "lb", 2),
            line("tomato", "lb", 1.5),
            line("Onion", "piece", 3),
        ])

        assert [i.to_dict() for i in result] == [
            {"name": "Tomato", "quantity": 3.5, "unit": "lb", "category": None, "ingredient_id": None},
            {"name": "Onion", "quantity": 3, "unit": "piece", "category": None, "ingredient_id": None},
        ]


class TestQuantities:
    """Quantity coercion and rejection."""

    def test_numeric_strings_are_coerced(self):
        result = consolidate_ingredients([line("Sugar", "cup", "1.5"), line("sugar", "cup", 1)])
        assert result[0].quantity == pytest.approx(2.5)

    def test_decimal_quantities_are_accepted(self):
        result = consolidate_ingredients([line("Oil", "tbsp", Decimal("2.25"))])
        assert result[0].quantity == pytest.approx(2.25)

    @pytest.mark.parametrize("bad", [None, "a pinch", True, [1]])
    def test_invalid_quantities_raise(self, bad):
        with pytest.raises(InvalidQuantityError) as exc_info:
            consolidate_ingredients([line("Salt", "tsp", bad)])

        assert exc_info.value.name == "Salt"
        assert exc_info.value.quantity == bad

    def test_missing_quantity_raises(self):
        with pytest.raises(InvalidQuantityError):
            consolidate_ingredients([{"name": "Pepper", "unit": "tsp"}])

    @pytest.mark.parametrize("bad", ["nan", "inf", " -Infinity ", float("inf"), Decimal("NaN")])
    def test_non_finite_quantities_raise(self, bad):
        with pytest.raises(InvalidQuantityError) as exc_info:
            consolidate_ingredients([line("Salt", "g", 1), line("salt", "g", bad)])

        assert exc_info.value.name == "salt"

    def test_non_finite_shopping_item_raises(self):
        with pytest.raises(InvalidQuantityError):
            consolidate_ingredients([ShoppingItem(name="Salt", quantity=float("nan"), unit="g")])


def test_consolidation_key_lowercases_name_only():
    assert consolidation_key("Bell Pepper", "Piece") == ("bell pepper", "Piece")


def test_hyphenated_names_and_units_do_not_collide():
    result = consolidate_ingredients([
        line("half-and-half", "cup", 1),
        line("half", "and-half-cup", 1),
    ])

    assert [(i.name, i.unit) for i in result] == [
        ("half-and-half", "cup"),
        ("half", "and-half-cup"),
    ]
