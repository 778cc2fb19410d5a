"""
End-to-end tests for recipes, meal plans and shopping lists, including
generating a consolidated shopping list from a meal plan.
"""

import json
from datetime import date, timedelta

import pytest

from household_planner.models import Ingredient, Recipe, RecipeIngredient, ShoppingList

from .helpers import auth_headers


def create_recipe(client, headers, name, ingredients, **extra):
    body = {
        "name": name,
        "prepTime": 10,
        "cookTime": 20,
        "servings": 4,
        "ingredients": ingredients,
        "instructions": ["Cook it."],
        **extra,
    }
    response = client.post("/api/recipes", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["recipe"]


def create_meal_plan(client, household, meals):
    response = client.post(
        "/api/meal-plans",
        json={"householdId": household["id"], "weekStart": "2026-10-19", "meals": meals},
        headers=household["headers"],
    )
    assert response.status_code == 201, response.text
    return response.json()["mealPlan"]


@pytest.fixture
def tomato_plan(client, household):
    """A meal plan whose recipes repeat tomatoes under different capitalisation."""
    salsa = create_recipe(client, household["headers"], "Salsa", [
        {"name": "Tomato", "amount": 2, "unit": "lb", "category": "Produce"},
        {"name": "Onion", "amount": 3, "unit": "piece", "category": "Produce"},
    ])
    sauce = create_recipe(client, household["headers"], "Sauce", [
        {"name": "tomato", "amount": 1.5, "unit": "lb"},
    ])
    return create_meal_plan(client, household, [
        {"recipeId": salsa["id"], "dayOfWeek": 0, "mealType": "lunch"},
        {"recipeId": sauce["id"], "dayOfWeek": 1, "mealType": "dinner"},
        {"dayOfWeek": 2, "mealType": "snack", "notes": "Eat out"},
    ])


class TestRecipes:
    """Recipe creation and filtering."""

    def test_create_reuses_ingredients_by_name(self, client, household, db_session):
        create_recipe(client, household["headers"], "Omelette", [
            {"name": "Eggs", "amount": 3, "unit": "piece"},
        ])
        create_recipe(client, household["headers"], "Scramble", [
            {"name": "eggs", "amount": 2, "unit": "piece"},
        ])

        assert db_session.query(Ingredient).count() == 1

    def test_get_returns_ingredients_in_order(self, client, household):
        recipe = create_recipe(client, household["headers"], "Toast", [
            {"name": "Bread", "amount": 2, "unit": "slice"},
            {"name": "Butter", "amount": 1, "unit": "tbsp", "notes": "softened"},
        ])

        data = client.get(f"/api/recipes/{recipe['id']}", headers=household["headers"]).json()

        assert [i["name"] for i in data["recipe"]["ingredients"]] == ["Bread", "Butter"]
        assert data["recipe"]["ingredients"][1]["notes"] == "softened"

    def test_list_filters(self, client, household):
        headers = household["headers"]
        create_recipe(client, headers, "Quick Salad", [{"name": "Lettuce", "amount": 1, "unit": "head"}],
                      cuisine="Greek", difficulty="easy", prepTime=5, cookTime=0)
        create_recipe(client, headers, "Slow Roast", [{"name": "Beef", "amount": 2, "unit": "lb"}],
                      cuisine="British", difficulty="hard", prepTime=30, cookTime=180,
                      description="A Sunday classic")

        def names(**params):
            data = client.get("/api/recipes", params=params, headers=headers).json()
            return {r["name"] for r in data["recipes"]}

        assert names() == {"Quick Salad", "Slow Roast"}
        assert names(cuisine="Greek") == {"Quick Salad"}
        assert names(difficulty="hard") == {"Slow Roast"}
        assert names(maxTime=30) == {"Quick Salad"}
        assert names(search="sunday") == {"Slow Roast"}

    def test_create_requires_ingredients(self, client, household):
        response = client.post(
            "/api/recipes",
            json={"name": "Air", "prepTime": 0, "cookTime": 0, "servings": 1,
                  "ingredients": [], "instructions": ["Breathe"]},
            headers=household["headers"],
        )
        assert response.status_code == 422

    def test_only_creator_can_delete(self, client, household):
        recipe = create_recipe(client, household["headers"], "Soup", [
            {"name": "Water", "amount": 1, "unit": "l"},
        ])
        url = f"/api/recipes/{recipe['id']}"

        assert client.delete(url, headers=auth_headers(user_id="other")).status_code == 403
        assert client.delete(url, headers=household["headers"]).status_code == 200
        assert client.get(url, headers=household["headers"]).status_code == 404


class TestMealPlans:
    """Meal plan creation and retrieval."""

    def test_get_groups_meals_by_day(self, client, household, tomato_plan):
        response = client.get(f"/api/meal-plans/{tomato_plan['id']}", headers=household["headers"])

        assert response.status_code == 200
        plan = response.json()["mealPlan"]
        assert plan["totalMeals"] == 3
        assert set(plan["groupedMeals"]) == {"0", "1", "2"}
        assert plan["groupedMeals"]["0"][0]["recipe_name"] == "Salsa"

    def test_invalid_day_of_week_is_rejected(self, client, household):
        response = client.post(
            "/api/meal-plans",
            json={"householdId": household["id"], "weekStart": "2026-10-19",
                  "meals": [{"dayOfWeek": 7, "mealType": "dinner"}]},
            headers=household["headers"],
        )
        assert response.status_code == 422

    def test_add_meal_and_list_counts(self, client, household, tomato_plan):
        response = client.post(
            f"/api/meal-plans/{tomato_plan['id']}/meals",
            json={"dayOfWeek": 3, "mealType": "breakfast"},
            headers=household["headers"],
        )
        assert response.status_code == 201

        data = client.get(
            f"/api/meal-plans/household/{household['id']}", headers=household["headers"]
        ).json()
        assert data["count"] == 1
        assert data["mealPlans"][0]["mealCount"] == 4

    def test_update_status(self, client, household, tomato_plan):
        response = client.put(
            f"/api/meal-plans/{tomato_plan['id']}",
            json={"status": "completed"},
            headers=household["headers"],
        )
        assert response.status_code == 200
        assert response.json()["mealPlan"]["status"] == "completed"

    def test_plan_for_other_household_is_forbidden(self, client, household):
        response = client.post(
            "/api/meal-plans",
            json={"householdId": "elsewhere", "weekStart": "2026-10-19"},
            headers=household["headers"],
        )
        assert response.status_code == 403


class TestShoppingListFromMealPlan:
    """Consolidated shopping list generation."""

    def test_consolidates_ingredients_across_meals(self, client, household, tomato_plan):
        response = client.post(
            "/api/shopping/from-meal-plan",
            json={"mealPlanId": tomato_plan["id"], "name": "Weekly shop"},
            headers=household["headers"],
        )

        assert response.status_code == 201
        summary = response.json()["shoppingList"]
        assert summary["householdId"] == household["id"]
        assert summary["mealPlanId"] == tomato_plan["id"]
        assert summary["name"] == "Weekly shop"
        assert summary["itemCount"] == 2

        detail = client.get(f"/api/shopping/{summary['id']}", headers=household["headers"]).json()
        items = {i["name"]: i for i in detail["shoppingList"]["items"]}
        assert items["Tomato"]["quantity"] == pytest.approx(3.5)
        assert items["Tomato"]["unit"] == "lb"
        assert items["Onion"]["quantity"] == 3
        assert all(i["is_purchased"] is False for i in items.values())
        assert all(i["ingredient_id"] for i in items.values())

    def test_repeated_recipe_counts_once_per_meal(self, client, household):
        pancakes = create_recipe(client, household["headers"], "Pancakes", [
            {"name": "Flour", "amount": 1, "unit": "cup"},
        ])
        plan = create_meal_plan(client, household, [
            {"recipeId": pancakes["id"], "dayOfWeek": 5, "mealType": "breakfast"},
            {"recipeId": pancakes["id"], "dayOfWeek": 6, "mealType": "breakfast"},
        ])

        list_id = client.post(
            "/api/shopping/from-meal-plan",
            json={"mealPlanId": plan["id"]},
            headers=household["headers"],
        ).json()["shoppingList"]["id"]

        items = client.get(f"/api/shopping/{list_id}", headers=household["headers"]).json()
        assert items["shoppingList"]["items"][0]["quantity"] == 2

    def test_default_name(self, client, household, tomato_plan):
        response = client.post(
            "/api/shopping/from-meal-plan",
            json={"mealPlanId": tomato_plan["id"]},
            headers=household["headers"],
        )
        assert response.json()["shoppingList"]["name"].startswith("Shopping List - ")

    def test_unknown_meal_plan(self, client, household):
        response = client.post(
            "/api/shopping/from-meal-plan",
            json={"mealPlanId": "missing"},
            headers=household["headers"],
        )
        assert response.status_code == 404

    def test_other_household_is_forbidden(self, client, household, tomato_plan):
        response = client.post(
            "/api/shopping/from-meal-plan",
            json={"mealPlanId": tomato_plan["id"]},
            headers=auth_headers(household_id="elsewhere"),
        )
        assert response.status_code == 403


class TestManualShoppingLists:
    """Manual lists and item management."""

    @pytest.fixture
    def shopping_list(self, client, household):
        response = client.post(
            "/api/shopping",
            json={
                "householdId": household["id"],
                "name": "Party supplies",
                "items": [
                    {"name": "Chips", "quantity": 2, "unit": "bag", "category": "Snacks"},
                    {"name": "Napkins", "quantity": 1, "unit": "pack"},
                ],
            },
            headers=household["headers"],
        )
        assert response.status_code == 201
        return response.json()["shoppingList"]

    def test_get_groups_items_by_category(self, client, household, shopping_list):
        data = client.get(f"/api/shopping/{shopping_list['id']}", headers=household["headers"]).json()

        grouped = data["shoppingList"]["groupedItems"]
        assert [i["name"] for i in grouped["Snacks"]] == ["Chips"]
        assert [i["name"] for i in grouped["Uncategorized"]] == ["Napkins"]
        assert data["shoppingList"]["totalItems"] == 2

    def test_item_borrows_known_ingredient_category(self, client, household, shopping_list):
        create_recipe(client, household["headers"], "Pesto", [
            {"name": "Basil", "amount": 1, "unit": "bunch", "category": "Herbs"},
        ])

        response = client.post(
            f"/api/shopping/{shopping_list['id']}/items",
            json={"name": "basil", "quantity": 2, "unit": "bunch"},
            headers=household["headers"],
        )

        assert response.status_code == 201
        item = response.json()["item"]
        assert item["category"] == "Herbs"
        assert item["ingredient_id"] is not None

    def test_toggle_update_and_counts(self, client, household, shopping_list):
        headers = household["headers"]
        items = client.get(f"/api/shopping/{shopping_list['id']}", headers=headers).json()[
            "shoppingList"
        ]["items"]
        chips = next(i for i in items if i["name"] == "Chips")

        toggled = client.patch(f"/api/shopping/items/{chips['id']}/toggle", headers=headers)
        assert toggled.json()["item"]["is_purchased"] is True

        updated = client.put(
            f"/api/shopping/items/{chips['id']}", json={"quantity": 4}, headers=headers
        )
        assert updated.json()["item"]["quantity"] == 4

        lists = client.get(f"/api/shopping/household/{household['id']}", headers=headers).json()
        assert lists["count"] == 1
        assert lists["shoppingLists"][0]["totalItems"] == 2
        assert lists["shoppingLists"][0]["purchasedItems"] == 1

    def test_complete_stamps_completed_at(self, client, household, shopping_list):
        response = client.put(
            f"/api/shopping/{shopping_list['id']}",
            json={"status": "completed"},
            headers=household["headers"],
        )

        assert response.status_code == 200
        updated = response.json()["shoppingList"]
        assert updated["status"] == "completed"
        assert updated["completed_at"] is not None

    def test_delete_item_and_list(self, client, household, shopping_list):
        headers = household["headers"]
        url = f"/api/shopping/{shopping_list['id']}"
        item_id = client.get(url, headers=headers).json()["shoppingList"]["items"][0]["id"]

        assert client.delete(f"/api/shopping/items/{item_id}", headers=headers).status_code == 200
        assert client.get(url, headers=headers).json()["shoppingList"]["totalItems"] == 1

        assert client.delete(url, headers=headers).status_code == 200
        assert client.get(url, headers=headers).status_code == 404


class TestNonFiniteQuantities:
    """NaN and infinity never reach the database or a consolidated list."""

    def test_recipe_amount_overflow_is_rejected(self, client, household, db_session):
        body = (
            '{"name": "Brine", "prepTime": 5, "cookTime": 0, "servings": 1,'
            ' "ingredients": [{"name": "Salt", "amount": 1e999, "unit": "g"}],'
            ' "instructions": ["Stir."]}'
        )
        response = client.post(
            "/api/recipes",
            content=body,
            headers={**household["headers"], "Content-Type": "application/json"},
        )

        assert response.status_code == 422
        assert db_session.query(Recipe).count() == 0

    def test_shopping_item_overflow_is_rejected(self, client, household):
        body = (
            '{"householdId": "%s", "name": "Pantry",'
            ' "items": [{"name": "Rice", "quantity": 1e999, "unit": "kg"}]}' % household["id"]
        )
        response = client.post(
            "/api/shopping",
            content=body,
            headers={**household["headers"], "Content-Type": "application/json"},
        )
        assert response.status_code == 422

    def test_stored_infinite_quantity_fails_generation(
        self, client, household, tomato_plan, db_session
    ):
        db_session.query(RecipeIngredient).update({RecipeIngredient.quantity: float("inf")})
        db_session.commit()

        response = client.post(
            "/api/shopping/from-meal-plan",
            json={"mealPlanId": tomato_plan["id"]},
            headers=household["headers"],
        )

        assert response.status_code == 422
        assert "Invalid quantity" in response.json()["detail"]
        assert db_session.query(ShoppingList).count() == 0


class TestRecipeLibrary:
    """Updating recipes and the caller's own library."""

    def test_creator_updates_fields_and_ingredients(self, client, household):
        recipe = create_recipe(client, household["headers"], "Chili", [
            {"name": "Beans", "amount": 2, "unit": "can"},
        ])
        url = f"/api/recipes/{recipe['id']}"

        response = client.put(
            url,
            json={"cookTime": 45, "ingredients": [
                {"name": "Beef", "amount": 1, "unit": "lb"},
                {"name": "beans", "amount": 1, "unit": "can"},
            ]},
            headers=household["headers"],
        )

        assert response.status_code == 200
        updated = response.json()["recipe"]
        assert updated["name"] == "Chili"
        assert updated["cook_time"] == 45
        assert [(i["name"], i["amount"]) for i in updated["ingredients"]] == [
            ("Beef", 1),
            ("Beans", 1),
        ]

    def test_other_user_cannot_update(self, client, household):
        recipe = create_recipe(client, household["headers"], "Stew", [
            {"name": "Carrot", "amount": 2, "unit": "piece"},
        ])
        response = client.put(
            f"/api/recipes/{recipe['id']}",
            json={"name": "My Stew"},
            headers=auth_headers(user_id="other"),
        )
        assert response.status_code == 403

    def test_my_recipes_lists_only_own(self, client, household):
        create_recipe(client, household["headers"], "Mine", [{"name": "Egg", "amount": 1, "unit": "piece"}])
        create_recipe(client, auth_headers(user_id="other"), "Theirs",
                      [{"name": "Egg", "amount": 1, "unit": "piece"}])

        data = client.get("/api/recipes/my-recipes", headers=household["headers"]).json()

        assert data["count"] == 1
        assert data["recipes"][0]["name"] == "Mine"

    def test_save_from_meal_notes(self, client, household):
        notes = json.dumps({
            "name": "Tomato Soup",
            "prepTime": "15 minutes",
            "ingredients": [{"name": "Tomato", "amount": 4, "unit": "piece"}, {"name": "Basil"}],
            "instructions": ["Simmer.", "Blend."],
        })
        plan = create_meal_plan(client, household, [
            {"dayOfWeek": 0, "mealType": "lunch", "notes": notes},
        ])
        meal_id = client.get(
            f"/api/meal-plans/{plan['id']}", headers=household["headers"]
        ).json()["mealPlan"]["meals"][0]["id"]

        response = client.post(f"/api/recipes/save-from-meal/{meal_id}", headers=household["headers"])

        assert response.status_code == 201
        saved = response.json()["recipe"]
        recipe = client.get(f"/api/recipes/{saved['id']}", headers=household["headers"]).json()["recipe"]
        assert recipe["name"] == "Tomato Soup"
        assert recipe["prep_time"] == 15
        assert recipe["servings"] == 4
        assert recipe["created_by"] == "user-1"
        assert [(i["name"], i["amount"], i["unit"]) for i in recipe["ingredients"]] == [
            ("Tomato", 4, "piece"),
            ("Basil", 1, "piece"),
        ]

    def test_save_from_meal_without_recipe_data(self, client, household, tomato_plan):
        meals = client.get(
            f"/api/meal-plans/{tomato_plan['id']}", headers=household["headers"]
        ).json()["mealPlan"]["meals"]
        eat_out = next(m for m in meals if m["notes"] == "Eat out")

        response = client.post(
            f"/api/recipes/save-from-meal/{eat_out['id']}", headers=household["headers"]
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid recipe data in meal"


class TestMealPlanEditing:
    """Current-week lookup and changing or removing plans and meals."""

    def plan_meals(self, client, household, plan_id):
        return client.get(
            f"/api/meal-plans/{plan_id}", headers=household["headers"]
        ).json()["mealPlan"]["meals"]

    def test_current_plan_covers_today(self, client, household):
        today = date.today()
        response = client.post(
            "/api/meal-plans",
            json={
                "householdId": household["id"],
                "weekStart": (today - timedelta(days=2)).isoformat(),
                "weekEnd": (today + timedelta(days=4)).isoformat(),
                "meals": [{"dayOfWeek": 1, "mealType": "dinner"}],
            },
            headers=household["headers"],
        )
        plan_id = response.json()["mealPlan"]["id"]

        data = client.get(
            f"/api/meal-plans/household/{household['id']}/current", headers=household["headers"]
        ).json()

        assert data["mealPlan"]["id"] == plan_id
        assert data["mealPlan"]["totalMeals"] == 1

    def test_no_current_plan(self, client, household):
        create_meal_plan_body = {"householdId": household["id"], "weekStart": "2999-01-04"}
        client.post("/api/meal-plans", json=create_meal_plan_body, headers=household["headers"])

        data = client.get(
            f"/api/meal-plans/household/{household['id']}/current", headers=household["headers"]
        ).json()

        assert data["success"] is True
        assert data["mealPlan"] is None

    def test_only_creator_deletes_plan(self, client, household, tomato_plan):
        url = f"/api/meal-plans/{tomato_plan['id']}"
        housemate = auth_headers(user_id="housemate", household_id=household["id"])

        assert client.delete(url, headers=housemate).status_code == 403
        assert client.delete(url, headers=household["headers"]).status_code == 200
        assert client.get(url, headers=household["headers"]).status_code == 404

    def test_update_meal(self, client, household, tomato_plan):
        meal = self.plan_meals(client, household, tomato_plan["id"])[0]

        response = client.put(
            f"/api/meal-plans/meals/{meal['id']}",
            json={"dayOfWeek": 4, "servings": 6},
            headers=household["headers"],
        )

        assert response.status_code == 200
        updated = response.json()["meal"]
        assert updated["day_of_week"] == 4
        assert updated["servings"] == 6
        assert updated["meal_type"] == meal["meal_type"]

    def test_update_meal_with_unknown_recipe(self, client, household, tomato_plan):
        meal = self.plan_meals(client, household, tomato_plan["id"])[0]
        response = client.put(
            f"/api/meal-plans/meals/{meal['id']}",
            json={"recipeId": "missing"},
            headers=household["headers"],
        )
        assert response.status_code == 404

    def test_delete_meal(self, client, household, tomato_plan):
        meal = self.plan_meals(client, household, tomato_plan["id"])[0]

        response = client.delete(f"/api/meal-plans/meals/{meal['id']}", headers=household["headers"])

        assert response.status_code == 200
        assert len(self.plan_meals(client, household, tomato_plan["id"])) == 2

    def test_meal_of_other_household_is_forbidden(self, client, household, tomato_plan):
        meal = self.plan_meals(client, household, tomato_plan["id"])[0]
        response = client.delete(
            f"/api/meal-plans/meals/{meal['id']}", headers=auth_headers(household_id="elsewhere")
        )
        assert response.status_code == 403
