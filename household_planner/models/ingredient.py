"""Ingredient catalogue, recipe lines and shopping-list lines."""

from typing import Optional

from sqlalchemy import Integer, String, Float, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, new_id, normalize_name


class Ingredient(Base, TimestampMixin):
    """A catalogue entry, unique by normalized name.

    category here is the default for shopping items that reference it.
    """

    __tablename__ = "ingredients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    normalized_name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Relationships
    recipe_ingredients: Mapped[list["RecipeIngredient"]] = relationship(
        "RecipeIngredient", back_populates="ingredient"
    )
    shopping_list_items: Mapped[list["ShoppingListItem"]] = relationship(
        "ShoppingListItem", back_populates="ingredient"
    )

    def __init__(self, **kwargs):
        if "name" in kwargs and "normalized_name" not in kwargs:
            kwargs["normalized_name"] = normalize_name(kwargs["name"])
        super().__init__(**kwargs)

    def __repr__(self) -> str:
        return f"<Ingredient(id={self.id}, name='{self.name}')>"


class RecipeIngredient(Base):
    """One ingredient line of a recipe, ordered by position."""

    __tablename__ = "recipe_ingredients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    recipe_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False
    )
    ingredient_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("ingredients.id"), nullable=False
    )
    quantity: Mapped[float] = mapped_column(Float, default=1, nullable=False)
    unit: Mapped[str] = mapped_column(String(50), default="piece", nullable=False)
    notes: Mapped[str | None] = mapped_column(String(255), nullable=True)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Relationships
    recipe: Mapped["Recipe"] = relationship("Recipe", back_populates="recipe_ingredients")
    ingredient: Mapped["Ingredient"] = relationship(
        "Ingredient", back_populates="recipe_ingredients"
    )

    def to_dict(self) -> dict:
        return {
            "name": self.ingredient.name,
            "amount": self.quantity,
            "unit": self.unit,
            "notes": self.notes,
            "category": self.ingredient.category,
        }

    def __repr__(self) -> str:
        return f"<RecipeIngredient(recipe_id={self.recipe_id}, ingredient_id={self.ingredient_id})>"


class ShoppingListItem(Base, TimestampMixin):
    """One line of a shopping list.

    name, unit, and category are copied onto the row so manual items work
    without a matching Ingredient record.
    """

    __tablename__ = "shopping_list_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    shopping_list_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("shopping_lists.id", ondelete="CASCADE"), nullable=False
    )
    ingredient_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("ingredients.id"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[float] = mapped_column(Float, default=1, nullable=False)
    unit: Mapped[str | None] = mapped_column(String(50), nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_purchased: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Relationships
    shopping_list: Mapped["ShoppingList"] = relationship(
        "ShoppingList", back_populates="items"
    )
    ingredient: Mapped[Optional["Ingredient"]] = relationship(
        "Ingredient", back_populates="shopping_list_items"
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shopping_list_id": self.shopping_list_id,
            "ingredient_id": self.ingredient_id,
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "category": self.category,
            "is_purchased": self.is_purchased,
            "notes": self.notes,
        }

    def __repr__(self) -> str:
        return f"<ShoppingListItem(id={self.id}, name='{self.name}')>"
