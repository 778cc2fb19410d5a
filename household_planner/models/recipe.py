"""Recipe model for storing recipe information."""

from sqlalchemy import Integer, String, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, new_id


class Recipe(Base, TimestampMixin):
    """Model for storing recipes."""

    __tablename__ = "recipes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    prep_time: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cook_time: Mapped[int | None] = mapped_column(Integer, nullable=True)
    servings: Mapped[int] = mapped_column(Integer, default=4, nullable=False)
    difficulty: Mapped[str] = mapped_column(String(10), default="medium", nullable=False)
    cuisine: Mapped[str | None] = mapped_column(String(100), nullable=True)
    instructions: Mapped[list | None] = mapped_column(JSON, nullable=True)
    nutrition_info: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    tags: Mapped[list | None] = mapped_column(JSON, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)

    recipe_ingredients: Mapped[list["RecipeIngredient"]] = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.position",
    )

    def to_dict(self, include_ingredients: bool = False) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "prep_time": self.prep_time,
            "cook_time": self.cook_time,
            "servings": self.servings,
            "difficulty": self.difficulty,
            "cuisine": self.cuisine,
            "instructions": self.instructions or [],
            "nutrition_info": self.nutrition_info or {},
            "tags": self.tags or [],
            "image_url": self.image_url,
            "created_by": self.created_by,
        }
        if include_ingredients:
            data["ingredients"] = [ri.to_dict() for ri in self.recipe_ingredients]
        return data

    def __repr__(self) -> str:
        return f"<Recipe(id={self.id}, name='{self.name}')>"
