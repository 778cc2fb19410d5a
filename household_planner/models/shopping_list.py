"""Shopping list model for managing grocery lists."""

import enum
from datetime import datetime

from sqlalchemy import String, DateTime, Enum, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, new_id


class ShoppingListStatus(enum.Enum):
    """Status of a shopping list."""

    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class ShoppingList(Base, TimestampMixin):
    """Model for storing shopping lists.

    Lists built from a meal plan keep a reference to it; manual lists
    have meal_plan_id = None.
    """

    __tablename__ = "shopping_lists"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    meal_plan_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("meal_plans.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[ShoppingListStatus] = mapped_column(
        Enum(ShoppingListStatus), default=ShoppingListStatus.ACTIVE, nullable=False
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    household: Mapped["Household"] = relationship("Household", back_populates="shopping_lists")
    items: Mapped[list["ShoppingListItem"]] = relationship(
        "ShoppingListItem",
        back_populates="shopping_list",
        cascade="all, delete-orphan",
        order_by="ShoppingListItem.name",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "household_id": self.household_id,
            "meal_plan_id": self.meal_plan_id,
            "name": self.name,
            "status": self.status.value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }

    def __repr__(self) -> str:
        item_count = len(self.items) if self.items else 0
        return f"<ShoppingList(id={self.id}, status={self.status.value}, items={item_count})>"
