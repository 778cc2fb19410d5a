"""Household, member, and standalone dietary preference models."""

from sqlalchemy import Integer, String, Float, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, new_id


class Household(Base, TimestampMixin):
    """A household that shares meal plans and shopping lists."""

    __tablename__ = "households"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    budget_weekly: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)

    members: Mapped[list["HouseholdMember"]] = relationship(
        "HouseholdMember", back_populates="household", cascade="all, delete-orphan"
    )
    dietary_preferences: Mapped[list["DietaryPreference"]] = relationship(
        "DietaryPreference", back_populates="household", cascade="all, delete-orphan"
    )
    meal_plans: Mapped[list["MealPlan"]] = relationship(
        "MealPlan", back_populates="household", cascade="all, delete-orphan"
    )
    shopping_lists: Mapped[list["ShoppingList"]] = relationship(
        "ShoppingList", back_populates="household", cascade="all, delete-orphan"
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "budget_weekly": self.budget_weekly,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<Household(id={self.id}, name='{self.name}')>"


class HouseholdMember(Base, TimestampMixin):
    """A person in a household.

    dietary_restrictions is a list mixing plain strings ("vegetarian") and
    typed entries ({"type": "allergy", "item": "peanuts", "severity": 8}).
    preferences is {"likes": [...], "dislikes": [...]}. Older rows may hold
    either column as serialized JSON text.
    """

    __tablename__ = "household_members"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    dietary_restrictions: Mapped[list | None] = mapped_column(JSON, nullable=True)
    preferences: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    household: Mapped["Household"] = relationship("Household", back_populates="members")

    def __repr__(self) -> str:
        return f"<HouseholdMember(id={self.id}, name='{self.name}')>"


class DietaryPreference(Base, TimestampMixin):
    """Household-level preference record not tied to a member.

    preference_type is one of "allergy", "intolerance", "preference",
    or "restriction".
    """

    __tablename__ = "dietary_preferences"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    preference_type: Mapped[str] = mapped_column(String(20), nullable=False)
    item: Mapped[str] = mapped_column(String(255), nullable=False)
    severity: Mapped[int] = mapped_column(Integer, default=5, nullable=False)

    household: Mapped["Household"] = relationship(
        "Household", back_populates="dietary_preferences"
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "household_id": self.household_id,
            "user_id": self.user_id,
            "preference_type": self.preference_type,
            "item": self.item,
            "severity": self.severity,
        }

    def __repr__(self) -> str:
        return f"<DietaryPreference(id={self.id}, type='{self.preference_type}', item='{self.item}')>"
