"""Household meal planning and shopping list service."""

__version__ = "1.0.0"
