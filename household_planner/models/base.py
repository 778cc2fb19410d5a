"""Declarative base, timestamp columns and key helpers shared by the models."""

import re
import uuid
from datetime import datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    """created_at / updated_at columns, stored as naive UTC."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


def new_id() -> str:
    """UUID4 string used as the primary key of every table."""
    return str(uuid.uuid4())


def normalize_name(name: str) -> str:
    """Lookup key for the shared ingredient catalogue.

    "Bell Pepper", "bell pepper!" and " bell  pepper" all map to
    "bell pepper", so recipes and manual shopping items reuse one row.
    """
    collapsed = _WHITESPACE.sub(" ", _PUNCTUATION.sub("", name.lower()))
    return collapsed.strip()
