"""Database engine, sessions and schema helpers.

Postgres deployments get their schema from the Alembic migrations; SQLite
databases (local development and tests) are created directly from the
model metadata with create_tables().
"""

import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import get_settings
from .models import Base

logger = logging.getLogger(__name__)


def is_sqlite(database_url: str) -> bool:
    return database_url.startswith("sqlite")


def create_db_engine(database_url: str | None = None) -> Engine:
    """Create the SQLAlchemy engine for database_url (defaults to settings).

    SQLite shares one connection across threads so an in-memory database
    is visible to every session; other backends use a connection pool.
    """
    url = database_url or get_settings().database_url

    if is_sqlite(url):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_engine(
        url,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,  # Verify connections before using
    )


engine = create_db_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables() -> None:
    """Create any missing tables from the model metadata."""
    Base.metadata.create_all(bind=engine)
    logger.info(f"Ensured {len(Base.metadata.tables)} tables exist")


def drop_tables() -> None:
    Base.metadata.drop_all(bind=engine)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a request-scoped session.

    Uncommitted work is rolled back if the handler raises.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Session that commits on success and rolls back on error.

    Usage:
        with get_db_session() as db:
            db.add(...)
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def check_database_health() -> bool:
    """Return True if a trivial query succeeds."""
    try:
        with get_db_session() as db:
            db.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False


def dispose_engine() -> None:
    """Close pooled connections during shutdown."""
    engine.dispose()


def list_tables() -> list[str]:
    """Names of the tables present in the connected database."""
    try:
        return sorted(inspect(engine).get_table_names())
    except Exception as e:
        logger.error(f"Failed to list tables: {e}")
        return []
