"""FastAPI application: logging, startup checks and router registration."""

import logging
import os
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from pydantic import ValidationError

from . import __version__
from .config import Settings, get_settings
from .database import (
    check_database_health,
    create_tables,
    dispose_engine,
    is_sqlite,
    list_tables,
)
from .routes import (
    ai_router,
    households_router,
    meal_plans_router,
    recipes_router,
    shopping_router,
)

APP_NAME = "Household Planner"

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def validate_environment() -> Settings:
    """Load settings, exiting the process if they are invalid."""
    try:
        settings = get_settings()
    except ValidationError as e:
        logger.error("Invalid configuration, refusing to start:")
        logger.error(str(e))
        sys.exit(1)
    logger.info("Configuration loaded")
    return settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {APP_NAME} {__version__}")

    settings = validate_environment()
    logging.getLogger().setLevel(settings.log_level)

    # Postgres schemas come from `alembic upgrade head`
    if is_sqlite(settings.database_url):
        create_tables()
    logger.info(f"Tables in database: {list_tables()}")

    if not settings.ai_enabled:
        logger.warning("ANTHROPIC_API_KEY not set, AI meal planning is disabled")

    yield

    logger.info(f"Shutting down {APP_NAME}")
    dispose_engine()


app = FastAPI(
    title=APP_NAME,
    description="Household meal planning with dietary preferences and consolidated shopping lists",
    version=__version__,
    lifespan=lifespan,
)

for router in (
    households_router,
    recipes_router,
    meal_plans_router,
    shopping_router,
    ai_router,
):
    app.include_router(router)


@app.get("/health")
async def health_check():
    """Report whether the database answers a trivial query."""
    if check_database_health():
        return {"status": "healthy", "database": "connected"}
    return {"status": "unhealthy", "database": "disconnected"}


@app.get("/")
async def root():
    return {"name": APP_NAME, "status": "running", "version": __version__}
