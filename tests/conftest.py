"""
Shared fixtures: an in-memory SQLite database rebuilt for every test and a
FastAPI test client wired to it.
"""

import os

# Must be set before household_planner.database creates its engine
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ANTHROPIC_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient

from household_planner.database import SessionLocal, create_tables, drop_tables
from household_planner.main import app

from .helpers import auth_headers


@pytest.fixture(autouse=True)
def tables():
    """Create every table before a test and drop them afterwards."""
    create_tables()
    yield
    drop_tables()


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    """Create a test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture
def household(client):
    """A household created through the API, with headers scoped to it."""
    response = client.post(
        "/api/households",
        json={"name": "The Smiths", "budgetWeekly": 200},
        headers=auth_headers(),
    )
    assert response.status_code == 201
    data = response.json()["household"]
    return {"id": data["id"], "headers": auth_headers(household_id=data["id"])}
