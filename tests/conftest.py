"""Shared test fixtures for the meal planner test suite.

Tests run against a throwaway SQLite file. Each test starts from empty
tables and an empty entity cache.
"""

import os
import tempfile

# Force auth off and use a test database before any app imports.
_TEST_DB_DIR = tempfile.mkdtemp(prefix="mealplanner-tests-")
os.environ["DATABASE_URL"] = os.environ.get(
    "TEST_DATABASE_URL",
    f"sqlite:///{os.path.join(_TEST_DB_DIR, 'test.db')}",
)
os.environ["AUTH_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "text"

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from mealplanner.database import Base, get_db, SessionLocal
from mealplanner.main import app
from mealplanner.core.config import settings
from mealplanner.core.token_factory import issue_token
from mealplanner.models import Resident, User
from mealplanner.services.cache_service import entity_cache


@pytest.fixture(autouse=True)
def _clean_tables():
    """Empty every table (children first) and the cache before each test."""
    db = SessionLocal()
    try:
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()
    finally:
        db.close()
    entity_cache.clear()
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client(db):
    """FastAPI TestClient with the DB dependency overridden to use the test session."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def resident(db) -> Resident:
    """An active resident to order meals for."""
    r = Resident(name="Erna Schmidt", room_number="101", dietary_restrictions=["lactose-free"])
    db.add(r)
    db.commit()
    db.refresh(r)
    return r


@pytest.fixture()
def auth_enabled(monkeypatch):
    """Turn token authentication on for one test."""
    monkeypatch.setattr(settings, "auth_enabled", True)


@pytest.fixture()
def users(db) -> dict:
    """One user per role, keyed by role."""
    created = {}
    for role in ("admin", "kitchen", "caregiver"):
        user = User(user_id=f"{role}-1", display_name=role.title(), email=f"{role}@example.org", role=role)
        db.add(user)
        created[role] = user
    db.commit()
    return created


def bearer(user_id: str, role: str) -> dict:
    """Authorization header for a user."""
    token = issue_token(user_id, role, settings.jwt_secret_key)
    return {"Authorization": f"Bearer {token}"}


def make_order(
    resident_id: str,
    meal_type: str = "lunch",
    order_date: date | None = None,
    **overrides,
) -> dict:
    """Factory for meal order creation payloads (wire format)."""
    payload = {
        "residentId": resident_id,
        "date": (order_date or date.today() + timedelta(days=1)).isoformat(),
        "mealType": meal_type,
        "urgent": False,
    }
    options = {
        "breakfast": ("breakfastOptions", {"followsPlan": True, "breadItems": ["rye"], "beverages": ["coffee"]}),
        "lunch": ("lunchOptions", {"portionSize": "small", "soup": True, "dessert": False}),
        "dinner": ("dinnerOptions", {"followsPlan": False, "soup": True, "noFish": True}),
    }
    key, value = options[meal_type]
    payload[key] = value
    payload.update(overrides)
    return payload


def create_order(client, resident_id: str, **kwargs) -> dict:
    """POST an order and return its JSON body."""
    resp = client.post("/api/meal-orders", json=make_order(resident_id, **kwargs))
    assert resp.status_code == 201, resp.text
    return resp.json()
