"""
Pytest fixtures for the inventory tracker test suite.

Provides:
- A file-backed SQLite database per test (sqlite+aiosqlite)
- An async session for repository-level tests
- A TestClient over a fully configured app, plus helpers to register users
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from inventory_tracker import crud
from inventory_tracker.config import Settings
from inventory_tracker.database import Database
from inventory_tracker.main import create_app

TEST_JWT_SECRET = "test-secret-for-hs256-signing-0123456789"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'inventory_test.db'}",
        jwt_secret=TEST_JWT_SECRET,
        app_env="test",
        log_level="DEBUG",
    )


@pytest.fixture
async def db(settings):
    database = Database(settings.database_url)
    await database.open()
    try:
        async with database.session() as session:
            yield session
    finally:
        await database.close()


@pytest.fixture
async def owner(db):
    return await crud.create_user(db, "Alice", "alice@example.com", "not-a-real-hash")


@pytest.fixture
async def other_owner(db):
    return await crud.create_user(db, "Bob", "bob@example.com", "not-a-real-hash")


@pytest.fixture
def item_fields():
    return {
        "name": "Widget",
        "description": "A small blue widget",
        "category": "Electronics",
        "quantity": 5,
        "price": Decimal("19.99"),
        "sku": "WID-001",
        "low_stock_threshold": 3,
    }


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register_user(client):
    """Registers a user over HTTP and returns (user json, auth headers)."""

    def _register(name="Alice", email="alice@example.com", password="secret123"):
        response = client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return body["user"], {"Authorization": f"Bearer {body['token']}"}

    return _register


@pytest.fixture
def alice(register_user):
    return register_user("Alice", "alice@example.com")


@pytest.fixture
def bob(register_user):
    return register_user("Bob", "bob@example.com")
