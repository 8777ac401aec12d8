"""
Shared fixtures.

Settings are read at import time, so the environment is prepared before
any application module is imported.
"""
import os

os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.setdefault("ENV", "test")
os.environ["ADMIN_EMAILS"] = "admin@pricewatch.gm"

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from main import create_app

ADMIN_EMAIL = "admin@pricewatch.gm"
PASSWORD = "secret123"


# ============================================================================
# Database / App
# ============================================================================

@pytest.fixture
def db():
    """Fresh in-memory database per test."""
    return AsyncMongoMockClient()["pricewatch_test"]


@pytest.fixture
def client(db):
    app = create_app(db=db, start_workers=False)
    with TestClient(app) as test_client:
        yield test_client


# ============================================================================
# Users
# ============================================================================

@pytest.fixture
def register_user(client):
    def _register(email: str, name: str = "Market Collector", password: str = PASSWORD):
        resp = client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert resp.status_code == 201, resp.text
        data = resp.json()["data"]
        return data["user"], {"Authorization": f"Bearer {data['token']}"}

    return _register


@pytest.fixture
def admin(register_user):
    return register_user(ADMIN_EMAIL, name="Admin User")


@pytest.fixture
def collector(register_user):
    return register_user("awa@pricewatch.gm", name="Awa Jallow")


@pytest.fixture
def other_collector(register_user):
    return register_user("lamin@pricewatch.gm", name="Lamin Ceesay")


# ============================================================================
# Catalog
# ============================================================================

PRODUCT_PAYLOAD = {
    "name": "Tomatoes",
    "description": "Fresh local tomatoes",
    "price": 12.0,
    "category": "Vegetables",
    "stock": 40,
}

MARKET_PAYLOAD = {
    "name": "Serrekunda Market",
    "address": {
        "street": "Mosque Road",
        "city": "Serrekunda",
        "state": "Kanifing",
    },
    "contact": {"phone": "+220 439 1234", "email": "Info@SerrekundaMarket.gm"},
    "type": "farmers-market",
}


@pytest.fixture
def product(client, collector):
    _, headers = collector
    resp = client.post("/api/products", json=PRODUCT_PAYLOAD, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


@pytest.fixture
def market(client, collector):
    _, headers = collector
    resp = client.post("/api/markets", json=MARKET_PAYLOAD, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]

