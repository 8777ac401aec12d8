from bson import ObjectId

from utils.jwt import create_access_token
from tests.conftest import ADMIN_EMAIL, PASSWORD


# ============================================================================
# Register / Login
# ============================================================================

def test_register_returns_user_and_token(client):
    resp = client.post(
        "/api/auth/register",
        json={"name": "Awa Jallow", "email": "Awa@PriceWatch.gm", "password": PASSWORD},
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "User registered successfully"

    user = body["data"]["user"]
    assert user["email"] == "awa@pricewatch.gm"
    assert user["role"] == "collector"
    assert "password_hash" not in user
    assert "password" not in user
    assert body["data"]["token"]


def test_register_ignores_requested_role(client):
    resp = client.post(
        "/api/auth/register",
        json={"name": "Sneaky", "email": "sneaky@pricewatch.gm", "password": PASSWORD, "role": "admin"},
    )

    assert resp.status_code == 201
    assert resp.json()["data"]["user"]["role"] == "collector"


def test_bootstrap_admin_email_gets_admin_role(admin):
    user, _ = admin

    assert user["email"] == ADMIN_EMAIL
    assert user["role"] == "admin"


def test_duplicate_email_is_case_insensitive(client, collector):
    resp = client.post(
        "/api/auth/register",
        json={"name": "Awa Again", "email": "AWA@pricewatch.gm", "password": PASSWORD},
    )

    assert resp.status_code == 409
    assert resp.json() == {
        "success": False,
        "error": {"message": "Email already registered", "status": 409},
    }


def test_register_validation_lists_fields(client):
    resp = client.post(
        "/api/auth/register",
        json={"name": "A", "email": "not-an-email", "password": "123"},
    )

    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["message"] == "Validation failed"
    assert {e["field"] for e in error["errors"]} == {"name", "email", "password"}


def test_login(client, collector):
    resp = client.post("/api/auth/login", json={"email": "Awa@pricewatch.gm", "password": PASSWORD})

    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Login successful"
    assert body["data"]["user"]["email"] == "awa@pricewatch.gm"
    assert "password_hash" not in body["data"]["user"]


def test_login_wrong_password_and_unknown_email_look_the_same(client, collector):
    wrong = client.post("/api/auth/login", json={"email": "awa@pricewatch.gm", "password": "wrong-pass"})
    unknown = client.post("/api/auth/login", json={"email": "nobody@pricewatch.gm", "password": PASSWORD})

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json()["error"]["message"] == "Invalid email or password"
    assert unknown.json()["error"]["message"] == "Invalid email or password"


# ============================================================================
# Access gate
# ============================================================================

def test_me(client, collector):
    user, headers = collector

    resp = client.get("/api/auth/me", headers=headers)

    assert resp.status_code == 200
    assert resp.json()["data"]["id"] == user["id"]


def test_missing_token(client):
    resp = client.get("/api/auth/me")

    assert resp.status_code == 401
    assert resp.json()["error"]["message"] == "No token provided. Please login to access this resource."


def test_non_bearer_header(client):
    resp = client.get("/api/auth/me", headers={"Authorization": "Token abc"})

    assert resp.status_code == 401
    assert resp.json()["error"]["message"] == "Invalid token format."


def test_garbage_token(client):
    resp = client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})

    assert resp.status_code == 401
    assert resp.json()["error"]["message"] == "Invalid token. Please login again."


def test_token_for_deleted_user(client):
    token = create_access_token({"sub": str(ObjectId())})

    resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 401
    assert resp.json()["error"]["message"] == "User no longer exists."


def test_token_without_subject(client):
    token = create_access_token({"role": "admin"})

    resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 401
    assert resp.json()["error"]["message"] == "Invalid token payload"


def test_health(client):
    assert client.get("/api/health").json()["status"] == "ok"
    assert client.get("/health").status_code == 200
