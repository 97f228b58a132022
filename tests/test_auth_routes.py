import pytest

from auth import create_token
from conftest import register


def login(client, identifier, password="secret123"):
    return client.post("/api/v1/auth/login", json={"identifier": identifier, "password": password})


def test_register_returns_token_and_user(client):
    body = register(client, "alice")
    assert body["message"] == "User created successfully"
    assert body["token"]
    assert body["user"]["username"] == "alice"
    assert body["user"]["email"] == "alice@example.com"
    assert "password" not in body["user"] and "hashedPassword" not in body["user"]


@pytest.mark.parametrize("username,email", [
    ("alice", "other@example.com"),
    ("ALICE", "other@example.com"),
    ("someone", "Alice@Example.com"),
])
def test_register_duplicate_is_conflict(client, username, email):
    register(client, "alice")
    resp = client.post("/api/v1/auth/register", json={
        "username": username,
        "email": email,
        "password": "secret123",
    })
    assert resp.status_code == 409
    assert resp.json()["message"] == "User already exists"


@pytest.mark.parametrize("payload,field", [
    ({"username": "al", "email": "al@example.com", "password": "secret123"}, "username"),
    ({"username": "alice", "email": "not-an-email", "password": "secret123"}, "email"),
    ({"username": "alice", "email": "alice@example.com", "password": "123"}, "password"),
])
def test_register_validation(client, payload, field):
    resp = client.post("/api/v1/auth/register", json=payload)
    assert resp.status_code == 400
    body = resp.json()
    assert body["message"] == "Validation failed"
    assert field in [e["field"] for e in body["errors"]]


@pytest.mark.parametrize("identifier", ["alice", "alice@example.com", "ALICE@example.com"])
def test_login_by_username_or_email(client, identifier):
    register(client, "alice")
    resp = login(client, identifier)
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Login successful"
    assert body["user"]["username"] == "alice"
    assert body["token"]


def test_login_failures_look_the_same(client):
    register(client, "alice")
    wrong_password = login(client, "alice", "not-the-password")
    unknown_user = login(client, "nobody", "secret123")
    for resp in (wrong_password, unknown_user):
        assert resp.status_code == 401
        assert resp.json() == {"message": "Invalid credentials"}


def test_me_requires_token(client):
    resp = client.get("/api/v1/auth/me")
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"


def test_me_rejects_garbage_token(client):
    resp = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_me_returns_profile(client):
    token = register(client, "alice")["token"]
    resp = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.json()["user"]["username"] == "alice"


def test_me_for_deleted_account_is_not_found(client):
    token = create_token({"user_id": 999, "username": "ghost"})
    resp = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 404


def test_health_check(client):
    resp = client.get("/api/v1/health-check")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
