"""Account registration, login and health endpoint tests."""

from ndizi.models import User
from ndizi.services.auth_service import verify_password


REGISTRATION = {
    "email": "New.Owner@Shop.in",
    "password": "s3cret-pass",
    "storeName": "Corner Shop",
    "ownerName": "New Owner",
    "phone": "+91 98450 00000",
}


def test_health(client, db_session):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json == {"status": "ok"}


def test_register_returns_user_without_password(client, db_session):
    response = client.post("/api/auth/register", json=REGISTRATION)
    assert response.status_code == 200

    user = response.json["user"]
    assert user["email"] == "new.owner@shop.in"
    assert user["storeName"] == "Corner Shop"
    assert user["plan"] == "free"
    assert user["lastSyncAt"] is None
    assert "password" not in user
    assert "passwordHash" not in user

    stored = db_session.query(User).filter_by(email="new.owner@shop.in").one()
    assert stored.password_hash != REGISTRATION["password"]
    assert verify_password(REGISTRATION["password"], stored.password_hash)


def test_register_duplicate_email(client, db_session):
    client.post("/api/auth/register", json=REGISTRATION)
    response = client.post("/api/auth/register", json={**REGISTRATION, "email": "new.owner@shop.in"})
    assert response.status_code == 400
    assert response.json["message"] == "User already exists"


def test_register_missing_fields(client, db_session):
    response = client.post("/api/auth/register", json={"email": "a@b.in", "password": "x"})
    assert response.status_code == 400
    assert db_session.query(User).count() == 0


def test_register_missing_password(client, db_session):
    response = client.post("/api/auth/register", json={**REGISTRATION, "password": ""})
    assert response.status_code == 400
    assert response.json["message"] == "password is required"


def test_login(client, user_a):
    response = client.post("/api/auth/login", json={"email": "OWNER_A@acme.in", "password": "Password123!"})
    assert response.status_code == 200
    assert response.json["user"]["id"] == user_a.id


def test_login_wrong_password(client, user_a):
    response = client.post("/api/auth/login", json={"email": "owner_a@acme.in", "password": "wrong"})
    assert response.status_code == 401
    assert response.json["message"] == "Invalid credentials"


def test_login_unknown_email(client, db_session):
    response = client.post("/api/auth/login", json={"email": "ghost@nowhere.in", "password": "x"})
    assert response.status_code == 401


def test_login_requires_both_fields(client, db_session):
    response = client.post("/api/auth/login", json={"email": "owner_a@acme.in"})
    assert response.status_code == 400


def test_register_rejects_non_string_fields(client, db_session):
    response = client.post("/api/auth/register", json={**REGISTRATION, "email": 123})
    assert response.status_code == 400
    assert response.json["message"] == "email must be a string"

    response = client.post("/api/auth/register", json={**REGISTRATION, "storeName": ["Corner"]})
    assert response.status_code == 400
    assert response.json["message"] == "storeName must be a string"
    assert db_session.query(User).count() == 0


def test_login_with_non_string_email(client, user_a):
    response = client.post("/api/auth/login", json={"email": ["owner_a@acme.in"], "password": "Password123!"})
    assert response.status_code == 401
    assert response.json["message"] == "Invalid credentials"
