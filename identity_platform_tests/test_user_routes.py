"""
Tests for registration, profile and password endpoints under /user.
"""
from identity_platform.auth_service.auth import issue_access_token, verify_password
from identity_platform.auth_service.config import settings
from identity_platform.auth_service.db import SessionLocal
from identity_platform.auth_service.models import RefreshToken, User

REGISTER_DATA = {
    "email": "New.User@Example.com",
    "password": "Secret123!",
    "firstName": "New",
    "lastName": "User",
}


def _bearer(user):
    return {"Authorization": f"Bearer {issue_access_token(user).access_token}"}


def test_register_returns_access_token(client):
    response = client.post("/user", json=REGISTER_DATA)

    assert response.status_code == 201
    body = response.json()
    assert body["accessToken"]
    assert body["user"]["email"] == "new.user@example.com"
    assert body["user"]["firstName"] == "New"

    with SessionLocal() as db:
        user = db.query(User).filter(User.email == "new.user@example.com").one()
        assert user.is_oauth is False
        assert user.hashed_password != "Secret123!"
        assert verify_password("Secret123!", user.hashed_password)


def test_register_then_login(client):
    client.post("/user", json=REGISTER_DATA)
    response = client.post("/auth/login", json={"email": "new.user@example.com", "password": "Secret123!"})

    assert response.status_code == 200
    assert response.cookies.get(settings.REFRESH_TOKEN_COOKIE_NAME)


def test_register_duplicate_email(client, make_user):
    make_user(email="new.user@example.com")
    response = client.post("/user", json=REGISTER_DATA)

    assert response.status_code == 409
    assert response.json()["message"] == "Repeated value"


def test_register_short_password(client):
    response = client.post("/user", json=dict(REGISTER_DATA, password="short"))

    assert response.status_code == 400
    fields = [error["field"] for error in response.json()["message"]["errors"]]
    assert "password" in fields


def test_get_profile(client, make_user):
    user = make_user()
    response = client.get("/user/profile", headers=_bearer(user))

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == user.id
    assert body["firstName"] == "Test"
    assert "hashedPassword" not in body


def test_get_profile_requires_token(client):
    response = client.get("/user/profile")
    assert response.status_code == 401


def test_update_profile(client, make_user):
    user = make_user()
    response = client.put(
        "/user/profile",
        json={"firstName": "Jane", "bio": "Writes code"},
        headers=_bearer(user),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["firstName"] == "Jane"
    assert body["lastName"] == "User"
    assert body["bio"] == "Writes code"


def test_update_profile_rejects_long_bio(client, make_user):
    user = make_user()
    response = client.put("/user/profile", json={"bio": "x" * 301}, headers=_bearer(user))
    assert response.status_code == 400


def test_update_password_revokes_sessions(client, make_user):
    user = make_user()
    login = client.post("/auth/login", json={"email": "user@example.com", "password": "Secret123!"})
    assert login.status_code == 200

    response = client.put(
        "/user/password",
        json={"currentPassword": "Secret123!", "newPassword": "BetterSecret456!"},
        headers=_bearer(user),
    )
    assert response.status_code == 200

    with SessionLocal() as db:
        active = db.query(RefreshToken).filter(RefreshToken.is_revoked.is_(False)).count()
    assert active == 0

    assert client.post("/auth/refresh").status_code == 401

    old = client.post("/auth/login", json={"email": "user@example.com", "password": "Secret123!"})
    assert old.status_code == 401
    new = client.post("/auth/login", json={"email": "user@example.com", "password": "BetterSecret456!"})
    assert new.status_code == 200


def test_update_password_wrong_current(client, make_user):
    user = make_user()
    response = client.put(
        "/user/password",
        json={"currentPassword": "nope", "newPassword": "BetterSecret456!"},
        headers=_bearer(user),
    )

    assert response.status_code == 401
    assert response.json()["message"] == "Current password is invalid"


def test_update_password_oauth_user(client, make_user):
    user = make_user(email="oauth@example.com", is_oauth=True)
    response = client.put(
        "/user/password",
        json={"currentPassword": "anything", "newPassword": "BetterSecret456!"},
        headers=_bearer(user),
    )

    assert response.status_code == 401
    assert response.json()["message"] == "Cannot update password for OAuth users"
