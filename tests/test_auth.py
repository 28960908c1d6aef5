"""Login, registration, password change and token helpers."""

from __future__ import annotations

import itertools
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from app.controllers.dependencies import get_current_user
from app.database import get_session
from app.main import app
from app.models.user import User, UserRole
from app.utils import (
    AuthenticationError,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from conftest import FakeSession

PASSWORD = "Secret123"


def _user(**overrides) -> User:
    values = {
        "id": 5,
        "email": "coach@example.com",
        "full_name": "Casey Coach",
        "password_hash": hash_password(PASSWORD),
        "role": UserRole.ADMIN,
    }
    values.update(overrides)
    return User(**values)


@pytest.fixture
def session() -> FakeSession:
    return FakeSession(id_factory=itertools.count(100).__next__)


@pytest.fixture(autouse=True)
def override_session(session):
    async def fake_get_session():
        yield session

    app.dependency_overrides[get_session] = fake_get_session
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def test_password_hash_round_trip():
    hashed = hash_password(PASSWORD)

    assert hashed != PASSWORD
    assert verify_password(PASSWORD, hashed)
    assert not verify_password("Wrong1234", hashed)
    assert not verify_password(PASSWORD, "not-base64!!")


def test_access_token_carries_profile_claims():
    token = create_access_token(subject="5", user=_user())

    payload = decode_access_token(token)

    assert payload.sub == "5"
    assert payload.user.model_dump(mode="json") == {"id": 5, "name": "Casey Coach", "role": "admin"}
    assert payload.user.is_admin


def test_expired_token_is_rejected():
    token = create_access_token(subject="5", expires_delta=timedelta(minutes=-1))

    with pytest.raises(AuthenticationError):
        decode_access_token(token)


def test_login_issues_token(client, session):
    session.result = _user()

    response = client.post("/auth/login", json={"email": "coach@example.com", "password": PASSWORD})

    assert response.status_code == 200
    payload = response.json()
    assert payload["tokenType"] == "bearer"
    assert payload["role"] == "admin"
    assert payload["name"] == "Casey Coach"
    assert decode_access_token(payload["accessToken"]).sub == "5"


def test_login_rejects_bad_password(client, session):
    session.result = _user()

    response = client.post("/auth/login", json={"email": "coach@example.com", "password": "Wrong1234"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"


def test_register_creates_regular_user(client, session):
    response = client.post(
        "/users/",
        json={"email": "new@example.com", "fullName": "New Rep", "password": PASSWORD},
    )

    assert response.status_code == 201
    payload = response.json()
    assert payload["id"] == 100
    assert payload["role"] == "user"
    assert payload["message"] == "User registered successfully"
    assert session.added[0].role == UserRole.USER


def test_register_rejects_duplicate_email(client, session):
    session.result = _user()

    response = client.post(
        "/users/",
        json={"email": "coach@example.com", "fullName": "Casey", "password": PASSWORD},
    )

    assert response.status_code == 409


def test_register_enforces_password_strength(client):
    response = client.post(
        "/users/",
        json={"email": "new@example.com", "fullName": "New Rep", "password": "lowercase1"},
    )

    assert response.status_code == 422


def test_change_password(client, session):
    user = _user()
    app.dependency_overrides[get_current_user] = lambda: user

    wrong = client.post(
        "/users/me/password",
        json={"currentPassword": "Wrong1234", "newPassword": "Another456"},
    )
    ok = client.post(
        "/users/me/password",
        json={"currentPassword": PASSWORD, "newPassword": "Another456"},
    )

    assert wrong.status_code == 400
    assert ok.status_code == 200
    assert verify_password("Another456", user.password_hash)
    assert session.commits == 1
