"""Tests for registration, login, Google sign-in and the bearer-token gate."""
import time
from datetime import timedelta

import pytest
from jose import jwt

from notetaker.api.auth import ALGORITHM, create_access_token, decode_access_token
from notetaker.api.credentials import CredentialStore
from notetaker.api.errors import Conflict
from notetaker.api.models import User


def test_register_then_login_returns_token_for_same_user(client):
    response = client.post(
        "/auth/register",
        json={"email": "bob@example.com", "password": "hunter22", "name": "Bob"},
    )
    assert response.status_code == 200
    registered = response.json()
    assert registered["user"]["email"] == "bob@example.com"
    assert registered["user"]["name"] == "Bob"
    assert "passwordHash" not in registered["user"]
    assert "password_hash" not in registered["user"]

    response = client.post("/auth/login", json={"email": "bob@example.com", "password": "hunter22"})
    assert response.status_code == 200
    logged_in = response.json()
    assert logged_in["user"]["id"] == registered["user"]["id"]
    assert decode_access_token(logged_in["token"]) == registered["user"]["id"]
    assert decode_access_token(registered["token"]) == registered["user"]["id"]


def test_token_expires_in_seven_days_by_default(register):
    user_id, headers = register()
    token = headers["Authorization"].split(" ", 1)[1]
    claims = jwt.get_unverified_claims(token)
    assert set(claims) == {"sub", "exp"}
    assert claims["sub"] == str(user_id)
    lifetime = claims["exp"] - time.time()
    assert 7 * 24 * 3600 - 120 < lifetime <= 7 * 24 * 3600


def test_register_duplicate_email_is_rejected(client, register):
    register(email="dup@example.com")
    response = client.post("/auth/register", json={"email": "dup@example.com", "password": "another1"})
    assert response.status_code == 400
    assert response.json() == {"error": "User already exists"}


def test_register_validation_lists_fields(client):
    response = client.post("/auth/register", json={"email": "not-an-email", "password": "123"})
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation failed"
    fields = {d["field"] for d in body["details"]}
    assert {"email", "password"} <= fields


@pytest.mark.parametrize("email", ["alice@example.com", "nobody@example.com"])
def test_login_failure_looks_the_same_for_known_and_unknown_email(client, register, email):
    register()
    response = client.post("/auth/login", json={"email": email, "password": "wrong-password"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid credentials"}


def test_login_to_google_only_account_is_invalid_credentials(client, oauth):
    oauth.add("code-1", "gina@example.com")
    assert client.post("/auth/google", json={"code": "code-1"}).status_code == 200

    response = client.post("/auth/login", json={"email": "gina@example.com", "password": "whatever"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid credentials"}


# Auth gate

def test_notes_require_bearer_token(client):
    response = client.get("/notes")
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}
    assert response.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.parametrize(
    "header",
    [
        "Bearer not-a-jwt",
        "Basic dXNlcjpwYXNz",
        "Token abc.def.ghi",
    ],
)
def test_malformed_tokens_are_rejected_identically(client, header):
    response = client.get("/notes", headers={"Authorization": header})
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_expired_and_forged_tokens_are_rejected_identically(client, register):
    user_id, _ = register()
    expired = create_access_token(user_id, expires_delta=timedelta(seconds=-5))
    forged = jwt.encode({"sub": str(user_id)}, "some-other-secret", algorithm=ALGORITHM)

    for token in (expired, forged):
        response = client.get("/notes", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}


# Google sign-in

def test_google_url(client):
    response = client.get("/auth/google/url")
    assert response.status_code == 200
    assert response.json()["url"].startswith("https://")


def test_google_sign_in_creates_account(client, oauth, session_factory):
    oauth.add("code-1", "gina@example.com", subject="g-123", name="Gina", picture="https://img/g.png")

    response = client.post("/auth/google", json={"code": "code-1"})
    assert response.status_code == 200
    data = response.json()
    assert data["user"]["email"] == "gina@example.com"
    assert data["user"]["name"] == "Gina"
    assert decode_access_token(data["token"]) == data["user"]["id"]

    with session_factory() as db:
        user = db.query(User).filter(User.email == "gina@example.com").one()
        assert user.google_id == "g-123"
        assert user.password_hash is None
        assert user.avatar == "https://img/g.png"


def test_google_sign_in_links_existing_password_account(client, register, oauth, session_factory):
    user_id, _ = register(email="alice@example.com")
    oauth.add("code-2", "alice@example.com", subject="g-alice")

    response = client.post("/auth/google", json={"code": "code-2"})
    assert response.status_code == 200
    assert response.json()["user"]["id"] == user_id

    with session_factory() as db:
        users = db.query(User).filter(User.email == "alice@example.com").all()
        assert len(users) == 1
        assert users[0].google_id == "g-alice"
        assert users[0].password_hash is not None

    # password login still works after linking
    response = client.post("/auth/login", json={"email": "alice@example.com", "password": "secret123"})
    assert response.status_code == 200


def test_google_sign_in_twice_reuses_account(client, oauth):
    oauth.add("code-1", "gina@example.com", subject="g-1")
    oauth.add("code-2", "gina@example.com", subject="g-1")
    first = client.post("/auth/google", json={"code": "code-1"}).json()
    second = client.post("/auth/google", json={"code": "code-2"}).json()
    assert first["user"]["id"] == second["user"]["id"]


def test_google_sign_in_after_email_change_reuses_account(client, oauth, session_factory):
    oauth.add("first", "old@example.com", subject="sub-1")
    oauth.add("second", "new@example.com", subject="sub-1")

    first = client.post("/auth/google", json={"code": "first"})
    second = client.post("/auth/google", json={"code": "second"})

    assert first.status_code == 200
    assert second.status_code == 200
    assert second.json()["user"]["id"] == first.json()["user"]["id"]
    with session_factory() as db:
        assert db.query(User).filter(User.google_id == "sub-1").count() == 1


def test_google_provider_failure_is_500(client):
    response = client.post("/auth/google", json={"code": "rejected"})
    assert response.status_code == 500
    assert response.json() == {"error": "Google authentication failed"}


def test_register_race_on_same_email_is_conflict(session_factory):
    with session_factory() as db:
        store = CredentialStore(db)
        store.register("race@example.com", "secret123")
        # the second caller checked before the first one committed
        store._find_by_email = lambda email: None

        with pytest.raises(Conflict):
            store.register("race@example.com", "secret123")

        assert db.query(User).filter(User.email == "race@example.com").count() == 1
