"""Tests for the forgot/reset password flow."""
from datetime import datetime, timedelta

import pytest

from notetaker.api.credentials import CredentialStore, generate_reset_code
from notetaker.api.errors import InvalidOrExpiredCode
from notetaker.api.models import User


def test_reset_code_is_six_digits():
    for _ in range(50):
        code = generate_reset_code()
        assert len(code) == 6
        assert code.isdigit()


def test_forgot_then_reset_then_code_is_spent(client, register, mailer):
    register(email="known@example.com")

    response = client.post("/auth/forgot-password", json={"email": "known@example.com"})
    assert response.status_code == 200
    assert response.json() == {"message": "Reset email sent successfully"}
    assert mailer.sent[-1][0] == "known@example.com"
    code = mailer.last_code()

    response = client.post(
        "/auth/reset-password",
        json={"email": "known@example.com", "otp": code, "newPassword": "newpass123"},
    )
    assert response.status_code == 200
    assert response.json() == {"message": "Password reset successfully"}

    response = client.post(
        "/auth/reset-password",
        json={"email": "known@example.com", "otp": code, "newPassword": "another123"},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid or expired reset code"}

    old = client.post("/auth/login", json={"email": "known@example.com", "password": "secret123"})
    assert old.status_code == 400
    new = client.post("/auth/login", json={"email": "known@example.com", "password": "newpass123"})
    assert new.status_code == 200


def test_forgot_password_unknown_email_is_404(client, mailer):
    response = client.post("/auth/forgot-password", json={"email": "ghost@example.com"})
    assert response.status_code == 404
    assert response.json() == {"error": "User not found"}
    assert mailer.sent == []


def test_reset_with_wrong_code_fails(client, register, mailer):
    register(email="known@example.com")
    client.post("/auth/forgot-password", json={"email": "known@example.com"})
    wrong = "000000" if mailer.last_code() != "000000" else "111111"

    response = client.post(
        "/auth/reset-password",
        json={"email": "known@example.com", "otp": wrong, "newPassword": "newpass123"},
    )
    assert response.status_code == 400


def test_reset_without_request_fails(client, register):
    register(email="known@example.com")
    response = client.post(
        "/auth/reset-password",
        json={"email": "known@example.com", "otp": "123456", "newPassword": "newpass123"},
    )
    assert response.status_code == 400


def test_new_request_replaces_previous_code(client, register, mailer):
    register(email="known@example.com")
    client.post("/auth/forgot-password", json={"email": "known@example.com"})
    first = mailer.last_code()
    client.post("/auth/forgot-password", json={"email": "known@example.com"})
    second = mailer.last_code()

    if first != second:
        response = client.post(
            "/auth/reset-password",
            json={"email": "known@example.com", "otp": first, "newPassword": "newpass123"},
        )
        assert response.status_code == 400
    response = client.post(
        "/auth/reset-password",
        json={"email": "known@example.com", "otp": second, "newPassword": "newpass123"},
    )
    assert response.status_code == 200


def test_reset_password_validates_length(client):
    response = client.post(
        "/auth/reset-password",
        json={"email": "known@example.com", "otp": "123456", "newPassword": "short"},
    )
    assert response.status_code == 400
    assert response.json()["details"][0]["field"] == "newPassword"


def test_expired_code_is_rejected(session_factory, mailer):
    with session_factory() as db:
        store = CredentialStore(db)
        store.register("late@example.com", "secret123")
        code = store.request_password_reset("late@example.com", mailer)

        user = db.query(User).filter(User.email == "late@example.com").one()
        user.reset_token_expiry = datetime.utcnow() - timedelta(seconds=1)
        db.commit()

        with pytest.raises(InvalidOrExpiredCode):
            store.reset_password("late@example.com", code, "newpass123")


def test_reset_code_is_stored_hashed_with_ten_minute_expiry(session_factory, mailer):
    with session_factory() as db:
        store = CredentialStore(db)
        store.register("hash@example.com", "secret123")
        before = datetime.utcnow()
        code = store.request_password_reset("hash@example.com", mailer)

        user = db.query(User).filter(User.email == "hash@example.com").one()
        assert user.reset_token != code
        remaining = user.reset_token_expiry - before
        assert timedelta(minutes=9) < remaining <= timedelta(minutes=10, seconds=5)
