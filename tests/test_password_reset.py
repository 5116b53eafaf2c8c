import datetime

import pytest
from fastapi import HTTPException

from mentorship import auth
from mentorship import password_reset


def _token_for(db):
    tokens = db.docs("passwordResetTokens")
    assert len(tokens) == 1
    return next(iter(tokens))


def test_forgot_password_unknown_email_is_silent(db, people, sent_emails):
    result = password_reset.request_reset("nobody@example.com")
    assert result["message"] == "If an account exists, a password reset link has been sent."
    assert db.docs("passwordResetTokens") == {}
    assert sent_emails == []


def test_forgot_password_creates_token_and_mails_link(db, people, sent_emails):
    result = password_reset.request_reset("  Mentee-1@Example.com ")
    assert result["message"] == "If an account exists, a password reset link has been sent."

    token = _token_for(db)
    assert len(token) == 64
    record = db.docs("passwordResetTokens")[token]
    assert record["userId"] == "mentee-1"
    assert record["used"] is False

    assert len(sent_emails) == 1
    assert f"https://mentors.test/?reset-password&token={token}" in sent_emails[0]["text"]


def test_forgot_password_requires_email(db):
    with pytest.raises(HTTPException) as exc:
        password_reset.request_reset(None)
    assert exc.value.status_code == 400


def test_reset_password_sets_hash_and_consumes_token(db, people):
    password_reset.request_reset("mentee-1@example.com")
    token = _token_for(db)

    password_reset.reset_password(token, "NewPassw0rd")

    user = db.docs("users")["mentee-1"]
    assert auth.check_password(user["passwordHash"], "NewPassw0rd")
    assert "passwordUpdatedAt" in user
    record = db.docs("passwordResetTokens")[token]
    assert record["used"] is True
    assert "usedAt" in record

    with pytest.raises(HTTPException) as exc:
        password_reset.reset_password(token, "NewPassw0rd")
    assert exc.value.detail == "This reset token has already been used"


def test_reset_password_unknown_token(db):
    with pytest.raises(HTTPException) as exc:
        password_reset.reset_password("f" * 64, "NewPassw0rd")
    assert exc.value.detail == "Invalid or expired reset token"


def test_reset_password_expired_token(db, people):
    past = datetime.datetime.now(tz=datetime.timezone.utc) - datetime.timedelta(minutes=5)
    db.add(
        "passwordResetTokens",
        {"userId": "mentee-1", "email": "mentee-1@example.com", "expiresAt": past.isoformat(), "used": False},
        doc_id="a" * 64,
    )
    with pytest.raises(HTTPException) as exc:
        password_reset.reset_password("a" * 64, "NewPassw0rd")
    assert exc.value.detail == "Reset token has expired. Please request a new one."


def test_reset_password_missing_user(db):
    future = datetime.datetime.now(tz=datetime.timezone.utc) + datetime.timedelta(minutes=30)
    db.add("passwordResetTokens", {"userId": "ghost", "expiresAt": future.isoformat(), "used": False}, doc_id="b" * 64)
    with pytest.raises(HTTPException) as exc:
        password_reset.reset_password("b" * 64, "NewPassw0rd")
    assert exc.value.detail == "User not found"


def test_reset_password_weak_password(db):
    with pytest.raises(HTTPException) as exc:
        password_reset.reset_password("b" * 64, "short")
    assert exc.value.status_code == 400


def test_forgot_password_endpoint(client, db, people):
    response = client.post("/api/v1/auth/forgot-password", json={"email": "mentee-1@example.com"})
    assert response.status_code == 200
    assert response.json()["success"] is True

    response = client.post("/api/v1/auth/reset-password", json={"token": "", "password": ""})
    assert response.status_code == 400
