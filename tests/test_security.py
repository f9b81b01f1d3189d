"""Tests for session token issue and verification."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from jose import jwt

from app.core.config import settings
from app.core.security import issue_session_jwt, verify_session_jwt
from tests.factories import USER_ID


def test_round_trip_carries_identity():
    token = issue_session_jwt(USER_ID, "apple", "apple-sub")
    ctx = verify_session_jwt(token)

    assert ctx.user_id == USER_ID
    assert ctx.provider == "apple"
    assert ctx.provider_sub == "apple-sub"


def test_token_claims():
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    token = issue_session_jwt(USER_ID, "google", "g-sub", now=now)
    claims = jwt.get_unverified_claims(token)

    assert claims["iss"] == "datebook-api"
    assert claims["aud"] == "datebook-app"
    assert claims["uid"] == USER_ID
    assert claims["prv"] == "google"
    assert claims["exp"] - claims["iat"] == 14 * 24 * 3600


def test_expired_token_is_rejected():
    token = issue_session_jwt(USER_ID, "google", "g-sub", now=datetime.now(timezone.utc) - timedelta(days=15))
    with pytest.raises(HTTPException) as exc:
        verify_session_jwt(token)
    assert exc.value.status_code == 401


def test_wrong_audience_is_rejected():
    token = jwt.encode(
        {"uid": USER_ID, "iss": settings.jwt_issuer, "aud": "someone-else"},
        settings.jwt_secret,
        algorithm="HS256",
    )
    with pytest.raises(HTTPException) as exc:
        verify_session_jwt(token)
    assert exc.value.status_code == 401


def test_token_signed_with_other_secret_is_rejected():
    token = jwt.encode(
        {"uid": USER_ID, "iss": settings.jwt_issuer, "aud": settings.jwt_audience},
        "x" * 40,
        algorithm="HS256",
    )
    with pytest.raises(HTTPException):
        verify_session_jwt(token)


def test_missing_uid_is_rejected():
    token = jwt.encode(
        {"sub": "s", "iss": settings.jwt_issuer, "aud": settings.jwt_audience},
        settings.jwt_secret,
        algorithm="HS256",
    )
    with pytest.raises(HTTPException) as exc:
        verify_session_jwt(token)
    assert exc.value.detail == "Invalid session: missing uid"


def test_short_secret_refuses_to_sign(monkeypatch):
    monkeypatch.setattr(settings, "jwt_secret", "too-short")
    with pytest.raises(RuntimeError):
        issue_session_jwt(USER_ID, "google", "g-sub")


def test_routes_require_bearer_token(client):
    response = client.get("/scrapbooks")
    assert response.status_code == 401
    assert response.json() == {"ok": False, "error": "Missing Authorization header"}


def test_garbage_bearer_token_is_401(client):
    response = client.get("/scrapbooks", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid session"
