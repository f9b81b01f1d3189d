"""Shared fixtures for the API test suite.

Environment variables are set before the app is imported so the cached
Settings pick them up. No test talks to Supabase: repositories are patched.
"""

import os

os.environ.setdefault("JWT_SECRET", "test-secret-that-is-at-least-32-characters-long")
os.environ.setdefault("SUPABASE_URL", "")
os.environ.setdefault("SUPABASE_SECRET_KEY", "")
os.environ.setdefault("MEDIA_BUCKET", "datebook-media-test")

import pytest
from fastapi.testclient import TestClient

from app.core.security import issue_session_jwt
from app.main import app
from app.services.relationship_push import reset_cooldowns
from tests.factories import PARTNER_ID, USER_ID


@pytest.fixture
def client():
    """TestClient that renders unhandled errors as 500 responses."""
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def auth_headers():
    token = issue_session_jwt(USER_ID, "google", "google-sub-1")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def partner_headers():
    token = issue_session_jwt(PARTNER_ID, "apple", "apple-sub-2")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
def _clear_push_cooldowns():
    reset_cooldowns()
    yield
    reset_cooldowns()
