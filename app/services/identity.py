"""
Identity provider token verification (Google and Apple sign-in).
"""

import logging
from functools import lru_cache

import httpx
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token
from jose import jwt, JWTError

from app.core.config import settings

logger = logging.getLogger(__name__)


class ProviderConfigError(RuntimeError):
    """Server is missing configuration for an identity provider."""


class InvalidIdentityToken(ValueError):
    """The provider ID token failed verification."""


class ProviderClaims:
    """Subset of provider claims the API cares about."""

    def __init__(self, sub: str, email: str | None = None, email_verified: bool = False):
        self.sub = sub
        self.email = email
        self.email_verified = email_verified


def _truthy(value) -> bool:
    # Apple sends some booleans as "true"/"false" strings
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() == "true"
    return False


def verify_google_id_token(token: str) -> ProviderClaims:
    audiences = settings.google_audiences
    if not audiences:
        raise ProviderConfigError("Missing GOOGLE_CLIENT_ID (or GOOGLE_CLIENT_IDS)")

    try:
        payload = google_id_token.verify_oauth2_token(
            token,
            google_requests.Request(),
            audience=audiences,
        )
    except ValueError as e:
        logger.warning(f"Google ID token rejected: {e}")
        raise InvalidIdentityToken(str(e)) from e

    sub = payload.get("sub")
    if not sub:
        raise InvalidIdentityToken("Invalid Google token: missing sub")

    return ProviderClaims(
        sub=sub,
        email=payload.get("email"),
        email_verified=bool(payload.get("email_verified", False)),
    )


@lru_cache(maxsize=1)
def get_apple_jwks() -> dict:
    """Fetch Apple's signing keys (cached)."""
    response = httpx.get(settings.apple_jwks_url, timeout=10.0)
    response.raise_for_status()
    return response.json()


def _find_apple_key(kid: str | None) -> dict | None:
    for key in get_apple_jwks().get("keys", []):
        if key.get("kid") == kid:
            return key

    # Apple rotates keys; refresh once before giving up
    get_apple_jwks.cache_clear()
    for key in get_apple_jwks().get("keys", []):
        if key.get("kid") == kid:
            return key
    return None


def verify_apple_id_token(token: str) -> ProviderClaims:
    audience = settings.apple_audience
    if not audience:
        raise ProviderConfigError("Missing APPLE_AUDIENCE")

    try:
        header = jwt.get_unverified_header(token)
        key = _find_apple_key(header.get("kid"))
        if not key:
            raise InvalidIdentityToken("Invalid Apple token: unknown signing key")

        payload = jwt.decode(
            token,
            key,
            algorithms=[header.get("alg", "RS256")],
            audience=audience,
            issuer=settings.apple_issuer,
            options={"verify_at_hash": False},
        )
    except JWTError as e:
        logger.warning(f"Apple ID token rejected: {e}")
        raise InvalidIdentityToken(str(e)) from e

    sub = payload.get("sub")
    if not sub:
        raise InvalidIdentityToken("Invalid Apple token: missing sub")

    email = payload.get("email")
    return ProviderClaims(
        sub=sub,
        email=email if isinstance(email, str) else None,
        email_verified=_truthy(payload.get("email_verified")),
    )


def verify_id_token(provider: str, token: str) -> ProviderClaims:
    if provider == "google":
        return verify_google_id_token(token)
    if provider == "apple":
        return verify_apple_id_token(token)
    raise InvalidIdentityToken("Unknown provider")
