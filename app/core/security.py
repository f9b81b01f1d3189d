import logging
from datetime import datetime, timedelta, timezone

from jose import jwt, JWTError
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.config import settings

logger = logging.getLogger(__name__)

# Bearer token extractor (auto_error=False so we control the 401 body)
security = HTTPBearer(auto_error=False)

SESSION_ALGORITHM = "HS256"
MIN_SECRET_LENGTH = 32


class AuthContext:
    """Identity carried by a verified session token."""

    def __init__(self, user_id: str, provider: str, provider_sub: str):
        self.user_id = user_id
        self.provider = provider
        self.provider_sub = provider_sub


def _get_jwt_secret() -> str:
    secret = settings.jwt_secret
    if not secret or len(secret) < MIN_SECRET_LENGTH:
        raise RuntimeError("JWT_SECRET missing or too short (use 32+ chars)")
    return secret


def issue_session_jwt(user_id: str, provider: str, provider_sub: str, now: datetime | None = None) -> str:
    """Mint the API's own session token after a provider login."""
    issued_at = now or datetime.now(timezone.utc)
    claims = {
        "uid": user_id,
        "prv": provider,
        "sub": provider_sub,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + timedelta(days=settings.jwt_ttl_days)).timestamp()),
    }
    return jwt.encode(claims, _get_jwt_secret(), algorithm=SESSION_ALGORITHM)


def verify_session_jwt(token: str) -> AuthContext:
    """Verify a session token and return who it belongs to.

    Raises:
        HTTPException 401 for bad signature, issuer, audience, expiry or shape.
    """
    try:
        payload = jwt.decode(
            token,
            _get_jwt_secret(),
            algorithms=[SESSION_ALGORITHM],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
        )
    except JWTError as e:
        logger.warning(f"Session JWT verification failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session",
        )

    user_id = payload.get("uid")
    if not isinstance(user_id, str):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session: missing uid",
        )

    return AuthContext(
        user_id=user_id,
        provider=payload.get("prv", ""),
        provider_sub=payload.get("sub", ""),
    )


def require_auth(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> AuthContext:
    """Require authentication - raises 401 if not authenticated."""
    if not credentials:
        logger.warning("Auth required but no Bearer token provided")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return verify_session_jwt(credentials.credentials)
