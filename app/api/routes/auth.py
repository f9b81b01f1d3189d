import logging

from fastapi import APIRouter, HTTPException, status

from app.core.security import issue_session_jwt
from app.domain.schemas import AuthVerifyRequest, UserSummary
from app.repositories.user import UserRepository
from app.services.identity import InvalidIdentityToken, ProviderConfigError, verify_id_token

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/verify")
def verify(data: AuthVerifyRequest):
    """Exchange a Google/Apple ID token for a Datebook session token."""
    try:
        claims = verify_id_token(data.provider, data.id_token)
    except ProviderConfigError as e:
        logger.error(f"Auth provider misconfigured: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        )
    except InvalidIdentityToken as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    # sub is the stable identity; emails can change
    user = UserRepository.get_by_provider_identity(data.provider, claims.sub)
    if not user:
        email = claims.email or f"{data.provider}_{claims.sub}@noemail.local"
        user = UserRepository.create(email=email, provider=data.provider, provider_sub=claims.sub)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create user",
            )
        logger.info(f"Created user {user['id']} via {data.provider}")

    token = issue_session_jwt(user["id"], data.provider, claims.sub)
    return {
        "ok": True,
        "token": token,
        "user": UserSummary(id=user["id"], email=user["email"]),
    }
