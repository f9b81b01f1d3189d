from fastapi import APIRouter, Depends

from app.core.security import AuthContext, require_auth
from app.domain.schemas import PushTokenRegister
from app.repositories.user import UserRepository

router = APIRouter()


@router.post("/register")
def register_push_token(data: PushTokenRegister, auth: AuthContext = Depends(require_auth)):
    """Store the device's Expo push token; null unregisters."""
    UserRepository.set_push_token(auth.user_id, data.token)
    return {"ok": True}
