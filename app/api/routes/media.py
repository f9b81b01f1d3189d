from fastapi import APIRouter, Depends

from app.core.permissions import require_relationship_member
from app.core.security import AuthContext, require_auth
from app.domain.schemas import UploadUrlRequest
from app.services.storage import get_storage_service

router = APIRouter()


@router.post("/upload-url")
def create_upload_url(data: UploadUrlRequest, auth: AuthContext = Depends(require_auth)):
    """Signed upload URL for a new relationship-scoped photo."""
    member = require_relationship_member(auth.user_id, data.relationship_id)

    storage = get_storage_service()
    blob_key = storage.new_media_key(member.relationship_id, data.content_type)
    upload = storage.create_upload_url(blob_key)

    return {"ok": True, **upload}
