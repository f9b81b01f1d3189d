"""
Supabase Storage service for relationship media.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone

from app.core.config import settings
from database.supabase_client import get_supabase_client

logger = logging.getLogger(__name__)


def guess_extension(content_type: str | None) -> str:
    """File extension for an uploaded photo's MIME type, jpg when unknown."""
    ct = (content_type or "").lower()
    if "jpeg" in ct or "jpg" in ct:
        return "jpg"
    if "png" in ct:
        return "png"
    if "heic" in ct:
        return "heic"
    if "webp" in ct:
        return "webp"
    return "jpg"


def relationship_prefix(relationship_id: str) -> str:
    return f"relationships/{relationship_id}/"


def is_relationship_blob(blob_key: str, relationship_id: str) -> bool:
    """Blob keys are only attachable inside the relationship that uploaded them."""
    return blob_key.startswith(relationship_prefix(relationship_id))


def _pick(response: dict, *keys: str) -> str | None:
    # storage3 has used signedURL, signedUrl and signed_url across releases
    for key in keys:
        if response.get(key):
            return response[key]
    return None


class StorageService:
    """Signed upload and read URLs for the media bucket."""

    def __init__(self, bucket: str | None = None):
        self.supabase = get_supabase_client()
        self.bucket = bucket or settings.media_bucket

    def new_media_key(self, relationship_id: str, content_type: str | None = None) -> str:
        return f"{relationship_prefix(relationship_id)}media/{uuid.uuid4()}.{guess_extension(content_type)}"

    def create_upload_url(self, blob_key: str) -> dict:
        """
        Create a signed URL the client can PUT the file to.

        Returns:
            Dict with uploadUrl, blobKey and expiresAt (ISO string)
        """
        response = self.supabase.storage.from_(self.bucket).create_signed_upload_url(blob_key)
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=settings.upload_url_ttl_seconds)
        return {
            "uploadUrl": _pick(response, "signed_url", "signedUrl", "signedURL"),
            "blobKey": blob_key,
            "expiresAt": expires_at.isoformat(),
        }

    def create_read_url(self, blob_key: str, expires_in: int | None = None) -> dict:
        """
        Create a time-limited download URL.

        Returns:
            Dict with url and expires_at
        """
        ttl = expires_in or settings.read_url_ttl_seconds
        response = self.supabase.storage.from_(self.bucket).create_signed_url(blob_key, ttl)
        return {
            "url": _pick(response, "signedURL", "signedUrl", "signed_url"),
            "expires_at": datetime.now(timezone.utc) + timedelta(seconds=ttl),
        }

    def try_read_url(self, blob_key: str) -> dict:
        """create_read_url, but a storage hiccup only drops the URL."""
        try:
            return self.create_read_url(blob_key)
        except Exception as e:
            logger.warning(f"Could not sign read URL for {blob_key}: {e}")
            return {"url": None, "expires_at": None}


def get_storage_service() -> StorageService:
    return StorageService()
