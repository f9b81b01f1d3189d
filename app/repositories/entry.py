import base64
import json
from datetime import datetime, timezone

from database.connection import get_db, with_retry

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


def encode_cursor(row: dict) -> str:
    """Opaque keyset cursor pointing just past this row."""
    payload = {
        "occurredAt": row["occurred_at"],
        "createdAt": row["created_at"],
        "id": row["id"],
    }
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_cursor(cursor: str) -> dict:
    """Inverse of encode_cursor. Raises ValueError on anything malformed."""
    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        payload = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except (ValueError, UnicodeError) as e:
        raise ValueError("Invalid cursor") from e

    if not isinstance(payload, dict) or not all(
        isinstance(payload.get(key), str) for key in ("occurredAt", "createdAt", "id")
    ):
        raise ValueError("Invalid cursor")
    return payload


def clamp_page_size(raw: int | None) -> int:
    if raw is None:
        return DEFAULT_PAGE_SIZE
    return min(max(raw, 1), MAX_PAGE_SIZE)


class EntryRepository:
    """Timeline entries, their edit history and attached media."""

    @staticmethod
    @with_retry()
    def create(
        relationship_id: str,
        created_by_user_id: str,
        title: str,
        occurred_at: datetime,
        body: str | None = None,
    ) -> dict | None:
        db = get_db()
        result = db.table("entries").insert({
            "relationship_id": relationship_id,
            "created_by_user_id": created_by_user_id,
            "title": title,
            "occurred_at": occurred_at.isoformat(),
            "body": body,
        }).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def get_by_id(entry_id: str) -> dict | None:
        db = get_db()
        result = db.table("entries").select("*").eq("id", entry_id).limit(1).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def list_page(relationship_id: str, limit: int, cursor: dict | None = None) -> list[dict]:
        """Newest first by (occurred_at, created_at, id), starting after the cursor."""
        db = get_db()
        query = db.table("entries").select("*").eq("relationship_id", relationship_id)
        if cursor:
            occurred, created, entry_id = cursor["occurredAt"], cursor["createdAt"], cursor["id"]
            query = query.or_(
                f'occurred_at.lt."{occurred}",'
                f'and(occurred_at.eq."{occurred}",created_at.lt."{created}"),'
                f'and(occurred_at.eq."{occurred}",created_at.eq."{created}",id.lt.{entry_id})'
            )
        result = query.order("occurred_at", desc=True).order(
            "created_at", desc=True
        ).order("id", desc=True).limit(limit).execute()
        return result.data if result and result.data else []

    @staticmethod
    @with_retry()
    def update(entry_id: str, changes: dict) -> dict | None:
        db = get_db()
        values = {**changes, "updated_at": datetime.now(timezone.utc).isoformat()}
        result = db.table("entries").update(values).eq("id", entry_id).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def record_edit(previous: dict, updated: dict, edited_by_user_id: str) -> dict | None:
        """Audit row with before/after values of an entry edit."""
        db = get_db()
        result = db.table("entry_edits").insert({
            "entry_id": updated["id"],
            "edited_by_user_id": edited_by_user_id,
            "previous_title": previous.get("title"),
            "new_title": updated.get("title"),
            "previous_body": previous.get("body"),
            "new_body": updated.get("body"),
            "previous_occurred_at": previous.get("occurred_at"),
            "new_occurred_at": updated.get("occurred_at"),
        }).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def attach_media(
        entry_id: str,
        relationship_id: str,
        blob_key: str,
        kind: str,
        width: int,
        height: int,
    ) -> dict | None:
        db = get_db()
        result = db.table("entry_media").insert({
            "entry_id": entry_id,
            "relationship_id": relationship_id,
            "blob_key": blob_key,
            "kind": kind,
            "width": width,
            "height": height,
        }).execute()
        return result.data[0] if result and result.data else None
