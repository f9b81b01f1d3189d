from datetime import datetime, timezone

from database.connection import get_db, with_retry


class ScrapbookRepository:

    @staticmethod
    @with_retry()
    def create(
        relationship_id: str,
        created_by_user_id: str,
        title: str,
        cover_blob_key: str | None = None,
        cover_width: int | None = None,
        cover_height: int | None = None,
    ) -> dict | None:
        """Create a new scrapbook."""
        db = get_db()
        result = db.table("scrapbooks").insert({
            "relationship_id": relationship_id,
            "created_by_user_id": created_by_user_id,
            "title": title,
            "cover_blob_key": cover_blob_key,
            "cover_width": cover_width,
            "cover_height": cover_height,
        }).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def get_by_id(scrapbook_id: str) -> dict | None:
        """Get a scrapbook by ID."""
        db = get_db()
        result = db.table("scrapbooks").select("*").eq("id", scrapbook_id).limit(1).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def list_for_relationships(relationship_ids: list[str], limit: int = 200) -> list[dict]:
        """Scrapbooks of the given relationships, newest first."""
        if not relationship_ids:
            return []
        db = get_db()
        result = db.table("scrapbooks").select("*").in_(
            "relationship_id", relationship_ids
        ).order("created_at", desc=True).limit(limit).execute()
        return result.data if result and result.data else []

    @staticmethod
    @with_retry()
    def update_details(scrapbook_id: str, relationship_id: str, changes: dict) -> dict | None:
        """Apply details_* column changes and bump updated_at."""
        db = get_db()
        values = {**changes, "updated_at": datetime.now(timezone.utc).isoformat()}
        result = db.table("scrapbooks").update(values).eq(
            "id", scrapbook_id
        ).eq("relationship_id", relationship_id).execute()
        return result.data[0] if result and result.data else None
