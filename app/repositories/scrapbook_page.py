from datetime import datetime, timezone

from postgrest.exceptions import APIError

from database.connection import get_db, is_unique_violation, with_retry

PAGE_LIMIT = 500


class ScrapbookPageRepository:
    """Pages of a scrapbook, ordered by a 1-based page_index."""

    @staticmethod
    @with_retry()
    def get_in_scrapbook(page_id: str, scrapbook_id: str, relationship_id: str) -> dict | None:
        """Get a page only if it belongs to this scrapbook and relationship."""
        db = get_db()
        result = db.table("scrapbook_pages").select("*").eq(
            "id", page_id
        ).eq("scrapbook_id", scrapbook_id).eq(
            "relationship_id", relationship_id
        ).limit(1).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def list_for_scrapbook(scrapbook_id: str, relationship_id: str) -> list[dict]:
        db = get_db()
        result = db.table("scrapbook_pages").select("*").eq(
            "scrapbook_id", scrapbook_id
        ).eq("relationship_id", relationship_id).order(
            "page_index"
        ).limit(PAGE_LIMIT).execute()
        return result.data if result and result.data else []

    @staticmethod
    @with_retry()
    def get_max_page_index(scrapbook_id: str) -> int:
        db = get_db()
        result = db.table("scrapbook_pages").select("page_index").eq(
            "scrapbook_id", scrapbook_id
        ).order("page_index", desc=True).limit(1).execute()
        return result.data[0]["page_index"] if result and result.data else 0

    @staticmethod
    def append(scrapbook_id: str, relationship_id: str, created_by_user_id: str, attempts: int = 3) -> dict | None:
        """Append a page at max(page_index) + 1.

        Two members appending at once collide on the (scrapbook_id,
        page_index) unique key; the loser re-reads the max and tries again.
        """
        for attempt in range(attempts):
            next_index = ScrapbookPageRepository.get_max_page_index(scrapbook_id) + 1
            try:
                return ScrapbookPageRepository._insert(
                    scrapbook_id, relationship_id, created_by_user_id, next_index
                )
            except APIError as e:
                if not is_unique_violation(e) or attempt == attempts - 1:
                    raise
        return None

    @staticmethod
    @with_retry()
    def _insert(scrapbook_id: str, relationship_id: str, created_by_user_id: str, page_index: int) -> dict | None:
        db = get_db()
        result = db.table("scrapbook_pages").insert({
            "scrapbook_id": scrapbook_id,
            "relationship_id": relationship_id,
            "created_by_user_id": created_by_user_id,
            "page_index": page_index,
        }).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def update_details(page_id: str, scrapbook_id: str, relationship_id: str, changes: dict) -> dict | None:
        """Apply details_* column changes and bump updated_at."""
        db = get_db()
        values = {**changes, "updated_at": datetime.now(timezone.utc).isoformat()}
        result = db.table("scrapbook_pages").update(values).eq(
            "id", page_id
        ).eq("scrapbook_id", scrapbook_id).eq(
            "relationship_id", relationship_id
        ).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def get_first_with_details(scrapbook_id: str, relationship_id: str) -> dict | None:
        """Lowest-index page that has any details set."""
        db = get_db()
        result = db.table("scrapbook_pages").select("*").eq(
            "scrapbook_id", scrapbook_id
        ).eq("relationship_id", relationship_id).or_(
            # An empty mood tag array counts as no details; neq also excludes null
            "details_date.not.is.null,details_place.not.is.null,details_place_id.not.is.null,"
            "details_mood_tags.neq.{},details_review.not.is.null"
        ).order("page_index").order("created_at").limit(1).execute()
        return result.data[0] if result and result.data else None
