from database.connection import get_db, with_retry
from app.repositories.page_element import PageElementRepository


class PageMediaRepository(PageElementRepository):
    TABLE = "scrapbook_page_media"
    HAS_UPDATED_AT = False

    @staticmethod
    @with_retry()
    def list_for_pages(page_ids: list[str], relationship_id: str) -> list[dict]:
        """Photos for several pages at once, newest first."""
        if not page_ids:
            return []
        db = get_db()
        result = db.table("scrapbook_page_media").select("*").in_(
            "page_id", page_ids
        ).eq("relationship_id", relationship_id).order("created_at", desc=True).execute()
        return result.data if result and result.data else []
