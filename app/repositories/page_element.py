from datetime import datetime, timezone

from database.connection import get_db, with_retry

ELEMENT_LIMIT = 500


class PageElementRepository:
    """Shared CRUD for things placed on a scrapbook page.

    Every query is scoped by page, scrapbook and relationship together, so
    an element can only be reached through the page it lives on.
    Subclasses set TABLE and whether the table has an updated_at column.
    """

    TABLE: str = ""
    HAS_UPDATED_AT: bool = True

    @classmethod
    def _scoped(cls, query, page_id: str, scrapbook_id: str, relationship_id: str):
        return query.eq("page_id", page_id).eq(
            "scrapbook_id", scrapbook_id
        ).eq("relationship_id", relationship_id)

    @classmethod
    @with_retry()
    def list_for_page(cls, page_id: str, scrapbook_id: str, relationship_id: str) -> list[dict]:
        """Elements in creation order."""
        db = get_db()
        query = cls._scoped(db.table(cls.TABLE).select("*"), page_id, scrapbook_id, relationship_id)
        result = query.order("created_at").order("id").limit(ELEMENT_LIMIT).execute()
        return result.data if result and result.data else []

    @classmethod
    @with_retry()
    def create(cls, page_id: str, scrapbook_id: str, relationship_id: str, values: dict) -> dict | None:
        db = get_db()
        result = db.table(cls.TABLE).insert({
            **values,
            "page_id": page_id,
            "scrapbook_id": scrapbook_id,
            "relationship_id": relationship_id,
        }).execute()
        return result.data[0] if result and result.data else None

    @classmethod
    @with_retry()
    def update(
        cls,
        element_id: str,
        page_id: str,
        scrapbook_id: str,
        relationship_id: str,
        changes: dict,
    ) -> dict | None:
        """Write only the supplied columns; returns the stored row or None if not found."""
        db = get_db()
        values = dict(changes)
        if cls.HAS_UPDATED_AT:
            values["updated_at"] = datetime.now(timezone.utc).isoformat()
        query = cls._scoped(
            db.table(cls.TABLE).update(values).eq("id", element_id),
            page_id, scrapbook_id, relationship_id,
        )
        result = query.execute()
        return result.data[0] if result and result.data else None

    @classmethod
    @with_retry()
    def delete(cls, element_id: str, page_id: str, scrapbook_id: str, relationship_id: str) -> bool:
        db = get_db()
        query = cls._scoped(
            db.table(cls.TABLE).delete().eq("id", element_id),
            page_id, scrapbook_id, relationship_id,
        )
        result = query.execute()
        return bool(result and result.data)
