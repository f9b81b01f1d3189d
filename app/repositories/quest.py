from datetime import date, datetime, timezone

from database.connection import get_db, with_retry


class QuestRepository:
    """Quest templates and per-relationship, per-period progress rows."""

    @staticmethod
    @with_retry()
    def list_templates(event_type: str | None = None) -> list[dict]:
        db = get_db()
        query = db.table("quest_templates").select("*")
        if event_type:
            query = query.eq("event_type", event_type)
        result = query.order("id").execute()
        return result.data if result and result.data else []

    @staticmethod
    @with_retry()
    def expire_finished_periods(relationship_id: str, today: date) -> None:
        """Mark uncompleted rows whose period has ended as expired."""
        db = get_db()
        db.table("quest_progress").update({
            "expired_at": datetime.now(timezone.utc).isoformat(),
        }).eq("relationship_id", relationship_id).is_(
            "completed_at", "null"
        ).is_("expired_at", "null").lte("period_end", today.isoformat()).execute()

    @staticmethod
    @with_retry()
    def ensure_period_row(relationship_id: str, template_id: str, period_start: date, period_end: date) -> None:
        """Insert a zero-progress row for the period if none exists yet."""
        db = get_db()
        db.table("quest_progress").upsert(
            {
                "relationship_id": relationship_id,
                "quest_template_id": template_id,
                "period_start": period_start.isoformat(),
                "period_end": period_end.isoformat(),
                "progress_count": 0,
            },
            on_conflict="relationship_id,quest_template_id,period_start,period_end",
            ignore_duplicates=True,
        ).execute()

    @staticmethod
    @with_retry()
    def get_progress(relationship_id: str, template_id: str, period_start: date, period_end: date) -> dict | None:
        db = get_db()
        result = db.table("quest_progress").select("*").eq(
            "relationship_id", relationship_id
        ).eq("quest_template_id", template_id).eq(
            "period_start", period_start.isoformat()
        ).eq("period_end", period_end.isoformat()).limit(1).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def increment(
        relationship_id: str,
        template_id: str,
        period_start: date,
        period_end: date,
        target_count: int,
        actor_user_id: str | None,
        occurred_at: datetime,
    ) -> dict | None:
        """Record one qualifying event; None when the period is already expired."""
        db = get_db()
        result = db.rpc("increment_quest_progress", {
            "p_relationship_id": relationship_id,
            "p_quest_template_id": template_id,
            "p_period_start": period_start.isoformat(),
            "p_period_end": period_end.isoformat(),
            "p_target_count": target_count,
            "p_actor_user_id": actor_user_id,
            "p_occurred_at": occurred_at.isoformat(),
        }).execute()
        return result.data[0] if result and result.data else None
