"""
Quest progress updates driven by user actions.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from app.domain.periods import period_for
from app.repositories.quest import QuestRepository
from app.services.relationship_push import send_push_to_relationship

logger = logging.getLogger(__name__)

SCRAPBOOK_ENTRY_CREATED = "SCRAPBOOK_ENTRY_CREATED"
COUPON_CREATED = "COUPON_CREATED"

QUEST_PUSH_COOLDOWN_SECONDS = 5 * 60


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def notify_quest_completed(relationship_id: str, template_id: str) -> None:
    send_push_to_relationship(
        relationship_id,
        "Shared quest completed ✨",
        data={
            "kind": "quest.completed",
            "relationshipId": relationship_id,
            "questTemplateId": template_id,
        },
        # several qualifying events in a row should not spam the couple
        cooldown_key=f"quest.completed:{relationship_id}:{template_id}",
        cooldown_seconds=QUEST_PUSH_COOLDOWN_SECONDS,
    )


def apply_quest_event(
    relationship_id: str,
    event_type: str,
    actor_user_id: Optional[str] = None,
    occurred_at: Optional[datetime] = None,
) -> list[dict]:
    """
    Count one qualifying event towards every quest listening for it.

    Progress is capped at the template target, started_at and completed_at
    are only ever set once, and an expired period is left untouched.

    Returns:
        The templates ({"questTemplateId", "title"}) this event completed
    """
    occurred_at = occurred_at or datetime.now(timezone.utc)
    newly_completed = []

    for template in QuestRepository.list_templates(event_type=event_type):
        period = period_for(template["type"], occurred_at)
        existing = QuestRepository.get_progress(
            relationship_id, template["id"], period.start, period.end
        )
        if existing and existing.get("expired_at"):
            continue

        row = QuestRepository.increment(
            relationship_id=relationship_id,
            template_id=template["id"],
            period_start=period.start,
            period_end=period.end,
            target_count=template["target_count"],
            actor_user_id=actor_user_id,
            occurred_at=occurred_at,
        )
        if not row:
            continue

        was_started = bool(existing and existing.get("started_at"))
        was_completed = bool(existing and existing.get("completed_at"))

        if not was_started and row.get("started_at"):
            logger.info(
                "analytics.quest.started",
                extra={
                    "relationship_id": relationship_id,
                    "quest_template_id": template["id"],
                    "cadence": template["type"],
                    "actor_user_id": actor_user_id,
                },
            )

        if not was_completed and row.get("completed_at"):
            started = _parse_ts(row.get("started_at"))
            completed = _parse_ts(row.get("completed_at"))
            time_to_completion_ms = (
                max(0, int((completed - started).total_seconds() * 1000))
                if started and completed
                else None
            )
            logger.info(
                "analytics.quest.completed",
                extra={
                    "relationship_id": relationship_id,
                    "quest_template_id": template["id"],
                    "cadence": template["type"],
                    "time_to_completion_ms": time_to_completion_ms,
                    "completed_by_user_id": row.get("completed_by_user_id"),
                },
            )
            newly_completed.append({"questTemplateId": template["id"], "title": template["title"]})
            notify_quest_completed(relationship_id, template["id"])

    return newly_completed


def apply_quest_event_safely(relationship_id: str, event_type: str, actor_user_id: Optional[str] = None) -> None:
    """Quest bookkeeping must never fail the request that triggered it."""
    try:
        apply_quest_event(relationship_id, event_type, actor_user_id=actor_user_id)
    except Exception as e:
        logger.warning(f"Quest event {event_type} failed for relationship {relationship_id}: {e}")
