from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.permissions import RelationshipMemberContext, require_relationship_from_request
from app.domain.periods import period_for, utc_today
from app.domain.schemas import QuestSummary
from app.repositories.quest import QuestRepository

router = APIRouter()


def _summary(relationship_id: str, template: dict, now: datetime) -> QuestSummary:
    period = period_for(template["type"], now)
    QuestRepository.ensure_period_row(relationship_id, template["id"], period.start, period.end)
    row = QuestRepository.get_progress(relationship_id, template["id"], period.start, period.end) or {}

    target = template["target_count"]
    progress = min(row.get("progress_count") or 0, target)
    return QuestSummary(
        title=template["title"],
        progress=progress,
        target=target,
        completed=bool(row.get("completed_at")) or progress >= target,
        period_end=period.inclusive_end.isoformat(),
    )


@router.get("")
def get_quests(member: RelationshipMemberContext = Depends(require_relationship_from_request)):
    """
    Current weekly and monthly quest for the relationship.

    Periods that ended without completion are marked expired first, and a
    zero-progress row is created for the current period when missing.
    """
    templates = QuestRepository.list_templates()
    if not templates:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Quest templates not seeded",
        )

    weekly = next((t for t in templates if t["type"] == "WEEKLY"), None)
    monthly = next((t for t in templates if t["type"] == "MONTHLY"), None)
    if not weekly or not monthly:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Missing weekly/monthly quest templates",
        )

    now = datetime.now(timezone.utc)
    QuestRepository.expire_finished_periods(member.relationship_id, utc_today(now))

    return {
        "ok": True,
        "weekly": _summary(member.relationship_id, weekly, now),
        "monthly": _summary(member.relationship_id, monthly, now),
    }
