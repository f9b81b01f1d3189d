"""Tests for quest progress events and the quests endpoint."""

from datetime import date, datetime, timezone
from unittest.mock import patch

import pytest

from app.repositories.quest import QuestRepository
from app.repositories.relationship import RelationshipRepository
from app.services import quest_events
from app.services.quest_events import COUPON_CREATED, apply_quest_event, apply_quest_event_safely
from app.services.relationship_push import should_send_with_cooldown
from tests.factories import RELATIONSHIP_ID, USER_ID, membership_row

WEEKLY = {
    "id": "weekly-scrapbook",
    "type": "WEEKLY",
    "title": "Add a scrapbook entry together",
    "target_count": 1,
    "event_type": "SCRAPBOOK_ENTRY_CREATED",
}
MONTHLY = {
    "id": "monthly-coupons",
    "type": "MONTHLY",
    "title": "Give each other 3 coupons",
    "target_count": 3,
    "event_type": "COUPON_CREATED",
}

# Wednesday
NOW = datetime(2025, 3, 5, 10, 0, tzinfo=timezone.utc)


def progress_row(count, started=None, completed=None, expired=None):
    return {
        "relationship_id": RELATIONSHIP_ID,
        "quest_template_id": MONTHLY["id"],
        "period_start": "2025-03-01",
        "period_end": "2025-04-01",
        "progress_count": count,
        "started_at": started,
        "completed_at": completed,
        "completed_by_user_id": USER_ID if completed else None,
        "expired_at": expired,
    }


@pytest.fixture
def monthly_template():
    with patch.object(QuestRepository, "list_templates", return_value=[MONTHLY]):
        yield


@pytest.mark.usefixtures("monthly_template")
class TestApplyQuestEvent:

    def test_first_event_starts_the_quest(self):
        row = progress_row(1, started="2025-03-05T10:00:00+00:00")
        with patch.object(QuestRepository, "get_progress", return_value=None), \
                patch.object(QuestRepository, "increment", return_value=row) as increment, \
                patch.object(quest_events, "notify_quest_completed") as notify:
            completed = apply_quest_event(RELATIONSHIP_ID, COUPON_CREATED, actor_user_id=USER_ID, occurred_at=NOW)

        assert completed == []
        kwargs = increment.call_args.kwargs
        assert kwargs["period_start"] == date(2025, 3, 1)
        assert kwargs["period_end"] == date(2025, 4, 1)
        assert kwargs["target_count"] == 3
        notify.assert_not_called()

    def test_reaching_target_completes_once_and_notifies(self):
        before = progress_row(2, started="2025-03-02T08:00:00+00:00")
        after = progress_row(3, started="2025-03-02T08:00:00+00:00", completed="2025-03-05T10:00:00+00:00")
        with patch.object(QuestRepository, "get_progress", return_value=before), \
                patch.object(QuestRepository, "increment", return_value=after), \
                patch.object(quest_events, "notify_quest_completed") as notify:
            completed = apply_quest_event(RELATIONSHIP_ID, COUPON_CREATED, actor_user_id=USER_ID, occurred_at=NOW)

        assert completed == [{"questTemplateId": MONTHLY["id"], "title": MONTHLY["title"]}]
        notify.assert_called_once_with(RELATIONSHIP_ID, MONTHLY["id"])

    def test_already_completed_quest_does_not_notify_again(self):
        done = progress_row(3, started="2025-03-02T08:00:00+00:00", completed="2025-03-04T08:00:00+00:00")
        with patch.object(QuestRepository, "get_progress", return_value=done), \
                patch.object(QuestRepository, "increment", return_value=done), \
                patch.object(quest_events, "notify_quest_completed") as notify:
            completed = apply_quest_event(RELATIONSHIP_ID, COUPON_CREATED, occurred_at=NOW)

        assert completed == []
        notify.assert_not_called()

    def test_expired_period_is_left_alone(self):
        expired = progress_row(1, started="2025-03-02T08:00:00+00:00", expired="2025-04-01T00:00:00+00:00")
        with patch.object(QuestRepository, "get_progress", return_value=expired), \
                patch.object(QuestRepository, "increment") as increment:
            apply_quest_event(RELATIONSHIP_ID, COUPON_CREATED, occurred_at=NOW)

        increment.assert_not_called()

    def test_safe_variant_swallows_storage_errors(self):
        with patch.object(QuestRepository, "get_progress", side_effect=RuntimeError("db down")):
            apply_quest_event_safely(RELATIONSHIP_ID, COUPON_CREATED, actor_user_id=USER_ID)


def test_no_listening_templates_is_a_no_op():
    with patch.object(QuestRepository, "list_templates", return_value=[]), \
            patch.object(QuestRepository, "increment") as increment:
        assert apply_quest_event(RELATIONSHIP_ID, "UNKNOWN_EVENT") == []
    increment.assert_not_called()


def test_completion_push_uses_cooldown():
    with patch.object(quest_events, "send_push_to_relationship") as push:
        quest_events.notify_quest_completed(RELATIONSHIP_ID, MONTHLY["id"])

    kwargs = push.call_args.kwargs
    assert kwargs["cooldown_key"] == f"quest.completed:{RELATIONSHIP_ID}:{MONTHLY['id']}"
    assert kwargs["cooldown_seconds"] == 300
    assert kwargs["data"]["kind"] == "quest.completed"


def test_cooldown_window():
    assert should_send_with_cooldown("k", 300, now=1000.0)
    assert not should_send_with_cooldown("k", 300, now=1200.0)
    assert should_send_with_cooldown("k", 300, now=1300.0)
    assert should_send_with_cooldown("other", 300, now=1200.0)


class TestQuestsRoute:

    @pytest.fixture
    def member(self):
        with patch.object(RelationshipRepository, "get_membership", return_value=membership_row()):
            yield

    def test_returns_weekly_and_monthly(self, client, auth_headers, member):
        def progress(relationship_id, template_id, start, end):
            if template_id == WEEKLY["id"]:
                return {"progress_count": 1, "completed_at": "2025-03-04T08:00:00+00:00"}
            return {"progress_count": 5, "completed_at": None}

        with patch.object(QuestRepository, "list_templates", return_value=[WEEKLY, MONTHLY]), \
                patch.object(QuestRepository, "expire_finished_periods") as expire, \
                patch.object(QuestRepository, "ensure_period_row") as ensure, \
                patch.object(QuestRepository, "get_progress", side_effect=progress):
            response = client.get("/quests", params={"relationshipId": RELATIONSHIP_ID}, headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["weekly"]["completed"] is True
        assert body["weekly"]["target"] == 1
        # progress never exceeds the target
        assert body["monthly"]["progress"] == 3
        assert body["monthly"]["completed"] is True
        expire.assert_called_once()
        assert ensure.call_count == 2

    def test_period_end_is_inclusive(self, client, auth_headers, member):
        with patch.object(QuestRepository, "list_templates", return_value=[WEEKLY, MONTHLY]), \
                patch.object(QuestRepository, "expire_finished_periods"), \
                patch.object(QuestRepository, "ensure_period_row"), \
                patch.object(QuestRepository, "get_progress", return_value=None), \
                patch("app.api.routes.quests.datetime") as clock:
            clock.now.return_value = NOW
            response = client.get("/quests", params={"relationshipId": RELATIONSHIP_ID}, headers=auth_headers)

        body = response.json()
        assert body["weekly"]["periodEnd"] == "2025-03-09"
        assert body["monthly"]["periodEnd"] == "2025-03-31"
        assert body["monthly"]["progress"] == 0
        assert body["monthly"]["completed"] is False

    def test_missing_templates_is_500(self, client, auth_headers, member):
        with patch.object(QuestRepository, "list_templates", return_value=[]):
            response = client.get("/quests", params={"relationshipId": RELATIONSHIP_ID}, headers=auth_headers)
        assert response.status_code == 500
        assert response.json() == {"ok": False, "error": "Quest templates not seeded"}

    def test_relationship_resolved_from_single_membership(self, client, auth_headers, member):
        with patch.object(RelationshipRepository, "get_active_relationship_ids", return_value=[]):
            response = client.get("/quests", headers=auth_headers)
        assert response.status_code == 403
        assert response.json()["error"] == "No relationship"
