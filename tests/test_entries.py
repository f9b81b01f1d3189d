"""Tests for the timeline: cursors, paging and audited edits."""

from unittest.mock import patch

import pytest

from app.repositories.entry import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    EntryRepository,
    clamp_page_size,
    decode_cursor,
    encode_cursor,
)
from app.repositories.relationship import RelationshipRepository
from tests.factories import RELATIONSHIP_ID, TIMESTAMP, USER_ID, membership_row


def entry_row(entry_id="en-1", **overrides):
    row = {
        "id": entry_id,
        "relationship_id": RELATIONSHIP_ID,
        "created_by_user_id": USER_ID,
        "title": "First date",
        "occurred_at": "2025-02-14T19:00:00+00:00",
        "body": None,
        "created_at": TIMESTAMP,
        "updated_at": TIMESTAMP,
    }
    row.update(overrides)
    return row


class TestCursor:

    def test_cursor_is_url_safe_and_reversible(self):
        cursor = encode_cursor(entry_row())
        assert "=" not in cursor and "+" not in cursor and "/" not in cursor
        assert decode_cursor(cursor) == {
            "occurredAt": "2025-02-14T19:00:00+00:00",
            "createdAt": TIMESTAMP,
            "id": "en-1",
        }

    @pytest.mark.parametrize("garbage", ["!!!", "bm90IGpzb24", "eyJpZCI6MX0"])
    def test_malformed_cursor_raises_value_error(self, garbage):
        with pytest.raises(ValueError):
            decode_cursor(garbage)

    @pytest.mark.parametrize(
        "raw,expected",
        [(None, DEFAULT_PAGE_SIZE), (0, 1), (-10, 1), (25, 25), (10_000, MAX_PAGE_SIZE)],
    )
    def test_page_size_is_clamped(self, raw, expected):
        assert clamp_page_size(raw) == expected


@pytest.fixture
def member():
    with patch.object(RelationshipRepository, "get_membership", return_value=membership_row()):
        yield


@pytest.mark.usefixtures("member")
class TestRoutes:

    def test_full_page_returns_next_cursor(self, client, auth_headers):
        rows = [entry_row("en-1"), entry_row("en-2")]
        with patch.object(EntryRepository, "list_page", return_value=rows) as list_page:
            response = client.get(
                f"/relationships/{RELATIONSHIP_ID}/entries", params={"limit": 2}, headers=auth_headers
            )

        body = response.json()
        assert [e["id"] for e in body["entries"]] == ["en-1", "en-2"]
        assert decode_cursor(body["nextCursor"])["id"] == "en-2"
        list_page.assert_called_once_with(RELATIONSHIP_ID, 2, None)

    def test_short_page_has_no_cursor(self, client, auth_headers):
        with patch.object(EntryRepository, "list_page", return_value=[entry_row()]):
            response = client.get(f"/relationships/{RELATIONSHIP_ID}/entries", headers=auth_headers)
        assert "nextCursor" not in response.json()

    def test_cursor_is_passed_through(self, client, auth_headers):
        cursor = encode_cursor(entry_row("en-9"))
        with patch.object(EntryRepository, "list_page", return_value=[]) as list_page:
            client.get(f"/relationships/{RELATIONSHIP_ID}/entries", params={"cursor": cursor}, headers=auth_headers)
        assert list_page.call_args.args[2]["id"] == "en-9"

    def test_bad_cursor_is_400(self, client, auth_headers):
        response = client.get(
            f"/relationships/{RELATIONSHIP_ID}/entries", params={"cursor": "%%%"}, headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid cursor"

    def test_create_from_legacy_date(self, client, auth_headers):
        with patch.object(EntryRepository, "create", return_value=entry_row()) as create:
            response = client.post(
                f"/relationships/{RELATIONSHIP_ID}/entries",
                json={"title": "First date", "date": "2025-02-14"},
                headers=auth_headers,
            )

        assert response.status_code == 201
        assert create.call_args.kwargs["occurred_at"].isoformat() == "2025-02-14T00:00:00+00:00"

    def test_patch_records_edit(self, client, auth_headers):
        existing = entry_row()
        updated = entry_row(title="Our first date")
        with patch.object(EntryRepository, "get_by_id", return_value=existing), \
                patch.object(EntryRepository, "update", return_value=updated) as update, \
                patch.object(EntryRepository, "record_edit") as record_edit:
            response = client.patch("/entries/en-1", json={"title": "Our first date"}, headers=auth_headers)

        assert response.status_code == 200
        update.assert_called_once_with("en-1", {"title": "Our first date"})
        record_edit.assert_called_once_with(existing, updated, USER_ID)

    def test_empty_patch(self, client, auth_headers):
        response = client.patch("/entries/en-1", json={}, headers=auth_headers)
        assert response.status_code == 400

    def test_entry_in_foreign_relationship_is_403(self, client, auth_headers):
        with patch.object(EntryRepository, "get_by_id", return_value=entry_row(relationship_id="other")), \
                patch.object(RelationshipRepository, "get_membership", return_value=None):
            response = client.get("/entries/en-1", headers=auth_headers)
        assert response.status_code == 403
