"""Tests for request models: PATCH presence semantics and creation defaults."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from app.domain.schemas import (
    CouponCreate,
    DetailsPatch,
    EntryCreate,
    EntryPatch,
    NoteCreate,
    NotePatch,
    PageMediaCreate,
    PushTokenRegister,
    StickerCreate,
    StickerPatch,
    TextCreate,
    TextPatch,
)


class TestPatchPresence:
    """Absent keys are untouched, values set, null clears where allowed."""

    def test_only_supplied_fields_are_changes(self):
        patch = StickerPatch.model_validate({"x": 0.5})
        assert patch.changes() == {"x": 0.5}

    def test_empty_body_has_no_changes(self):
        assert TextPatch.model_validate({}).changes() == {}

    def test_camel_case_keys_map_to_columns(self):
        patch = DetailsPatch.model_validate({"moodTags": ["cozy"], "placeId": "abc"})
        assert patch.column_changes() == {
            "details_mood_tags": ["cozy"],
            "details_place_id": "abc",
        }

    def test_null_clears_nullable_detail(self):
        patch = DetailsPatch.model_validate({"review": None})
        assert patch.column_changes() == {"details_review": None}

    def test_clearing_place_also_clears_place_id(self):
        patch = DetailsPatch.model_validate({"place": None})
        assert patch.column_changes() == {"details_place": None, "details_place_id": None}

    def test_clearing_place_keeps_explicit_place_id(self):
        patch = DetailsPatch.model_validate({"place": None, "placeId": "keep-me"})
        assert patch.column_changes() == {"details_place": None, "details_place_id": "keep-me"}

    def test_null_on_transform_field_is_rejected(self):
        with pytest.raises(ValidationError):
            StickerPatch.model_validate({"x": None})

    def test_null_on_text_content_is_rejected(self):
        with pytest.raises(ValidationError):
            NotePatch.model_validate({"text": None})

    def test_entry_body_may_be_cleared(self):
        assert EntryPatch.model_validate({"body": None}).column_changes() == {"body": None}

    def test_entry_legacy_date_becomes_occurred_at(self):
        changes = EntryPatch.model_validate({"date": "2025-02-14"}).column_changes()
        assert changes == {"occurred_at": "2025-02-14T00:00:00+00:00"}

    def test_entry_occurred_at_wins_over_legacy_date(self):
        changes = EntryPatch.model_validate(
            {"date": "2025-02-14", "occurredAt": "2025-02-15T18:30:00Z"}
        ).column_changes()
        assert changes == {"occurred_at": "2025-02-15T18:30:00+00:00"}


class TestDetailsValidation:

    def test_impossible_calendar_date_is_rejected(self):
        with pytest.raises(ValidationError):
            DetailsPatch.model_validate({"date": "2025-02-30"})

    def test_datetime_is_not_a_date(self):
        with pytest.raises(ValidationError):
            DetailsPatch.model_validate({"date": "2025-02-14T10:00:00Z"})

    def test_place_is_trimmed(self):
        patch = DetailsPatch.model_validate({"place": "  Le Marais  "})
        assert patch.column_changes() == {"details_place": "Le Marais"}

    def test_too_many_mood_tags(self):
        with pytest.raises(ValidationError):
            DetailsPatch.model_validate({"moodTags": [f"tag{i}" for i in range(25)]})


class TestElementDefaults:

    def test_sticker_defaults_to_origin_unscaled_unrotated(self):
        sticker = StickerCreate.model_validate({"kind": "heart"})
        assert (sticker.x, sticker.y, sticker.scale, sticker.rotation) == (0, 0, 1, 0)

    def test_sticker_kind_must_be_known(self):
        with pytest.raises(ValidationError):
            StickerCreate.model_validate({"kind": "dragon"})

    def test_sticker_position_is_normalised(self):
        with pytest.raises(ValidationError):
            StickerCreate.model_validate({"kind": "star", "x": 1.5})

    def test_sticker_scale_bounds(self):
        with pytest.raises(ValidationError):
            StickerCreate.model_validate({"kind": "star", "scale": 0.1})

    def test_text_defaults(self):
        text = TextCreate.model_validate({})
        assert text.text == "Text"
        assert text.font == "hand"
        assert text.color == "#2E2A27"
        assert (text.x, text.y, text.scale, text.rotation) == (0, 0, 1, 0)

    def test_text_may_sit_partly_off_page(self):
        text = TextCreate.model_validate({"x": -1.5, "y": 2.5, "scale": 5})
        assert (text.x, text.y, text.scale) == (-1.5, 2.5, 5)

    def test_text_color_must_be_hex(self):
        with pytest.raises(ValidationError):
            TextCreate.model_validate({"color": "red"})

    def test_note_defaults(self):
        note = NoteCreate.model_validate({})
        assert note.text == ""
        assert note.color == "yellow"
        assert (note.x, note.y) == (0, 0)

    def test_page_media_defaults(self):
        media = PageMediaCreate.model_validate(
            {"blobKey": "relationships/r/media/a.jpg", "kind": "photo", "width": 800, "height": 600}
        )
        assert (media.x, media.y, media.scale) == (0, 0, 1)

    def test_page_media_kind_is_photo_only(self):
        with pytest.raises(ValidationError):
            PageMediaCreate.model_validate(
                {"blobKey": "relationships/r/media/a.mp4", "kind": "video", "width": 1, "height": 1}
            )


class TestOtherBodies:

    def test_coupon_optional_fields_default_to_none(self):
        coupon = CouponCreate.model_validate(
            {"relationshipId": "r", "recipientUserId": "u", "title": "Breakfast in bed", "templateId": "t1"}
        )
        assert coupon.description is None
        assert coupon.expires_at is None

    def test_entry_needs_occurred_at_or_date(self):
        with pytest.raises(ValidationError):
            EntryCreate.model_validate({"title": "Picnic"})

    def test_entry_date_resolves_to_utc_midnight(self):
        entry = EntryCreate.model_validate({"title": "Picnic", "date": "2025-06-01"})
        assert entry.resolved_occurred_at() == datetime(2025, 6, 1, tzinfo=timezone.utc)

    def test_push_token_accepts_null(self):
        assert PushTokenRegister.model_validate({"token": None}).token is None

    def test_push_token_is_required_key(self):
        with pytest.raises(ValidationError):
            PushTokenRegister.model_validate({})

    def test_push_token_too_short(self):
        with pytest.raises(ValidationError):
            PushTokenRegister.model_validate({"token": "abc"})
