"""Tests for coupon issue, listing and redemption."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from app.repositories.coupon import CouponRepository
from app.repositories.relationship import RelationshipRepository
from tests.factories import PARTNER_ID, RELATIONSHIP_ID, TIMESTAMP, USER_ID, membership_row


def coupon_row(**overrides):
    row = {
        "id": "cp-1",
        "relationship_id": RELATIONSHIP_ID,
        "issuer_user_id": PARTNER_ID,
        "recipient_user_id": USER_ID,
        "title": "Breakfast in bed",
        "description": None,
        "template_id": "breakfast",
        "status": "ACTIVE",
        "expires_at": None,
        "redeemed_at": None,
        "created_at": TIMESTAMP,
        "updated_at": TIMESTAMP,
    }
    row.update(overrides)
    return row


def iso(delta: timedelta) -> str:
    return (datetime.now(timezone.utc) + delta).isoformat()


class TestEffectiveStatus:

    def test_active_without_expiry(self):
        assert CouponRepository.effective_status(coupon_row()) == "ACTIVE"

    def test_active_past_expiry_reads_expired(self):
        assert CouponRepository.effective_status(coupon_row(expires_at=iso(-timedelta(minutes=1)))) == "EXPIRED"

    def test_active_before_expiry(self):
        assert CouponRepository.effective_status(coupon_row(expires_at=iso(timedelta(days=1)))) == "ACTIVE"

    def test_redeemed_stays_redeemed_after_expiry(self):
        row = coupon_row(status="REDEEMED", expires_at=iso(-timedelta(days=1)))
        assert CouponRepository.effective_status(row) == "REDEEMED"

    def test_postgres_z_suffix_is_parsed(self):
        assert CouponRepository.is_expired(coupon_row(expires_at="2020-01-01T00:00:00Z"))


class TestCreate:

    @pytest.fixture
    def members(self):
        def membership(user_id, relationship_id):
            if user_id == USER_ID:
                return membership_row()
            if user_id == PARTNER_ID:
                return membership_row(user_id=PARTNER_ID, role="member")
            return None

        with patch.object(RelationshipRepository, "get_membership", side_effect=membership):
            yield

    def body(self, **overrides):
        body = {
            "relationshipId": RELATIONSHIP_ID,
            "recipientUserId": PARTNER_ID,
            "title": "Movie night pick",
            "templateId": "movie",
        }
        body.update(overrides)
        return body

    def test_minimal_coupon_gets_defaults_push_and_quest(self, client, auth_headers, members):
        stored = coupon_row(issuer_user_id=USER_ID, recipient_user_id=PARTNER_ID, title="Movie night pick")
        with patch.object(CouponRepository, "create", return_value=stored) as create, \
                patch("app.api.routes.coupons.send_push_to_user") as push, \
                patch("app.api.routes.coupons.apply_quest_event_safely") as quest_event:
            response = client.post("/coupons", json=self.body(), headers=auth_headers)

        assert response.status_code == 201
        coupon = response.json()["coupon"]
        assert coupon["status"] == "ACTIVE"
        assert coupon["description"] is None
        assert coupon["redeemedAt"] is None

        kwargs = create.call_args.kwargs
        assert kwargs["description"] is None
        assert kwargs["expires_at"] is None
        assert kwargs["issuer_user_id"] == USER_ID

        push.assert_called_once()
        assert push.call_args.args[0] == PARTNER_ID
        assert push.call_args.kwargs["data"]["kind"] == "coupon.created"
        quest_event.assert_called_once_with(RELATIONSHIP_ID, "COUPON_CREATED", actor_user_id=USER_ID)

    def test_recipient_must_be_member(self, client, auth_headers, members):
        with patch.object(CouponRepository, "create") as create:
            response = client.post("/coupons", json=self.body(recipientUserId="stranger"), headers=auth_headers)
        assert response.status_code == 400
        create.assert_not_called()

    def test_pending_recipient_is_rejected(self, client, auth_headers):
        def membership(user_id, relationship_id):
            if user_id == USER_ID:
                return membership_row()
            return membership_row(user_id=PARTNER_ID, role="member", status="pending")

        with patch.object(RelationshipRepository, "get_membership", side_effect=membership):
            response = client.post("/coupons", json=self.body(), headers=auth_headers)
        assert response.status_code == 400

    def test_expiry_in_the_past_is_rejected(self, client, auth_headers, members):
        response = client.post(
            "/coupons", json=self.body(expiresAt=iso(-timedelta(hours=1))), headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["error"] == "expiresAt must be in the future"

    def test_title_is_required(self, client, auth_headers, members):
        body = self.body()
        del body["title"]
        response = client.post("/coupons", json=body, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid body"


class TestReadAndList:

    @pytest.fixture(autouse=True)
    def active_member(self):
        with patch.object(RelationshipRepository, "get_membership", return_value=membership_row()) as get_membership, \
                patch.object(RelationshipRepository, "get_active_relationship_ids", return_value=[RELATIONSHIP_ID]):
            yield get_membership

    def test_list_reports_effective_status(self, client, auth_headers):
        rows = [coupon_row(expires_at=iso(-timedelta(days=1))), coupon_row(id="cp-2")]
        with patch.object(CouponRepository, "list_for_user", return_value=rows) as list_for_user:
            response = client.get("/coupons", headers=auth_headers)

        assert [c["status"] for c in response.json()["coupons"]] == ["EXPIRED", "ACTIVE"]
        list_for_user.assert_called_once_with(USER_ID, relationship_id=RELATIONSHIP_ID, status=None)

    def test_list_without_active_relationship_is_403(self, client, auth_headers):
        with patch.object(RelationshipRepository, "get_active_relationship_ids", return_value=[]), \
                patch.object(CouponRepository, "list_for_user") as list_for_user:
            response = client.get("/coupons", headers=auth_headers)

        assert response.status_code == 403
        assert response.json()["error"] == "No relationship"
        list_for_user.assert_not_called()

    def test_list_with_several_relationships_needs_an_id(self, client, auth_headers):
        with patch.object(RelationshipRepository, "get_active_relationship_ids", return_value=[RELATIONSHIP_ID, "rel-2"]):
            response = client.get("/coupons", headers=auth_headers)
        assert response.status_code == 400

    def test_list_for_left_relationship_is_403(self, client, auth_headers, active_member):
        active_member.return_value = None
        with patch.object(CouponRepository, "list_for_user") as list_for_user:
            response = client.get("/coupons", params={"relationshipId": RELATIONSHIP_ID}, headers=auth_headers)
        assert response.status_code == 403
        list_for_user.assert_not_called()

    def test_list_passes_filters(self, client, auth_headers):
        with patch.object(CouponRepository, "list_for_user", return_value=[]) as list_for_user:
            response = client.get(
                "/coupons", params={"status": "EXPIRED", "relationshipId": RELATIONSHIP_ID}, headers=auth_headers
            )

        assert response.status_code == 200
        list_for_user.assert_called_once_with(USER_ID, relationship_id=RELATIONSHIP_ID, status="EXPIRED")

    def test_unknown_status_filter_is_400(self, client, auth_headers):
        response = client.get("/coupons", params={"status": "LOST"}, headers=auth_headers)
        assert response.status_code == 400

    def test_outsider_cannot_see_coupon(self, client, auth_headers):
        row = coupon_row(issuer_user_id="x", recipient_user_id="y")
        with patch.object(CouponRepository, "get_by_id", return_value=row):
            response = client.get("/coupons/cp-1", headers=auth_headers)
        assert response.status_code == 404

    def test_recipient_sees_coupon(self, client, auth_headers):
        with patch.object(CouponRepository, "get_by_id", return_value=coupon_row()):
            response = client.get("/coupons/cp-1", headers=auth_headers)
        assert response.json()["coupon"]["id"] == "cp-1"

    @pytest.mark.parametrize("membership", [None, membership_row(status="pending")])
    def test_former_or_pending_member_cannot_see_coupon(self, client, auth_headers, active_member, membership):
        active_member.return_value = membership
        with patch.object(CouponRepository, "get_by_id", return_value=coupon_row()):
            response = client.get("/coupons/cp-1", headers=auth_headers)
        assert response.status_code == 403


class TestRedeem:

    @pytest.fixture(autouse=True)
    def active_member(self):
        with patch.object(RelationshipRepository, "get_membership", return_value=membership_row()) as get_membership:
            yield get_membership

    def test_recipient_redeems_and_issuer_is_notified(self, client, auth_headers):
        redeemed = coupon_row(status="REDEEMED", redeemed_at=TIMESTAMP)
        with patch.object(CouponRepository, "get_by_id", return_value=coupon_row()), \
                patch.object(CouponRepository, "redeem", return_value=redeemed) as redeem, \
                patch("app.api.routes.coupons.send_push_to_user") as push:
            response = client.post("/coupons/cp-1/redeem", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["coupon"]["status"] == "REDEEMED"
        redeem.assert_called_once_with("cp-1", USER_ID)
        assert push.call_args.args[0] == PARTNER_ID
        assert push.call_args.kwargs["data"]["kind"] == "coupon.redeemed"

    def test_issuer_cannot_redeem(self, client, partner_headers):
        with patch.object(CouponRepository, "get_by_id", return_value=coupon_row()), \
                patch.object(CouponRepository, "redeem") as redeem:
            response = client.post("/coupons/cp-1/redeem", headers=partner_headers)
        assert response.status_code == 404
        redeem.assert_not_called()

    @pytest.mark.parametrize(
        "row,error",
        [
            (coupon_row(expires_at="2020-01-01T00:00:00+00:00"), "Coupon expired"),
            (coupon_row(status="REDEEMED", redeemed_at=TIMESTAMP), "Coupon already redeemed"),
            (coupon_row(status="EXPIRED"), "Coupon expired"),
        ],
    )
    def test_not_redeemable_is_409(self, client, auth_headers, row, error):
        with patch.object(CouponRepository, "get_by_id", return_value=row), \
                patch.object(CouponRepository, "redeem") as redeem:
            response = client.post("/coupons/cp-1/redeem", headers=auth_headers)

        assert response.status_code == 409
        assert response.json()["error"] == error
        redeem.assert_not_called()

    def test_lost_race_is_409(self, client, auth_headers):
        with patch.object(CouponRepository, "get_by_id", return_value=coupon_row()), \
                patch.object(CouponRepository, "redeem", return_value=None), \
                patch("app.api.routes.coupons.send_push_to_user") as push:
            response = client.post("/coupons/cp-1/redeem", headers=auth_headers)

        assert response.status_code == 409
        push.assert_not_called()

    @pytest.mark.parametrize("membership", [None, membership_row(status="pending")])
    def test_former_or_pending_member_cannot_redeem(self, client, auth_headers, active_member, membership):
        active_member.return_value = membership
        with patch.object(CouponRepository, "get_by_id", return_value=coupon_row()), \
                patch.object(CouponRepository, "redeem") as redeem, \
                patch("app.api.routes.coupons.send_push_to_user") as push:
            response = client.post("/coupons/cp-1/redeem", headers=auth_headers)

        assert response.status_code == 403
        redeem.assert_not_called()
        push.assert_not_called()
