import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.errors import NotFoundError
from app.core.permissions import (
    RelationshipMemberContext,
    require_relationship_from_request,
    require_relationship_member,
)
from app.core.security import AuthContext, require_auth
from app.domain.schemas import CouponCreate, CouponResponse, CouponStatus
from app.repositories.coupon import CouponRepository
from app.repositories.relationship import RelationshipRepository
from app.services.quest_events import COUPON_CREATED, apply_quest_event_safely
from app.services.relationship_push import send_push_to_user

logger = logging.getLogger(__name__)

router = APIRouter()


def _coupon_response(coupon: dict, now: datetime | None = None) -> CouponResponse:
    return CouponResponse.model_validate(
        {**coupon, "status": CouponRepository.effective_status(coupon, now)}
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def create_coupon(data: CouponCreate, auth: AuthContext = Depends(require_auth)):
    """
    Issue a coupon to another member of the relationship.

    The recipient gets a push and the relationship's coupon quest advances.
    """
    member = require_relationship_member(auth.user_id, data.relationship_id)

    recipient = RelationshipRepository.get_membership(data.recipient_user_id, member.relationship_id)
    if not recipient or recipient.get("status") == "pending":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Recipient is not a member of this relationship",
        )

    if data.expires_at is not None:
        expires_at = data.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        if expires_at <= datetime.now(timezone.utc):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="expiresAt must be in the future",
            )
    else:
        expires_at = None

    coupon = CouponRepository.create(
        relationship_id=member.relationship_id,
        issuer_user_id=auth.user_id,
        recipient_user_id=data.recipient_user_id,
        title=data.title,
        template_id=data.template_id,
        description=data.description,
        expires_at=expires_at,
    )
    if not coupon:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create coupon",
        )

    send_push_to_user(
        data.recipient_user_id,
        "You received a coupon ✨",
        data={
            "kind": "coupon.created",
            "couponId": coupon["id"],
            "relationshipId": member.relationship_id,
        },
    )
    apply_quest_event_safely(member.relationship_id, COUPON_CREATED, actor_user_id=auth.user_id)

    return {"ok": True, "coupon": _coupon_response(coupon)}


@router.get("")
def list_coupons(
    coupon_status: Optional[CouponStatus] = Query(None, alias="status"),
    member: RelationshipMemberContext = Depends(require_relationship_from_request),
):
    """Coupons the caller issued or received within the relationship resolved from the request."""
    now = datetime.now(timezone.utc)
    coupons = CouponRepository.list_for_user(
        member.user_id, relationship_id=member.relationship_id, status=coupon_status
    )
    return {"ok": True, "coupons": [_coupon_response(c, now) for c in coupons]}


@router.get("/{coupon_id}")
def get_coupon(coupon_id: str, auth: AuthContext = Depends(require_auth)):
    coupon = CouponRepository.get_by_id(coupon_id)
    # Outsiders get the same answer as for a missing coupon
    if not coupon or auth.user_id not in (coupon["issuer_user_id"], coupon["recipient_user_id"]):
        raise NotFoundError()
    require_relationship_member(auth.user_id, coupon["relationship_id"])
    return {"ok": True, "coupon": _coupon_response(coupon)}


@router.post("/{coupon_id}/redeem")
def redeem_coupon(coupon_id: str, auth: AuthContext = Depends(require_auth)):
    """Redeem a coupon addressed to the caller and let the issuer know."""
    coupon = CouponRepository.get_by_id(coupon_id)
    if not coupon or coupon["recipient_user_id"] != auth.user_id:
        raise NotFoundError()
    # Leaving the relationship revokes access to its coupons
    require_relationship_member(auth.user_id, coupon["relationship_id"])

    if CouponRepository.effective_status(coupon) == "EXPIRED":
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Coupon expired")
    if coupon["status"] == "REDEEMED":
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Coupon already redeemed")
    if coupon["status"] != "ACTIVE":
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Coupon not redeemable")

    redeemed = CouponRepository.redeem(coupon_id, auth.user_id)
    if not redeemed:
        # Lost a race with another redeem or with the expiry
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Coupon not redeemable")

    logger.info(f"Coupon {coupon_id} redeemed by {auth.user_id}")

    send_push_to_user(
        redeemed["issuer_user_id"],
        "Your coupon was redeemed 💛",
        data={
            "kind": "coupon.redeemed",
            "couponId": coupon_id,
            "relationshipId": redeemed["relationship_id"],
        },
    )

    return {"ok": True, "coupon": _coupon_response(redeemed)}
