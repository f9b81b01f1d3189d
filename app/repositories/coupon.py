from datetime import datetime, timezone

from database.connection import get_db, with_retry


def _parse_ts(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class CouponRepository:

    @staticmethod
    @with_retry()
    def create(
        relationship_id: str,
        issuer_user_id: str,
        recipient_user_id: str,
        title: str,
        template_id: str,
        description: str | None = None,
        expires_at: datetime | None = None,
    ) -> dict | None:
        """Create an ACTIVE coupon."""
        db = get_db()
        result = db.table("coupons").insert({
            "relationship_id": relationship_id,
            "issuer_user_id": issuer_user_id,
            "recipient_user_id": recipient_user_id,
            "title": title,
            "description": description,
            "template_id": template_id,
            "status": "ACTIVE",
            "expires_at": expires_at.isoformat() if expires_at else None,
            "redeemed_at": None,
        }).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def get_by_id(coupon_id: str) -> dict | None:
        db = get_db()
        result = db.table("coupons").select("*").eq("id", coupon_id).limit(1).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def list_for_user(user_id: str, relationship_id: str | None = None, status: str | None = None) -> list[dict]:
        """Coupons the user issued or received, newest first.

        The status filter follows the effective status, so an ACTIVE row
        past its expiry lands under EXPIRED.
        """
        db = get_db()
        query = db.table("coupons").select("*").or_(
            f"issuer_user_id.eq.{user_id},recipient_user_id.eq.{user_id}"
        )
        if relationship_id:
            query = query.eq("relationship_id", relationship_id)

        result = query.order("created_at", desc=True).execute()
        coupons = result.data if result and result.data else []
        if status:
            now = datetime.now(timezone.utc)
            coupons = [c for c in coupons if CouponRepository.effective_status(c, now) == status]
        return coupons

    @staticmethod
    @with_retry()
    def redeem(coupon_id: str, recipient_user_id: str) -> dict | None:
        """Flip an ACTIVE, unexpired coupon to REDEEMED in one conditional UPDATE.

        Returns None when the coupon was not redeemable at write time.
        """
        db = get_db()
        now = datetime.now(timezone.utc).isoformat()
        result = db.table("coupons").update({
            "status": "REDEEMED",
            "redeemed_at": now,
            "updated_at": now,
        }).eq("id", coupon_id).eq("recipient_user_id", recipient_user_id).eq(
            "status", "ACTIVE"
        ).or_(f"expires_at.is.null,expires_at.gt.{now}").execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    def is_expired(coupon: dict, now: datetime | None = None) -> bool:
        expires_at = _parse_ts(coupon.get("expires_at"))
        return expires_at is not None and expires_at <= (now or datetime.now(timezone.utc))

    @staticmethod
    def effective_status(coupon: dict, now: datetime | None = None) -> str:
        """Stored status, except an ACTIVE coupon past expiry reads as EXPIRED."""
        if coupon.get("status") == "ACTIVE" and CouponRepository.is_expired(coupon, now):
            return "EXPIRED"
        return coupon.get("status", "ACTIVE")
