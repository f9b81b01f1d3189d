import secrets
from datetime import datetime, timedelta, timezone

from database.connection import get_db, with_retry

INVITE_TTL_DAYS = 7
INVITE_RETENTION_DAYS = 30


def _target_filter(user_id: str, email: str | None) -> str:
    """PostgREST or= clause: untargeted, targeted at this user id, or at this email."""
    clauses = [
        "and(target_user_id.is.null,target_email.is.null)",
        f"target_user_id.eq.{user_id}",
    ]
    if email:
        clauses.append(f'and(target_user_id.is.null,target_email.eq."{email.lower()}")')
    return ",".join(clauses)


class RelationshipInviteRepository:
    """Repository for relationship invite codes."""

    @staticmethod
    def generate_code() -> str:
        # URL-safe, short enough to type or share
        return secrets.token_urlsafe(12)

    @staticmethod
    @with_retry()
    def create(
        relationship_id: str,
        created_by: str,
        target_user_id: str | None = None,
        target_email: str | None = None,
        expires_days: int = INVITE_TTL_DAYS,
    ) -> dict | None:
        """Create a new invite with a random code."""
        db = get_db()
        expires_at = datetime.now(timezone.utc) + timedelta(days=expires_days)

        values = {
            "code": RelationshipInviteRepository.generate_code(),
            "relationship_id": relationship_id,
            "created_by": created_by,
            "expires_at": expires_at.isoformat(),
        }
        if target_user_id:
            values["target_user_id"] = target_user_id
        if target_email:
            values["target_email"] = target_email.lower()

        result = db.table("relationship_invites").insert(values).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def get_by_code(code: str) -> dict | None:
        db = get_db()
        result = db.table("relationship_invites").select("*").eq("code", code).limit(1).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def get_redeemed_by(code: str, user_id: str) -> dict | None:
        """The invite if this user already redeemed it (join retries)."""
        db = get_db()
        result = db.table("relationship_invites").select("*").eq(
            "code", code
        ).eq("redeemed_by", user_id).limit(1).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def claim(code: str, user_id: str, email: str | None) -> dict | None:
        """Atomically mark an unredeemed, unexpired invite as redeemed by the user.

        Only one caller can win; the target check is part of the same UPDATE.
        Returns the claimed invite or None when nothing matched.
        """
        db = get_db()
        now = datetime.now(timezone.utc).isoformat()
        result = db.table("relationship_invites").update({
            "redeemed_by": user_id,
            "redeemed_at": now,
        }).eq("code", code).is_("redeemed_at", "null").gt(
            "expires_at", now
        ).or_(_target_filter(user_id, email)).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def purge_stale(retention_days: int = INVITE_RETENTION_DAYS) -> None:
        """Delete invites that expired or were redeemed long ago."""
        db = get_db()
        cutoff = (datetime.now(timezone.utc) - timedelta(days=retention_days)).isoformat()
        db.table("relationship_invites").delete().or_(
            f"expires_at.lt.{cutoff},redeemed_at.lt.{cutoff}"
        ).execute()

    @staticmethod
    @with_retry()
    def list_pending_for_user(user_id: str, email: str | None) -> list[dict]:
        """Unredeemed, unexpired invites addressed to this user by id or email."""
        db = get_db()
        now = datetime.now(timezone.utc).isoformat()
        clauses = [f"target_user_id.eq.{user_id}"]
        if email:
            clauses.append(f'and(target_user_id.is.null,target_email.eq."{email.lower()}")')
        result = db.table("relationship_invites").select("*").or_(
            ",".join(clauses)
        ).is_("redeemed_at", "null").gt("expires_at", now).order("created_at", desc=True).execute()
        return result.data if result and result.data else []

    @staticmethod
    def is_expired(invite: dict, now: datetime | None = None) -> bool:
        """Check if an invite has expired."""
        expires_at_str = invite.get("expires_at")
        if not expires_at_str:
            return True

        expires_at = datetime.fromisoformat(expires_at_str.replace("Z", "+00:00"))
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)

        return (now or datetime.now(timezone.utc)) >= expires_at
