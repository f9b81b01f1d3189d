from postgrest.exceptions import APIError

from database.connection import get_db, is_unique_violation, with_retry


class RelationshipRepository:
    """Relationships and their members."""

    @staticmethod
    @with_retry()
    def create(owner_user_id: str) -> dict | None:
        """Create a relationship with the given user as its active owner."""
        db = get_db()
        result = db.table("relationships").insert({}).execute()
        relationship = result.data[0] if result and result.data else None
        if not relationship:
            return None

        db.table("relationship_members").insert({
            "relationship_id": relationship["id"],
            "user_id": owner_user_id,
            "role": "owner",
            "status": "active",
        }).execute()
        return relationship

    @staticmethod
    @with_retry()
    def get_by_ids(relationship_ids: list[str]) -> list[dict]:
        if not relationship_ids:
            return []
        db = get_db()
        result = db.table("relationships").select("*").in_("id", relationship_ids).execute()
        return result.data if result and result.data else []

    @staticmethod
    @with_retry()
    def delete(relationship_id: str) -> bool:
        db = get_db()
        result = db.table("relationships").delete().eq("id", relationship_id).execute()
        return bool(result and result.data)

    @staticmethod
    @with_retry()
    def get_membership(user_id: str, relationship_id: str) -> dict | None:
        """Get a user's membership row in a relationship."""
        db = get_db()
        result = db.table("relationship_members").select("*").eq(
            "user_id", user_id
        ).eq("relationship_id", relationship_id).limit(1).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def get_user_memberships(user_id: str) -> list[dict]:
        """All membership rows (any status) for a user, newest first."""
        db = get_db()
        result = db.table("relationship_members").select("*").eq(
            "user_id", user_id
        ).order("created_at", desc=True).execute()
        return result.data if result and result.data else []

    @staticmethod
    @with_retry()
    def get_active_relationship_ids(user_id: str) -> list[str]:
        """Relationship ids where the user's membership is not pending."""
        db = get_db()
        result = db.table("relationship_members").select("relationship_id").eq(
            "user_id", user_id
        ).neq("status", "pending").execute()
        rows = result.data if result and result.data else []
        return [row["relationship_id"] for row in rows]

    @staticmethod
    @with_retry()
    def list_members(relationship_ids: list[str]) -> list[dict]:
        """Members (including pending) of the given relationships, with emails."""
        if not relationship_ids:
            return []
        db = get_db()
        result = db.table("relationship_members").select(
            "*, users(email)"
        ).in_("relationship_id", relationship_ids).order("created_at").execute()
        return result.data if result and result.data else []

    @staticmethod
    @with_retry()
    def list_active_member_ids(relationship_id: str, exclude_user_id: str | None = None) -> list[str]:
        db = get_db()
        query = db.table("relationship_members").select("user_id").eq(
            "relationship_id", relationship_id
        ).neq("status", "pending")
        if exclude_user_id:
            query = query.neq("user_id", exclude_user_id)
        result = query.execute()
        rows = result.data if result and result.data else []
        return [row["user_id"] for row in rows]

    @staticmethod
    @with_retry()
    def add_member(relationship_id: str, user_id: str, role: str = "member") -> bool:
        """Add an active member. Returns False when the user was already a member."""
        db = get_db()
        try:
            db.table("relationship_members").insert({
                "relationship_id": relationship_id,
                "user_id": user_id,
                "role": role,
                "status": "active",
            }).execute()
        except APIError as e:
            if is_unique_violation(e):
                return False
            raise
        return True

    @staticmethod
    @with_retry()
    def remove_member(relationship_id: str, user_id: str) -> bool:
        db = get_db()
        result = db.table("relationship_members").delete().eq(
            "relationship_id", relationship_id
        ).eq("user_id", user_id).execute()
        return bool(result and result.data)

    @staticmethod
    @with_retry()
    def has_members(relationship_id: str) -> bool:
        db = get_db()
        result = db.table("relationship_members").select("user_id").eq(
            "relationship_id", relationship_id
        ).limit(1).execute()
        return bool(result and result.data)
