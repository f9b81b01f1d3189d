from database.connection import get_db, with_retry


class UserRepository:

    @staticmethod
    @with_retry()
    def get_by_id(user_id: str) -> dict | None:
        """Get a user by ID."""
        db = get_db()
        result = db.table("users").select("*").eq("id", user_id).limit(1).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def get_by_provider_identity(provider: str, provider_sub: str) -> dict | None:
        """Get a user by the (provider, subject) pair from their ID token."""
        db = get_db()
        result = db.table("users").select("*").eq(
            "provider", provider
        ).eq("provider_sub", provider_sub).limit(1).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def create(email: str, provider: str, provider_sub: str) -> dict | None:
        """Create a new user."""
        db = get_db()
        result = db.table("users").insert({
            "email": email,
            "provider": provider,
            "provider_sub": provider_sub,
        }).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def set_push_token(user_id: str, token: str | None) -> dict | None:
        """Store (or clear) the Expo push token for a user."""
        db = get_db()
        result = db.table("users").update({
            "expo_push_token": token,
        }).eq("id", user_id).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def get_push_tokens(user_ids: list[str]) -> dict[str, str]:
        """Map user id -> push token for the users that have one."""
        if not user_ids:
            return {}
        db = get_db()
        result = db.table("users").select("id, expo_push_token").in_("id", user_ids).execute()
        rows = result.data if result and result.data else []
        return {row["id"]: row["expo_push_token"] for row in rows if row.get("expo_push_token")}
