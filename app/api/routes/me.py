from fastapi import APIRouter, Depends

from app.core.permissions import get_current_user_profile
from app.repositories.relationship import RelationshipRepository
from app.repositories.relationship_invite import RelationshipInviteRepository

router = APIRouter()


@router.get("")
def get_me(user: dict = Depends(get_current_user_profile)):
    """The signed-in user, their memberships and pending invites."""
    memberships = [
        {
            "relationshipId": m["relationship_id"],
            "role": m["role"],
            "status": "pending" if m.get("status") == "pending" else "active",
        }
        for m in RelationshipRepository.get_user_memberships(user["id"])
    ]

    pending_invites = RelationshipInviteRepository.list_pending_for_user(user["id"], user.get("email"))

    # Older clients read a single relationship; prefer an active one
    preferred = next((m for m in memberships if m["status"] == "active"), None)
    if preferred is None and memberships:
        preferred = memberships[0]

    return {
        "ok": True,
        "user": {
            "id": user["id"],
            "email": user["email"],
            "provider": user.get("provider"),
        },
        "memberships": memberships,
        "pendingInviteCount": len(pending_invites),
        "relationship": preferred,
    }
