import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status

from app.core.config import settings
from app.core.permissions import (
    RelationshipMemberContext,
    get_current_user_profile,
    require_relationship_access,
    require_relationship_member,
)
from app.core.security import AuthContext, require_auth
from app.domain.schemas import (
    InviteCreate,
    JoinRequest,
    MemberResponse,
    MyMembership,
    RelationshipSummary,
)
from app.repositories.relationship import RelationshipRepository
from app.repositories.relationship_invite import RelationshipInviteRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/mine")
def list_my_relationships(auth: AuthContext = Depends(require_auth)):
    """The caller's relationships with every member, newest first."""
    memberships = [
        m for m in RelationshipRepository.get_user_memberships(auth.user_id)
        if m.get("status") != "pending"
    ]
    relationship_ids = [m["relationship_id"] for m in memberships]
    if not relationship_ids:
        return {"ok": True, "relationships": []}

    created = {r["id"]: r.get("created_at") for r in RelationshipRepository.get_by_ids(relationship_ids)}

    members_by_relationship: dict[str, list[MemberResponse]] = {}
    for row in RelationshipRepository.list_members(relationship_ids):
        members_by_relationship.setdefault(row["relationship_id"], []).append(
            MemberResponse(
                user_id=row["user_id"],
                email=(row.get("users") or {}).get("email"),
                role=row["role"],
                status=row["status"],
                created_at=row.get("created_at"),
            )
        )

    summaries = [
        RelationshipSummary(
            relationship_id=m["relationship_id"],
            created_at=created.get(m["relationship_id"]),
            my_membership=MyMembership(role=m["role"], status=m["status"]),
            members=members_by_relationship.get(m["relationship_id"], []),
        )
        for m in memberships
    ]
    summaries.sort(key=lambda s: s.created_at.isoformat() if s.created_at else "", reverse=True)

    return {"ok": True, "relationships": summaries}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_relationship(auth: AuthContext = Depends(require_auth)):
    """Start a new relationship with the caller as owner."""
    relationship = RelationshipRepository.create(auth.user_id)
    if not relationship:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create relationship",
        )

    return {
        "ok": True,
        "relationship": {"id": relationship["id"], "createdAt": relationship.get("created_at")},
        "membership": {"role": "owner", "status": "active"},
    }


@router.post("/invite")
def create_invite(
    data: Optional[InviteCreate] = None,
    origin: Optional[str] = Header(None),
    auth: AuthContext = Depends(require_auth),
):
    """Create an invite code (and join link) for a relationship."""
    data = data or InviteCreate()

    relationship_id = data.relationship_id
    if not relationship_id:
        active_ids = RelationshipRepository.get_active_relationship_ids(auth.user_id)
        if not active_ids:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="You must create/join a relationship first",
            )
        if len(active_ids) > 1:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Missing relationshipId",
            )
        relationship_id = active_ids[0]

    # Only active members may invite
    require_relationship_member(auth.user_id, relationship_id)

    invite = RelationshipInviteRepository.create(
        relationship_id=relationship_id,
        created_by=auth.user_id,
        target_user_id=data.target_user_id,
        target_email=data.target_email,
    )
    if not invite:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create invite",
        )

    response = {"ok": True, "code": invite["code"], "expiresAt": invite["expires_at"]}
    base = origin or settings.public_app_origin
    if base:
        response["link"] = f"{base.rstrip('/')}/join/{invite['code']}"
    return response


@router.get("/invites/pending")
def list_pending_invites(user: dict = Depends(get_current_user_profile)):
    """Invites addressed to the caller that are still redeemable."""
    invites = RelationshipInviteRepository.list_pending_for_user(user["id"], user.get("email"))
    return {
        "ok": True,
        "invites": [
            {
                "code": i["code"],
                "relationshipId": i["relationship_id"],
                "createdBy": i["created_by"],
                "createdAt": i.get("created_at"),
                "expiresAt": i["expires_at"],
            }
            for i in invites
        ],
    }


def _joined(relationship_id: str) -> dict:
    return {
        "ok": True,
        "relationshipId": relationship_id,
        "membership": {"role": "member", "status": "active"},
    }


def _explain_failed_claim(code: str, user: dict) -> HTTPException:
    """Work out why an invite could not be claimed."""
    invite = RelationshipInviteRepository.get_by_code(code)
    if not invite:
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invite not found")
    if invite.get("redeemed_at"):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Invite already redeemed")
    if RelationshipInviteRepository.is_expired(invite):
        return HTTPException(status_code=status.HTTP_410_GONE, detail="Invite expired")

    target_user_id = invite.get("target_user_id")
    target_email = invite.get("target_email")
    email = (user.get("email") or "").lower()
    targets_nobody = not target_user_id and not target_email
    matches_user = target_user_id == user["id"]
    matches_email = bool(email and target_email and target_email.lower() == email)
    if not (targets_nobody or matches_user or matches_email):
        return HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invite is not intended for this user",
        )
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Invite could not be redeemed")


@router.post("/join")
def join_relationship(data: JoinRequest, user: dict = Depends(get_current_user_profile)):
    """Redeem an invite code and become an active member."""
    RelationshipInviteRepository.purge_stale()

    # A retry after a successful join is still a success
    previous = RelationshipInviteRepository.get_redeemed_by(data.code, user["id"])
    if previous:
        RelationshipRepository.add_member(previous["relationship_id"], user["id"])
        return _joined(previous["relationship_id"])

    claimed = RelationshipInviteRepository.claim(data.code, user["id"], user.get("email"))
    if not claimed:
        raise _explain_failed_claim(data.code, user)

    RelationshipRepository.add_member(claimed["relationship_id"], user["id"])
    logger.info(f"User {user['id']} joined relationship {claimed['relationship_id']}")
    return _joined(claimed["relationship_id"])


@router.post("/{relationship_id}/leave")
def leave_relationship(ctx: RelationshipMemberContext = Depends(require_relationship_access)):
    """Leave a relationship; the last member out deletes it."""
    RelationshipRepository.remove_member(ctx.relationship_id, ctx.user_id)

    deleted = not RelationshipRepository.has_members(ctx.relationship_id)
    if deleted:
        RelationshipRepository.delete(ctx.relationship_id)

    return {"ok": True, "relationshipId": ctx.relationship_id, "deletedRelationship": deleted}
