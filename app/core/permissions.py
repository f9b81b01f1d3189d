from typing import Optional

from fastapi import Depends, HTTPException, Query, status

from app.core.security import AuthContext, require_auth
from app.repositories.relationship import RelationshipRepository
from app.repositories.user import UserRepository


def get_current_user_profile(auth: AuthContext = Depends(require_auth)) -> dict:
    """Get the users row for the session.

    Raises:
        HTTPException 401 if the session points at a user that no longer exists
    """
    user = UserRepository.get_by_id(auth.user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


class RelationshipMemberContext:
    """Context object containing the caller and their membership."""

    def __init__(self, user_id: str, membership: dict, relationship_id: str):
        self.user_id = user_id
        self.membership = membership
        self.relationship_id = relationship_id
        self.role = membership["role"]
        self.is_owner = membership["role"] == "owner"


def require_relationship_member(user_id: str, relationship_id: str) -> RelationshipMemberContext:
    """Verify the user is an active member of the relationship.

    Called directly by routes that first have to look the relationship up
    (for example from a scrapbook or coupon row).

    Raises:
        HTTPException 403 when there is no membership or it is still pending
    """
    membership = RelationshipRepository.get_membership(user_id, relationship_id)
    if not membership:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not a member of this relationship",
        )

    if membership.get("status") == "pending":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Membership is pending",
        )

    return RelationshipMemberContext(
        user_id=user_id,
        membership=membership,
        relationship_id=relationship_id,
    )


def require_relationship_access(
    relationship_id: str,
    auth: AuthContext = Depends(require_auth),
) -> RelationshipMemberContext:
    """Dependency for routes with a {relationship_id} path parameter.

    Example:
        @router.get("/{relationship_id}/entries")
        def list_entries(ctx: RelationshipMemberContext = Depends(require_relationship_access)):
            ...
    """
    return require_relationship_member(auth.user_id, relationship_id)


def resolve_single_relationship_id(user_id: str) -> str:
    """The caller's only active relationship.

    Raises:
        HTTPException 403 with no active relationship, 400 when there are several
    """
    active_ids = RelationshipRepository.get_active_relationship_ids(user_id)
    if not active_ids:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No relationship",
        )
    if len(active_ids) > 1:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing relationshipId",
        )
    return active_ids[0]


def require_relationship_from_request(
    relationship_id: Optional[str] = Query(None, alias="relationshipId"),
    auth: AuthContext = Depends(require_auth),
) -> RelationshipMemberContext:
    """Dependency for routes taking ?relationshipId=, falling back to the single active one."""
    if not relationship_id:
        relationship_id = resolve_single_relationship_id(auth.user_id)
    return require_relationship_member(auth.user_id, relationship_id)
