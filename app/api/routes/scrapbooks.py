from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import ScrapbookScope, get_scrapbook_scope
from app.core.errors import EmptyPatchError, NotFoundError
from app.core.permissions import require_relationship_member
from app.core.security import AuthContext, require_auth
from app.domain.schemas import (
    CoverResponse,
    DetailsPatch,
    DetailsResponse,
    ScrapbookCreate,
    ScrapbookCreatedResponse,
    ScrapbookResponse,
)
from app.repositories.relationship import RelationshipRepository
from app.repositories.scrapbook import ScrapbookRepository
from app.repositories.scrapbook_page import ScrapbookPageRepository
from app.services.quest_events import SCRAPBOOK_ENTRY_CREATED, apply_quest_event_safely
from app.services.storage import StorageService, get_storage_service, is_relationship_blob

router = APIRouter()


def _cover(scrapbook: dict, storage: StorageService) -> CoverResponse | None:
    blob_key = scrapbook.get("cover_blob_key")
    if not blob_key:
        return None
    signed = storage.try_read_url(blob_key)
    if not signed["url"]:
        return None
    return CoverResponse(
        blob_key=blob_key,
        width=scrapbook.get("cover_width"),
        height=scrapbook.get("cover_height"),
        url=signed["url"],
        expires_at=signed["expires_at"],
    )


@router.get("")
def list_scrapbooks(auth: AuthContext = Depends(require_auth)):
    """Scrapbooks across all of the caller's active relationships, newest first."""
    relationship_ids = RelationshipRepository.get_active_relationship_ids(auth.user_id)
    rows = ScrapbookRepository.list_for_relationships(relationship_ids)

    storage = get_storage_service() if any(r.get("cover_blob_key") for r in rows) else None
    scrapbooks = [
        ScrapbookResponse(
            id=row["id"],
            relationship_id=row["relationship_id"],
            title=row["title"],
            created_by_user_id=row.get("created_by_user_id"),
            cover=_cover(row, storage) if storage else None,
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
        for row in rows
    ]
    return {"ok": True, "scrapbooks": scrapbooks}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_scrapbook(data: ScrapbookCreate, auth: AuthContext = Depends(require_auth)):
    member = require_relationship_member(auth.user_id, data.relationship_id)

    if data.cover_blob_key and not is_relationship_blob(data.cover_blob_key, member.relationship_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid coverBlobKey for this relationship",
        )

    scrapbook = ScrapbookRepository.create(
        relationship_id=member.relationship_id,
        created_by_user_id=member.user_id,
        title=data.title,
        cover_blob_key=data.cover_blob_key,
        cover_width=data.cover_width,
        cover_height=data.cover_height,
    )
    if not scrapbook:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create scrapbook",
        )

    apply_quest_event_safely(member.relationship_id, SCRAPBOOK_ENTRY_CREATED, actor_user_id=member.user_id)

    return {"ok": True, "scrapbook": ScrapbookCreatedResponse.model_validate(scrapbook)}


@router.get("/{scrapbook_id}")
def get_scrapbook(scope: ScrapbookScope = Depends(get_scrapbook_scope)):
    """One scrapbook with details, borrowed from its first detailed page if it has none."""
    scrapbook = scope.scrapbook

    if DetailsResponse.row_has_any(scrapbook):
        details = DetailsResponse.from_row(scrapbook)
    else:
        page = ScrapbookPageRepository.get_first_with_details(scope.scrapbook_id, scope.relationship_id)
        details = DetailsResponse.from_row(page) if page else None

    cover = _cover(scrapbook, get_storage_service()) if scrapbook.get("cover_blob_key") else None

    return {
        "ok": True,
        "scrapbook": ScrapbookResponse(
            id=scrapbook["id"],
            relationship_id=scrapbook["relationship_id"],
            title=scrapbook["title"],
            created_by_user_id=scrapbook.get("created_by_user_id"),
            cover=cover,
            details=details,
            created_at=scrapbook["created_at"],
            updated_at=scrapbook["updated_at"],
        ),
    }


@router.get("/{scrapbook_id}/details")
def get_scrapbook_details(scope: ScrapbookScope = Depends(get_scrapbook_scope)):
    return {"ok": True, "details": DetailsResponse.from_row(scope.scrapbook)}


@router.patch("/{scrapbook_id}/details")
def update_scrapbook_details(data: DetailsPatch, scope: ScrapbookScope = Depends(get_scrapbook_scope)):
    """Partial update: absent keys are kept, null clears, a value sets."""
    changes = data.column_changes()
    if not changes:
        raise EmptyPatchError("Provide at least one field to update")

    updated = ScrapbookRepository.update_details(scope.scrapbook_id, scope.relationship_id, changes)
    if not updated:
        raise NotFoundError()

    return {"ok": True, "details": DetailsResponse.from_row(updated)}
