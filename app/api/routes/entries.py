from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.errors import EmptyPatchError, NotFoundError
from app.core.permissions import (
    RelationshipMemberContext,
    require_relationship_access,
    require_relationship_from_request,
    require_relationship_member,
)
from app.core.security import AuthContext, require_auth
from app.domain.schemas import (
    EntryCreate,
    EntryMediaCreate,
    EntryMediaResponse,
    EntryPatch,
    EntryResponse,
)
from app.repositories.entry import EntryRepository, clamp_page_size, decode_cursor, encode_cursor
from app.services.storage import is_relationship_blob

router = APIRouter()


def _create_entry(ctx: RelationshipMemberContext, data: EntryCreate) -> dict:
    entry = EntryRepository.create(
        relationship_id=ctx.relationship_id,
        created_by_user_id=ctx.user_id,
        title=data.title,
        occurred_at=data.resolved_occurred_at(),
        body=data.body,
    )
    if not entry:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create entry",
        )
    return {"ok": True, "entry": EntryResponse.model_validate(entry)}


def _list_entries(ctx: RelationshipMemberContext, limit: Optional[int], cursor: Optional[str]) -> dict:
    page_size = clamp_page_size(limit)
    try:
        position = decode_cursor(cursor) if cursor else None
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid cursor")

    rows = EntryRepository.list_page(ctx.relationship_id, page_size, position)
    response = {"ok": True, "entries": [EntryResponse.model_validate(r) for r in rows]}
    if rows and len(rows) == page_size:
        response["nextCursor"] = encode_cursor(rows[-1])
    return response


@router.post("/relationships/{relationship_id}/entries", status_code=status.HTTP_201_CREATED)
def create_relationship_entry(
    data: EntryCreate,
    ctx: RelationshipMemberContext = Depends(require_relationship_access),
):
    return _create_entry(ctx, data)


@router.get("/relationships/{relationship_id}/entries")
def list_relationship_entries(
    limit: Optional[int] = Query(None),
    cursor: Optional[str] = Query(None),
    ctx: RelationshipMemberContext = Depends(require_relationship_access),
):
    """Timeline, newest first, keyset-paginated via nextCursor."""
    return _list_entries(ctx, limit, cursor)


@router.post("/entries", status_code=status.HTTP_201_CREATED)
def create_entry(
    data: EntryCreate,
    ctx: RelationshipMemberContext = Depends(require_relationship_from_request),
):
    return _create_entry(ctx, data)


@router.get("/entries")
def list_entries(
    limit: Optional[int] = Query(None),
    cursor: Optional[str] = Query(None),
    ctx: RelationshipMemberContext = Depends(require_relationship_from_request),
):
    return _list_entries(ctx, limit, cursor)


def _get_entry_for_member(entry_id: str, user_id: str) -> tuple[dict, RelationshipMemberContext]:
    entry = EntryRepository.get_by_id(entry_id)
    if not entry:
        raise NotFoundError()
    ctx = require_relationship_member(user_id, entry["relationship_id"])
    return entry, ctx


@router.get("/entries/{entry_id}")
def get_entry(entry_id: str, auth: AuthContext = Depends(require_auth)):
    entry, _ = _get_entry_for_member(entry_id, auth.user_id)
    return {"ok": True, "entry": EntryResponse.model_validate(entry)}


@router.patch("/entries/{entry_id}")
def update_entry(entry_id: str, data: EntryPatch, auth: AuthContext = Depends(require_auth)):
    """Edit an entry and keep an audit row of what changed."""
    changes = data.column_changes()
    if not changes:
        raise EmptyPatchError("Provide at least one field to update")

    existing, ctx = _get_entry_for_member(entry_id, auth.user_id)

    updated = EntryRepository.update(entry_id, changes)
    if not updated:
        raise NotFoundError()
    EntryRepository.record_edit(existing, updated, ctx.user_id)

    return {"ok": True, "entry": EntryResponse.model_validate(updated)}


@router.post("/entries/{entry_id}/media", status_code=status.HTTP_201_CREATED)
def attach_entry_media(entry_id: str, data: EntryMediaCreate, auth: AuthContext = Depends(require_auth)):
    entry, ctx = _get_entry_for_member(entry_id, auth.user_id)

    if not is_relationship_blob(data.blob_key, ctx.relationship_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid blobKey for this relationship",
        )

    media = EntryRepository.attach_media(
        entry_id=entry["id"],
        relationship_id=ctx.relationship_id,
        blob_key=data.blob_key,
        kind=data.kind,
        width=data.width,
        height=data.height,
    )
    if not media:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to attach media",
        )
    return {"ok": True, "media": EntryMediaResponse.model_validate(media)}
