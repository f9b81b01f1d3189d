from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import PageScope, ScrapbookScope, get_page_scope, get_scrapbook_scope
from app.core.errors import EmptyPatchError, NotFoundError
from app.domain.schemas import (
    DetailsPatch,
    DetailsResponse,
    PageMediaCreate,
    PageMediaPatch,
    PageMediaResponse,
    PageResponse,
)
from app.repositories.page_media import PageMediaRepository
from app.repositories.scrapbook_page import ScrapbookPageRepository
from app.services.storage import StorageService, get_storage_service, is_relationship_blob

router = APIRouter()


def _media_response(row: dict, storage: StorageService | None = None) -> PageMediaResponse:
    signed = storage.try_read_url(row["blob_key"]) if storage else {"url": None, "expires_at": None}
    return PageMediaResponse(
        id=row["id"],
        page_id=row.get("page_id"),
        kind=row["kind"],
        blob_key=row["blob_key"],
        created_by_user_id=row["created_by_user_id"],
        url=signed["url"],
        expires_at=signed["expires_at"],
        width=row["width"],
        height=row["height"],
        x=row["x"],
        y=row["y"],
        scale=row["scale"],
        created_at=row["created_at"],
    )


def _page_response(row: dict, media: list[PageMediaResponse] | None = None) -> PageResponse:
    return PageResponse(
        id=row["id"],
        scrapbook_id=row.get("scrapbook_id"),
        page_index=row["page_index"],
        details=DetailsResponse.from_row(row),
        media=media or [],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


@router.get("/{scrapbook_id}/pages")
def list_pages(scope: ScrapbookScope = Depends(get_scrapbook_scope)):
    """Pages in page order, each with its photos (newest first) and read URLs."""
    pages = ScrapbookPageRepository.list_for_scrapbook(scope.scrapbook_id, scope.relationship_id)
    media_rows = PageMediaRepository.list_for_pages([p["id"] for p in pages], scope.relationship_id)

    storage = get_storage_service() if media_rows else None
    media_by_page: dict[str, list[PageMediaResponse]] = {}
    for row in media_rows:
        media_by_page.setdefault(row["page_id"], []).append(_media_response(row, storage))

    return {
        "ok": True,
        "pages": [_page_response(p, media_by_page.get(p["id"], [])) for p in pages],
    }


@router.post("/{scrapbook_id}/pages", status_code=status.HTTP_201_CREATED)
def create_page(scope: ScrapbookScope = Depends(get_scrapbook_scope)):
    """Append an empty page after the current last one."""
    page = ScrapbookPageRepository.append(scope.scrapbook_id, scope.relationship_id, scope.user_id)
    if not page:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create page",
        )
    return {"ok": True, "page": _page_response(page)}


@router.patch("/{scrapbook_id}/pages/{page_id}/details")
def update_page_details(data: DetailsPatch, scope: PageScope = Depends(get_page_scope)):
    changes = data.column_changes()
    if not changes:
        raise EmptyPatchError("Provide at least one field to update")

    updated = ScrapbookPageRepository.update_details(
        scope.page_id, scope.scrapbook_id, scope.relationship_id, changes
    )
    if not updated:
        raise NotFoundError()
    return {"ok": True, "details": DetailsResponse.from_row(updated)}


@router.post("/{scrapbook_id}/pages/{page_id}/media", status_code=status.HTTP_201_CREATED)
def attach_page_media(data: PageMediaCreate, scope: PageScope = Depends(get_page_scope)):
    """Place an uploaded photo on the page."""
    if not is_relationship_blob(data.blob_key, scope.relationship_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid blobKey for this relationship",
        )

    media = PageMediaRepository.create(
        scope.page_id,
        scope.scrapbook_id,
        scope.relationship_id,
        {**data.model_dump(), "created_by_user_id": scope.user_id},
    )
    if not media:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to attach media",
        )
    return {"ok": True, "media": _media_response(media)}


@router.patch("/{scrapbook_id}/pages/{page_id}/media/{media_id}")
def update_page_media(media_id: str, data: PageMediaPatch, scope: PageScope = Depends(get_page_scope)):
    """Move or resize a photo; only the supplied fields change."""
    changes = data.changes()
    if not changes:
        raise EmptyPatchError()

    media = PageMediaRepository.update(
        media_id, scope.page_id, scope.scrapbook_id, scope.relationship_id, changes
    )
    if not media:
        raise NotFoundError()
    return {"ok": True, "media": _media_response(media)}


@router.delete("/{scrapbook_id}/pages/{page_id}/media/{media_id}")
def delete_page_media(media_id: str, scope: PageScope = Depends(get_page_scope)):
    if not PageMediaRepository.delete(media_id, scope.page_id, scope.scrapbook_id, scope.relationship_id):
        raise NotFoundError()
    return {"ok": True}
