from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import PageScope, get_page_scope
from app.core.errors import EmptyPatchError, NotFoundError
from app.domain.schemas import StickerCreate, StickerPatch, StickerResponse
from app.repositories.page_sticker import PageStickerRepository

router = APIRouter()


@router.get("/{scrapbook_id}/pages/{page_id}/stickers")
def list_stickers(scope: PageScope = Depends(get_page_scope)):
    rows = PageStickerRepository.list_for_page(scope.page_id, scope.scrapbook_id, scope.relationship_id)
    return {"ok": True, "stickers": [StickerResponse.model_validate(r) for r in rows]}


@router.post("/{scrapbook_id}/pages/{page_id}/stickers", status_code=status.HTTP_201_CREATED)
def create_sticker(data: StickerCreate, scope: PageScope = Depends(get_page_scope)):
    """Drop a sticker; position defaults to (0, 0) at scale 1, unrotated."""
    sticker = PageStickerRepository.create(
        scope.page_id,
        scope.scrapbook_id,
        scope.relationship_id,
        {**data.model_dump(), "created_by_user_id": scope.user_id},
    )
    if not sticker:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create sticker",
        )
    return {"ok": True, "sticker": StickerResponse.model_validate(sticker)}


@router.patch("/{scrapbook_id}/pages/{page_id}/stickers/{sticker_id}")
def update_sticker(sticker_id: str, data: StickerPatch, scope: PageScope = Depends(get_page_scope)):
    changes = data.changes()
    if not changes:
        raise EmptyPatchError()

    sticker = PageStickerRepository.update(
        sticker_id, scope.page_id, scope.scrapbook_id, scope.relationship_id, changes
    )
    if not sticker:
        raise NotFoundError()
    return {"ok": True, "sticker": StickerResponse.model_validate(sticker)}


@router.delete("/{scrapbook_id}/pages/{page_id}/stickers/{sticker_id}")
def delete_sticker(sticker_id: str, scope: PageScope = Depends(get_page_scope)):
    if not PageStickerRepository.delete(sticker_id, scope.page_id, scope.scrapbook_id, scope.relationship_id):
        raise NotFoundError()
    return {"ok": True}
