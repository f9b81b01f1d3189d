from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import PageScope, get_page_scope
from app.core.errors import EmptyPatchError, NotFoundError
from app.domain.schemas import TextCreate, TextPatch, TextResponse
from app.repositories.page_text import PageTextRepository

router = APIRouter()


@router.get("/{scrapbook_id}/pages/{page_id}/texts")
def list_texts(scope: PageScope = Depends(get_page_scope)):
    rows = PageTextRepository.list_for_page(scope.page_id, scope.scrapbook_id, scope.relationship_id)
    return {"ok": True, "texts": [TextResponse.model_validate(r) for r in rows]}


@router.post("/{scrapbook_id}/pages/{page_id}/texts", status_code=status.HTTP_201_CREATED)
def create_text(data: TextCreate, scope: PageScope = Depends(get_page_scope)):
    text = PageTextRepository.create(
        scope.page_id,
        scope.scrapbook_id,
        scope.relationship_id,
        {**data.model_dump(), "created_by_user_id": scope.user_id},
    )
    if not text:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create text",
        )
    return {"ok": True, "text": TextResponse.model_validate(text)}


@router.patch("/{scrapbook_id}/pages/{page_id}/texts/{text_id}")
def update_text(text_id: str, data: TextPatch, scope: PageScope = Depends(get_page_scope)):
    """Edit wording, style or transform; omitted fields are left alone."""
    changes = data.changes()
    if not changes:
        raise EmptyPatchError()

    text = PageTextRepository.update(
        text_id, scope.page_id, scope.scrapbook_id, scope.relationship_id, changes
    )
    if not text:
        raise NotFoundError()
    return {"ok": True, "text": TextResponse.model_validate(text)}


@router.delete("/{scrapbook_id}/pages/{page_id}/texts/{text_id}")
def delete_text(text_id: str, scope: PageScope = Depends(get_page_scope)):
    if not PageTextRepository.delete(text_id, scope.page_id, scope.scrapbook_id, scope.relationship_id):
        raise NotFoundError()
    return {"ok": True}
