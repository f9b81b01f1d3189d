from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import PageScope, get_page_scope
from app.core.errors import EmptyPatchError, NotFoundError
from app.domain.schemas import NoteCreate, NotePatch, NoteResponse
from app.repositories.page_note import PageNoteRepository

router = APIRouter()


@router.get("/{scrapbook_id}/pages/{page_id}/notes")
def list_notes(scope: PageScope = Depends(get_page_scope)):
    rows = PageNoteRepository.list_for_page(scope.page_id, scope.scrapbook_id, scope.relationship_id)
    return {"ok": True, "notes": [NoteResponse.model_validate(r) for r in rows]}


@router.post("/{scrapbook_id}/pages/{page_id}/notes", status_code=status.HTTP_201_CREATED)
def create_note(data: NoteCreate, scope: PageScope = Depends(get_page_scope)):
    note = PageNoteRepository.create(
        scope.page_id, scope.scrapbook_id, scope.relationship_id, data.model_dump()
    )
    if not note:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create note",
        )
    return {"ok": True, "note": NoteResponse.model_validate(note)}


@router.patch("/{scrapbook_id}/pages/{page_id}/notes/{note_id}")
def update_note(note_id: str, data: NotePatch, scope: PageScope = Depends(get_page_scope)):
    changes = data.changes()
    if not changes:
        raise EmptyPatchError()

    note = PageNoteRepository.update(
        note_id, scope.page_id, scope.scrapbook_id, scope.relationship_id, changes
    )
    if not note:
        raise NotFoundError()
    return {"ok": True, "note": NoteResponse.model_validate(note)}


@router.delete("/{scrapbook_id}/pages/{page_id}/notes/{note_id}")
def delete_note(note_id: str, scope: PageScope = Depends(get_page_scope)):
    if not PageNoteRepository.delete(note_id, scope.page_id, scope.scrapbook_id, scope.relationship_id):
        raise NotFoundError()
    return {"ok": True}
