from fastapi import Depends

from app.core.errors import NotFoundError
from app.core.permissions import RelationshipMemberContext, require_relationship_member
from app.core.security import AuthContext, require_auth
from app.repositories.scrapbook import ScrapbookRepository
from app.repositories.scrapbook_page import ScrapbookPageRepository


class ScrapbookScope:
    """A scrapbook the caller is allowed to see, plus their membership."""

    def __init__(self, scrapbook: dict, member: RelationshipMemberContext):
        self.scrapbook = scrapbook
        self.member = member
        self.scrapbook_id = scrapbook["id"]
        self.relationship_id = scrapbook["relationship_id"]
        self.user_id = member.user_id


class PageScope(ScrapbookScope):
    """A page inside a visible scrapbook."""

    def __init__(self, scrapbook: dict, member: RelationshipMemberContext, page: dict):
        super().__init__(scrapbook, member)
        self.page = page
        self.page_id = page["id"]


def get_scrapbook_scope(scrapbook_id: str, auth: AuthContext = Depends(require_auth)) -> ScrapbookScope:
    """404 for an unknown scrapbook, then 403 for a non-member."""
    scrapbook = ScrapbookRepository.get_by_id(scrapbook_id)
    if not scrapbook:
        raise NotFoundError()
    member = require_relationship_member(auth.user_id, scrapbook["relationship_id"])
    return ScrapbookScope(scrapbook, member)


def get_page_scope(page_id: str, scope: ScrapbookScope = Depends(get_scrapbook_scope)) -> PageScope:
    """404 unless the page belongs to this scrapbook and relationship."""
    page = ScrapbookPageRepository.get_in_scrapbook(page_id, scope.scrapbook_id, scope.relationship_id)
    if not page:
        raise NotFoundError()
    return PageScope(scope.scrapbook, scope.member, page)
