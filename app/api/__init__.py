from fastapi import APIRouter

from .routes import (
    auth,
    coupons,
    entries,
    health,
    me,
    media,
    page_notes,
    page_stickers,
    page_texts,
    push_tokens,
    quests,
    relationships,
    scrapbook_pages,
    scrapbooks,
)

api_router = APIRouter()

# Health check
api_router.include_router(health.router, tags=["health"])

# Sign-in and the caller's own profile
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(me.router, prefix="/me", tags=["me"])
api_router.include_router(push_tokens.router, prefix="/push-tokens", tags=["push-tokens"])

# Couples
api_router.include_router(relationships.router, prefix="/relationships", tags=["relationships"])

# Timeline (paths span /relationships/{id}/entries and /entries)
api_router.include_router(entries.router, tags=["entries"])

# Scrapbooks and page composition
api_router.include_router(scrapbooks.router, prefix="/scrapbooks", tags=["scrapbooks"])
api_router.include_router(scrapbook_pages.router, prefix="/scrapbooks", tags=["scrapbook-pages"])
api_router.include_router(page_stickers.router, prefix="/scrapbooks", tags=["scrapbook-pages"])
api_router.include_router(page_texts.router, prefix="/scrapbooks", tags=["scrapbook-pages"])
api_router.include_router(page_notes.router, prefix="/scrapbooks", tags=["scrapbook-pages"])

# Coupons and quests
api_router.include_router(coupons.router, prefix="/coupons", tags=["coupons"])
api_router.include_router(quests.router, prefix="/quests", tags=["quests"])

# Uploads
api_router.include_router(media.router, prefix="/media", tags=["media"])
