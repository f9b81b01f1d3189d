from app.repositories.page_element import PageElementRepository


class PageStickerRepository(PageElementRepository):
    TABLE = "scrapbook_page_stickers"
