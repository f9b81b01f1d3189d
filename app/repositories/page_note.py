from app.repositories.page_element import PageElementRepository


class PageNoteRepository(PageElementRepository):
    TABLE = "scrapbook_page_notes"
