from app.repositories.page_element import PageElementRepository


class PageTextRepository(PageElementRepository):
    TABLE = "scrapbook_page_texts"
