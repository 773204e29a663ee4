from typing import List, Optional

from library_portal.data.catalog import BOOKS
from library_portal.models.book import Book


class BookRepo:
    @staticmethod
    def list_all() -> List[Book]:
        return list(BOOKS)

    @staticmethod
    def get(book_id: int) -> Optional[Book]:
        return next((b for b in BOOKS if b.id == book_id), None)

    @staticmethod
    def get_by_title(title: str) -> Optional[Book]:
        return next((b for b in BOOKS if b.title == title), None)

    @staticmethod
    def find_by_barcode(code: str) -> Optional[Book]:
        code = (code or "").strip()
        if not code:
            return None
        book = next((b for b in BOOKS if b.barcode == code or b.isbn == code), None)
        if book:
            return book
        # ISBN typed/scanned with or without hyphens
        plain = code.replace("-", "")
        return next((b for b in BOOKS if b.plain_isbn == plain), None)

    @staticmethod
    def search(text: str) -> List[Book]:
        t = (text or "").strip().lower()
        if not t:
            return list(BOOKS)
        return [
            b for b in BOOKS
            if t in b.title.lower()
            or t in b.author.lower()
            or t in b.genre.lower()
            or t in b.isbn
        ]
