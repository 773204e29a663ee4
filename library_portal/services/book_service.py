from typing import List

from library_portal.models.book import BookView
from library_portal.repositories.book_repo import BookRepo
from library_portal.services.borrow_service import LoanLedger


class BookService:
    @staticmethod
    def list_books() -> List[BookView]:
        return LoanLedger.book_views(BookRepo.list_all())

    @staticmethod
    def search(text: str) -> List[BookView]:
        return LoanLedger.book_views(BookRepo.search(text))

    @staticmethod
    def get_book(book_id: int) -> BookView:
        book = BookRepo.get(book_id)
        if not book:
            raise ValueError("Book not found")
        return LoanLedger.book_views([book])[0]

    @staticmethod
    def lookup_barcode(code: str) -> BookView:
        book = BookRepo.find_by_barcode(code)
        if not book:
            raise ValueError(f"No book found with barcode: {code}")
        return LoanLedger.book_views([book])[0]
