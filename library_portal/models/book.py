from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Optional


@dataclass(frozen=True)
class Book:
    id: int
    title: str
    author: str
    isbn: str
    genre: str
    barcode: str
    published_year: Optional[int] = None
    description: Optional[str] = None

    @property
    def plain_isbn(self) -> str:
        return self.isbn.replace("-", "")


@dataclass(frozen=True)
class BookView:
    """A catalog book plus its availability, derived from the loan ledger at read time."""

    book: Book
    available: bool
    borrowed_by: Optional[str] = None

    def to_dict(self) -> dict:
        data = asdict(self.book)
        data["available"] = self.available
        data["borrowed_by"] = self.borrowed_by
        return data
