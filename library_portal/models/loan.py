# library_portal/models/loan.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from library_portal.utils.dates import parse_iso, to_iso


@dataclass(frozen=True)
class LoanRecord:
    title: str
    borrow_date: Optional[datetime]
    due_date: Optional[datetime] = None

    def to_raw(self) -> dict:
        raw = {"title": self.title}
        if self.borrow_date is not None:
            raw["borrowDate"] = to_iso(self.borrow_date)
        if self.due_date is not None:
            raw["dueDate"] = to_iso(self.due_date)
        return raw

    def effective_borrow_date(self, login_time: Optional[datetime]) -> Optional[datetime]:
        return self.borrow_date or login_time


@dataclass(frozen=True)
class LegacyLoan:
    """Older sessions stored only the title; the borrow date is the student's login time."""

    title: str

    def to_raw(self) -> str:
        return self.title

    def effective_borrow_date(self, login_time: Optional[datetime]) -> Optional[datetime]:
        return login_time


Loan = Union[LoanRecord, LegacyLoan]


def normalize_loan(raw) -> Optional[Loan]:
    """
    Persisted borrowedBooks item -> Loan.
    - "1984"                                  -> LegacyLoan
    - {"title": ..., "borrowDate": ..., ...}  -> LoanRecord
    Anything without a title is dropped (None).
    """
    if isinstance(raw, (LoanRecord, LegacyLoan)):
        return raw
    if isinstance(raw, str):
        return LegacyLoan(raw) if raw else None
    if isinstance(raw, dict):
        title = raw.get("title")
        if not title:
            return None
        return LoanRecord(
            title=str(title),
            borrow_date=parse_iso(raw.get("borrowDate")),
            due_date=parse_iso(raw.get("dueDate")),
        )
    return None
