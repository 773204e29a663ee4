from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from library_portal.models.loan import Loan, normalize_loan
from library_portal.utils.dates import parse_iso, to_iso


@dataclass
class StudentSession:
    """An entry of the loggedInStudents collection (the loan ledger)."""

    id: int
    name: str
    email: str
    roll_no: str = ""
    mobile_no: str = ""
    student_class: str = ""
    year: str = ""
    borrowed_books: List[Loan] = field(default_factory=list)
    overdue_books: int = 0
    login_time: Optional[datetime] = None
    is_active: bool = True

    @classmethod
    def from_raw(cls, raw: dict) -> "StudentSession":
        loans = [normalize_loan(x) for x in (raw.get("borrowedBooks") or [])]
        return cls(
            id=int(raw.get("id") or 0),
            name=raw.get("name") or "",
            email=raw.get("email") or "",
            roll_no=raw.get("rollNo") or "",
            mobile_no=raw.get("mobileNo") or "",
            student_class=raw.get("class") or "",
            year=raw.get("year") or "",
            borrowed_books=[x for x in loans if x is not None],
            overdue_books=max(0, int(raw.get("overdueBooks") or 0)),
            login_time=parse_iso(raw.get("loginTime")),
            is_active=bool(raw.get("isActive", True)),
        )

    def to_raw(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "rollNo": self.roll_no,
            "email": self.email,
            "mobileNo": self.mobile_no,
            "class": self.student_class,
            "year": self.year,
            "borrowedBooks": [x.to_raw() for x in self.borrowed_books],
            "overdueBooks": self.overdue_books,
            "loginTime": to_iso(self.login_time) if self.login_time else None,
            "isActive": self.is_active,
        }

    def titles(self) -> List[str]:
        return [x.title for x in self.borrowed_books]
