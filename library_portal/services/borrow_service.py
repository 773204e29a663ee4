from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional

from flask import current_app

from library_portal.models.book import BookView
from library_portal.models.loan import LoanRecord
from library_portal.models.student import StudentSession
from library_portal.repositories.book_repo import BookRepo
from library_portal.repositories.ledger_repo import LedgerRepo
from library_portal.services.due_dates import OVERDUE, classify, due_date_for
from library_portal.services.notification_service import NotificationService
from library_portal.utils.dates import utcnow


class LoanLedger:
    """
    Read-modify-write over the loggedInStudents collection.
    Every mutation loads the whole ledger and saves the whole ledger back.
    """

    @staticmethod
    def students() -> List[StudentSession]:
        return LedgerRepo.load()

    @staticmethod
    def active_students() -> List[StudentSession]:
        return [s for s in LedgerRepo.load() if s.is_active]

    @staticmethod
    def find_by_email(email: str) -> Optional[StudentSession]:
        return next((s for s in LedgerRepo.load() if s.email == email), None)

    @staticmethod
    def find_by_id(student_id: int) -> Optional[StudentSession]:
        return next((s for s in LedgerRepo.load() if s.id == student_id), None)

    @staticmethod
    def upsert_session(student: StudentSession, borrowed_books: Optional[list] = None) -> StudentSession:
        """
        Login upsert by email.
        An existing entry keeps its id, loans and overdue counter; only an explicit
        borrowed_books list replaces the loans.
        """
        students = LedgerRepo.load()
        idx = next((i for i, s in enumerate(students) if s.email == student.email), None)

        if idx is not None:
            existing = students[idx]
            merged = replace(
                student,
                id=existing.id,
                borrowed_books=list(borrowed_books) if borrowed_books is not None else existing.borrowed_books,
                overdue_books=existing.overdue_books,
            )
            students[idx] = merged
        else:
            new_id = student.id or max((s.id for s in students), default=0) + 1
            merged = replace(
                student,
                id=new_id,
                borrowed_books=list(borrowed_books) if borrowed_books is not None else list(student.borrowed_books),
            )
            students.append(merged)

        LedgerRepo.save(students)
        return merged

    @staticmethod
    def availability(students: Optional[List[StudentSession]] = None) -> Dict[str, str]:
        """{title: holder name} for every title held by an active student."""
        if students is None:
            students = LedgerRepo.load()
        held: Dict[str, str] = {}
        for s in students:
            if not s.is_active:
                continue
            for title in s.titles():
                held.setdefault(title, s.name or "Unknown")
        return held

    @staticmethod
    def book_views(books) -> List[BookView]:
        held = LoanLedger.availability()
        return [BookView(b, b.title not in held, held.get(b.title)) for b in books]

    @staticmethod
    def is_available(title: str) -> bool:
        return title not in LoanLedger.availability()

    @staticmethod
    def borrow(student_id: int, book_id: int, now: Optional[datetime] = None) -> LoanRecord:
        now = now or utcnow()

        book = BookRepo.get(book_id)
        if not book:
            raise ValueError("Book not found")

        students = LedgerRepo.load()
        student = next((s for s in students if s.id == student_id), None)
        if not student:
            raise ValueError("Student not found")

        # double-borrow guard
        if book.title in LoanLedger.availability(students):
            raise ValueError("This book is currently not available")

        record = LoanRecord(title=book.title, borrow_date=now, due_date=due_date_for(now))
        student.borrowed_books.append(record)
        LedgerRepo.save(students)

        current_app.logger.info(f"[ledger] {student.email} borrowed '{book.title}'")
        NotificationService.notify_borrowed(student, book.title, record.due_date)
        return record

    @staticmethod
    def return_book(student_id: int, title: str) -> StudentSession:
        students = LedgerRepo.load()
        student = next((s for s in students if s.id == student_id), None)
        if not student:
            raise ValueError("Student not found")

        idx = next((i for i, loan in enumerate(student.borrowed_books) if loan.title == title), None)
        if idx is None:
            raise ValueError(f"'{title}' is not borrowed by this student")

        del student.borrowed_books[idx]
        student.overdue_books = max(0, student.overdue_books - 1)
        LedgerRepo.save(students)

        current_app.logger.info(f"[ledger] {student.email} returned '{title}'")
        NotificationService.notify_returned(student, title)
        return student

    @staticmethod
    def overdue_report(now: Optional[datetime] = None) -> List[dict]:
        now = now or utcnow()
        rows = []
        for s in LoanLedger.active_students():
            for loan in s.borrowed_books:
                borrow_date = loan.effective_borrow_date(s.login_time)
                status = classify(borrow_date, now)
                if status.status != OVERDUE:
                    continue
                rows.append({
                    "student_name": s.name,
                    "student_email": s.email,
                    "student_mobile": s.mobile_no,
                    "book_title": loan.title,
                    "days_overdue": status.days_overdue,
                    "borrow_date": borrow_date.date().isoformat(),
                })
        return rows
