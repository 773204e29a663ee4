from datetime import datetime, timedelta, timezone

import pytest

from library_portal.extensions import db
from library_portal.models.loan import LegacyLoan, LoanRecord
from library_portal.models.storage_entry import StorageEntry
from library_portal.models.student import StudentSession
from library_portal.repositories.ledger_repo import LEDGER_KEY, LedgerRepo
from library_portal.repositories.storage_repo import StorageRepo
from library_portal.services.borrow_service import LoanLedger

DAY0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def test_new_students_get_increasing_ids(make_student):
    a = make_student(email="a@example.com")
    b = make_student(email="b@example.com")
    assert (a.id, b.id) == (1, 2)


def test_borrow_records_due_date_and_blocks_second_borrow(make_student, gateway):
    s = make_student()
    record = LoanLedger.borrow(s.id, 3, now=DAY0)

    assert record.title == "1984"
    assert record.due_date == DAY0 + timedelta(days=14)
    assert LoanLedger.availability() == {"1984": "Ravi Kumar"}
    assert 'borrowed "1984"' in gateway.relayed_messages[-1]
    assert "3/15/2024" in gateway.relayed_messages[-1]

    other = make_student(email="other@example.com", name="Other")
    with pytest.raises(ValueError, match="not available"):
        LoanLedger.borrow(other.id, 3, now=DAY0)


def test_borrow_unknown_book_or_student(make_student):
    s = make_student()
    with pytest.raises(ValueError, match="Book not found"):
        LoanLedger.borrow(s.id, 999)
    with pytest.raises(ValueError, match="Student not found"):
        LoanLedger.borrow(42, 1)


def test_relogin_keeps_loans_and_id(make_student):
    s = make_student()
    LoanLedger.borrow(s.id, 1, now=DAY0)

    again = make_student(login_time=DAY0 + timedelta(days=3))

    assert again.id == s.id
    assert again.titles() == ["The Great Gatsby"]
    assert again.login_time == DAY0 + timedelta(days=3)
    assert len(LoanLedger.students()) == 1


def test_return_removes_loan_and_clamps_overdue_counter(make_student, gateway):
    s = make_student()
    LoanLedger.borrow(s.id, 3, now=DAY0)

    after = LoanLedger.return_book(s.id, "1984")

    assert after.titles() == []
    assert after.overdue_books == 0
    assert LoanLedger.is_available("1984")
    assert "successfully returned" in gateway.relayed_messages[-1]


def test_return_of_title_not_held(make_student):
    s = make_student()
    with pytest.raises(ValueError):
        LoanLedger.return_book(s.id, "1984")


def test_inactive_students_do_not_hold_books(make_student):
    s = make_student()
    LoanLedger.borrow(s.id, 3, now=DAY0)

    students = LedgerRepo.load()
    students[0].is_active = False
    LedgerRepo.save(students)

    assert LoanLedger.is_available("1984")
    assert LoanLedger.active_students() == []


def test_legacy_string_loans_round_trip(app):
    StorageRepo.set_json(LEDGER_KEY, [{
        "id": 1, "name": "Old Timer", "email": "old@example.com", "mobileNo": "+919876543210",
        "borrowedBooks": ["1984", {"title": "Animal Farm", "borrowDate": "2024-03-01T09:00:00.000Z"}],
        "loginTime": "2024-03-01T09:00:00.000Z", "isActive": True,
    }])

    student = LoanLedger.find_by_id(1)
    assert isinstance(student.borrowed_books[0], LegacyLoan)
    assert isinstance(student.borrowed_books[1], LoanRecord)
    assert LoanLedger.availability() == {"1984": "Old Timer", "Animal Farm": "Old Timer"}

    LedgerRepo.save(LedgerRepo.load())
    raw = StorageRepo.get_json(LEDGER_KEY)
    assert raw[0]["borrowedBooks"][0] == "1984"
    assert raw[0]["borrowedBooks"][1]["borrowDate"] == "2024-03-01T09:00:00.000Z"


def test_unparsable_ledger_reads_as_empty(app):
    db.session.add(StorageEntry(key=LEDGER_KEY, value="{not json"))
    db.session.commit()
    assert LoanLedger.students() == []


def test_student_session_raw_keys():
    s = StudentSession(id=1, name="A", email="a@x", roll_no="R1", mobile_no="+919876543210", login_time=DAY0)
    raw = s.to_raw()
    assert raw["rollNo"] == "R1"
    assert raw["loginTime"] == "2024-03-01T09:00:00.000Z"
    assert StudentSession.from_raw(raw) == s


def test_overdue_report(make_student):
    s = make_student()
    LoanLedger.borrow(s.id, 3, now=DAY0)
    LoanLedger.borrow(s.id, 4, now=DAY0 + timedelta(days=10))

    rows = LoanLedger.overdue_report(now=DAY0 + timedelta(days=17))

    assert rows == [{
        "student_name": "Ravi Kumar",
        "student_email": "ravi@example.com",
        "student_mobile": "+919812345678",
        "book_title": "1984",
        "days_overdue": 3,
        "borrow_date": "2024-03-01",
    }]


def test_return_decrements_overdue_counter_by_one(make_student):
    from library_portal.tasks.overdue_check import run_overdue_sweep

    s = make_student()
    LoanLedger.borrow(s.id, 3, now=DAY0)
    LoanLedger.borrow(s.id, 6, now=DAY0)
    run_overdue_sweep(now=DAY0 + timedelta(days=20))
    assert LoanLedger.find_by_id(s.id).overdue_books == 2

    after = LoanLedger.return_book(s.id, "1984")

    assert after.overdue_books == 1
    assert LoanLedger.find_by_id(s.id).overdue_books == 1


def test_title_stays_unavailable_while_another_student_holds_it(app):
    StorageRepo.set_json(LEDGER_KEY, [
        {"id": 1, "name": "First Holder", "email": "first@example.com",
         "borrowedBooks": ["1984"], "loginTime": "2024-03-01T09:00:00.000Z", "isActive": True},
        {"id": 2, "name": "Second Holder", "email": "second@example.com",
         "borrowedBooks": ["1984"], "loginTime": "2024-03-01T09:00:00.000Z", "isActive": True},
    ])

    LoanLedger.return_book(1, "1984")
    assert not LoanLedger.is_available("1984")
    assert LoanLedger.availability() == {"1984": "Second Holder"}

    LoanLedger.return_book(2, "1984")
    assert LoanLedger.is_available("1984")
