from datetime import datetime, timedelta, timezone

from library_portal.services.borrow_service import LoanLedger
from library_portal.services.notification_service import NotificationService, get_notifier
from library_portal.tasks.overdue_check import run_overdue_check_job, run_overdue_sweep

DAY0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def test_overdue_notice_two_days_late(make_student, gateway):
    s = make_student()
    LoanLedger.borrow(s.id, 3, now=DAY0)

    report = run_overdue_sweep(now=DAY0 + timedelta(days=16))

    assert report.overdue == 1
    assert report.messages == 1
    msg = gateway.relayed_messages[-1]
    assert msg.startswith('OVERDUE ALERT: "1984" was due 2 day(s) ago.')
    assert gateway.relay_requests[-1]["phoneNumber"] == "+919812345678"
    assert LoanLedger.find_by_id(s.id).overdue_books == 1


def test_sweep_is_idempotent_for_the_counter(make_student):
    s = make_student()
    LoanLedger.borrow(s.id, 3, now=DAY0)
    LoanLedger.borrow(s.id, 6, now=DAY0)

    later = DAY0 + timedelta(days=20)
    run_overdue_sweep(now=later)
    run_overdue_sweep(now=later)

    assert LoanLedger.find_by_id(s.id).overdue_books == 2


def test_final_notice_after_a_week_overdue(make_student, gateway):
    s = make_student()
    LoanLedger.borrow(s.id, 3, now=DAY0)

    run_overdue_sweep(now=DAY0 + timedelta(days=22))

    assert gateway.relayed_messages[-1].startswith('FINAL NOTICE: "1984" is 8 days overdue.')


def test_due_soon_reminder(make_student, gateway):
    s = make_student()
    LoanLedger.borrow(s.id, 4, now=DAY0)

    report = run_overdue_sweep(now=DAY0 + timedelta(days=12))

    assert report.due_soon == 1
    assert report.overdue == 0
    assert gateway.relayed_messages[-1].startswith('Library Reminder: "Pride and Prejudice" is due in 2 day(s).')


def test_students_without_mobile_are_counted_but_not_messaged(make_student, gateway):
    s = make_student(mobile_no="")
    LoanLedger.borrow(s.id, 3, now=DAY0)
    before = len(gateway.relay_requests)

    report = run_overdue_sweep(now=DAY0 + timedelta(days=16))

    assert report.overdue == 1
    assert report.messages == 0
    assert len(gateway.relay_requests) == before
    assert LoanLedger.find_by_id(s.id).overdue_books == 1


def test_legacy_loan_uses_login_time(app, make_student, gateway):
    from library_portal.repositories.ledger_repo import LedgerRepo
    from library_portal.models.loan import LegacyLoan

    make_student()
    students = LedgerRepo.load()
    students[0].borrowed_books.append(LegacyLoan("Animal Farm"))
    LedgerRepo.save(students)

    run_overdue_sweep(now=DAY0 + timedelta(days=15))

    assert gateway.relayed_messages[-1].startswith('OVERDUE ALERT: "Animal Farm" was due 1 day(s) ago.')


def test_scheduler_job_runs_in_its_own_context(app, make_student):
    s = make_student()
    LoanLedger.borrow(s.id, 3, now=DAY0)

    report = run_overdue_check_job(app)

    assert report is not None
    assert report.students == 1


def test_manual_overdue_alert(make_student, gateway):
    make_student()
    assert NotificationService.send_overdue_alert("ravi@example.com", "1984") is True
    assert gateway.relayed_messages[-1].startswith('Library Notice: Please return "1984" immediately.')
    assert NotificationService.send_overdue_alert("nobody@example.com", "1984") is False


def test_history_records_every_send(make_student):
    s = make_student()
    LoanLedger.borrow(s.id, 3, now=DAY0)
    LoanLedger.return_book(s.id, "1984")

    history = get_notifier().history()
    assert len(history) == 2
    assert all(m.transport == "relay" for m in history)


def test_relay_down_uses_twilio_directly(make_student, gateway):
    gateway.relay_ok = False
    s = make_student()
    LoanLedger.borrow(s.id, 3, now=DAY0)

    assert gateway.twilio_requests[-1]["To"] == "+919812345678"
    assert [m.transport for m in get_notifier().history()].count("direct") == 1
