# library_portal/tasks/overdue_check.py
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Optional

from flask import current_app

from library_portal.extensions import db
from library_portal.repositories.ledger_repo import LedgerRepo
from library_portal.services.due_dates import DUE_SOON, OVERDUE, classify
from library_portal.services.notification_service import get_notifier
from library_portal.services.sms_templates import render
from library_portal.utils.dates import utcnow

FINAL_NOTICE_AFTER_DAYS = 7


@dataclass
class SweepReport:
    students: int = 0
    overdue: int = 0
    due_soon: int = 0
    messages: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def run_overdue_sweep(now: Optional[datetime] = None) -> SweepReport:
    """
    Classifies every outstanding loan of every active student.
    - overdue : OVERDUE_NOTICE (FINAL_NOTICE after 7 days overdue)
    - due-soon: DUE_REMINDER
    overdueBooks is recomputed from the current loans, so running the sweep
    twice gives the same counter as running it once.
    """
    now = now or utcnow()
    notifier = get_notifier()
    report = SweepReport()

    students = LedgerRepo.load()
    for s in students:
        if not s.is_active:
            continue
        report.students += 1

        overdue_count = 0
        for loan in s.borrowed_books:
            status = classify(loan.effective_borrow_date(s.login_time), now)

            if status.status == OVERDUE:
                overdue_count += 1
                report.overdue += 1
                if s.mobile_no:
                    event = "OVERDUE_NOTICE" if status.days_overdue <= FINAL_NOTICE_AFTER_DAYS else "FINAL_NOTICE"
                    notifier.notify(s.mobile_no, render(event, loan.title, status.days_overdue))
                    report.messages += 1
                    current_app.logger.info(f"[overdue_check] overdue alert for {s.name}: '{loan.title}'")

            elif status.status == DUE_SOON:
                report.due_soon += 1
                if s.mobile_no:
                    notifier.notify(s.mobile_no, render("DUE_REMINDER", loan.title, status.days_left))
                    report.messages += 1
                    current_app.logger.info(f"[overdue_check] due reminder for {s.name}: '{loan.title}'")

        s.overdue_books = overdue_count

    # single write of the whole ledger
    LedgerRepo.save(students)
    return report


def run_overdue_check_job(app):
    """Scheduler entry point: sweep inside an app context, log a one-line summary."""
    with app.app_context():
        try:
            report = run_overdue_sweep()
            current_app.logger.info(
                f"[overdue_check] students={report.students} overdue={report.overdue} "
                f"due_soon={report.due_soon} messages={report.messages}"
            )
            return report
        except Exception as e:
            db.session.rollback()
            current_app.logger.exception(f"[overdue_check] failed: {e}")
            return None
