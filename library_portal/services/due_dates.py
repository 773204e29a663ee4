# library_portal/services/due_dates.py
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

LOAN_PERIOD_DAYS = 14
OVERDUE_AFTER_DAYS = 15
DUE_SOON_AFTER_DAYS = 12

NORMAL = "normal"
DUE_SOON = "due-soon"
OVERDUE = "overdue"


@dataclass(frozen=True)
class LoanStatus:
    status: str
    days_borrowed: Optional[int] = None
    days_overdue: int = 0
    days_left: Optional[int] = None

    @property
    def message(self) -> str:
        if self.status == OVERDUE:
            return f"{self.days_overdue} days overdue"
        if self.status == DUE_SOON:
            return f"Due in {self.days_left} day(s)"
        return ""


def days_between(start: datetime, end: datetime) -> int:
    """Whole days from start to end, floored. Negative if end is before start."""
    return math.floor((end - start).total_seconds() / 86400)


def due_date_for(borrow_date: datetime) -> datetime:
    return borrow_date + timedelta(days=LOAN_PERIOD_DAYS)


def classify(borrow_date: Optional[datetime], now: datetime) -> LoanStatus:
    if borrow_date is None:
        return LoanStatus(NORMAL)

    days = days_between(borrow_date, now)
    if days >= OVERDUE_AFTER_DAYS:
        return LoanStatus(OVERDUE, days_borrowed=days, days_overdue=days - LOAN_PERIOD_DAYS)
    if days >= DUE_SOON_AFTER_DAYS:
        return LoanStatus(DUE_SOON, days_borrowed=days, days_left=LOAN_PERIOD_DAYS - days)
    return LoanStatus(NORMAL, days_borrowed=days)
