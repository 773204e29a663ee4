from __future__ import annotations

import atexit
import logging
import queue
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from flask import current_app

from library_portal.services.sms_service import FAILED, MessageLog, SmsDispatcher
from library_portal.services.sms_templates import format_due_date, render

logger = logging.getLogger(__name__)


@dataclass
class SmsJob:
    phone: str
    message: str
    attempts: int = 0


class NotificationQueue:
    """
    Detached delivery of SMS jobs.
    - asynchronous: one worker thread consumes the queue
    - synchronous (tests): jobs run inline inside enqueue()
    A job whose delivery fails is retried up to max_attempts, then moved to dead_letters.
    """

    def __init__(self, dispatcher: SmsDispatcher, max_attempts: int = 3, asynchronous: bool = True):
        self.dispatcher = dispatcher
        self.max_attempts = max(1, max_attempts)
        self.asynchronous = asynchronous
        self.dead_letters: List[SmsJob] = []
        self._queue: "queue.Queue[Optional[SmsJob]]" = queue.Queue()
        self._worker: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    def enqueue(self, phone: str, message: str) -> SmsJob:
        job = SmsJob(phone, message)
        if not self.asynchronous:
            self._run(job)
            return job
        self._ensure_worker()
        self._queue.put(job)
        return job

    def _ensure_worker(self):
        with self._lock:
            if self._worker is None or not self._worker.is_alive():
                self._worker = threading.Thread(target=self._loop, name="sms-queue", daemon=True)
                self._worker.start()

    def _loop(self):
        while True:
            job = self._queue.get()
            try:
                if job is None:
                    return
                self._run(job)
            finally:
                self._queue.task_done()

    def _run(self, job: SmsJob):
        while job.attempts < self.max_attempts:
            job.attempts += 1
            try:
                entry = self.dispatcher.deliver(job.phone, job.message)
            except Exception as e:
                logger.exception(f"[sms-queue] attempt {job.attempts} crashed: {e}")
                continue
            if entry.status != FAILED:
                return
        logger.warning(f"[sms-queue] giving up after {job.attempts} attempts: to={job.phone}")
        self.dead_letters.append(job)

    def drain(self):
        if self.asynchronous and self._worker is not None:
            self._queue.join()

    def shutdown(self):
        if self._worker is not None and self._worker.is_alive():
            self._queue.put(None)
            self._worker.join(timeout=5)
        self._worker = None


class NotificationCenter:
    """Owns the message log, the dispatcher and the queue for one Flask app."""

    def __init__(self, dispatcher: Optional[SmsDispatcher] = None):
        self.log = MessageLog()
        self.dispatcher = dispatcher
        self.queue: Optional[NotificationQueue] = None

    def init_app(self, app):
        if self.dispatcher is None:
            self.dispatcher = SmsDispatcher.from_config(app.config, self.log)
        else:
            self.dispatcher.log = self.log
        self.queue = NotificationQueue(
            self.dispatcher,
            max_attempts=app.config.get("SMS_MAX_ATTEMPTS", 3),
            asynchronous=app.config.get("SMS_ASYNC", True),
        )
        app.extensions["notifications"] = self
        atexit.register(self.shutdown)
        return self

    def notify(self, phone: str, message: str) -> bool:
        """Fire-and-forget: always True, delivery happens on the queue."""
        self.queue.enqueue(phone, message)
        return True

    def history(self):
        return self.log.history()

    def shutdown(self):
        if self.queue is not None:
            self.queue.shutdown()
        if self.dispatcher is not None:
            self.dispatcher.close()


def get_notifier() -> NotificationCenter:
    return current_app.extensions["notifications"]


class NotificationService:
    @staticmethod
    def notify_borrowed(student, title: str, due_date: datetime) -> bool:
        if not student.mobile_no:
            return False
        return get_notifier().notify(student.mobile_no, render("BOOK_BORROWED", title, format_due_date(due_date)))

    @staticmethod
    def notify_returned(student, title: str) -> bool:
        if not student.mobile_no:
            return False
        return get_notifier().notify(student.mobile_no, render("BOOK_RETURNED", title))

    @staticmethod
    def notify_account_created(mobile_no: str, first_name: str) -> bool:
        if not mobile_no:
            return False
        return get_notifier().notify(mobile_no, render("ACCOUNT_CREATED", first_name))

    @staticmethod
    def send_overdue_alert(email: str, title: str) -> bool:
        """Librarian's manual reminder. False when the student is unknown or has no mobile number."""
        from library_portal.services.borrow_service import LoanLedger

        student = LoanLedger.find_by_email(email)
        if not student or not student.mobile_no:
            return False
        get_notifier().notify(student.mobile_no, render("MANUAL_OVERDUE", title))
        current_app.logger.info(f"[notifications] manual overdue alert sent to {student.name}")
        return True

    @staticmethod
    def send_bulk(recipients: list) -> dict:
        return get_notifier().dispatcher.send_bulk(recipients)
