# library_portal/tasks/scheduler.py
from __future__ import annotations

import atexit
import os

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger


def start_scheduler(app):
    """
    Hourly overdue check.
    - Skipped when SCHEDULER_ENABLED is off (tests, one-off CLI commands).
    - In debug, only the real Werkzeug reloader process starts it.
    - Shut down at interpreter exit.
    """
    if not app.config.get("SCHEDULER_ENABLED", True):
        app.logger.info("[scheduler] disabled by config.")
        return None

    if app.debug and os.environ.get("WERKZEUG_RUN_MAIN") != "true":
        app.logger.info("[scheduler] Debug reloader secondary process: scheduler skipped.")
        return None

    from library_portal.tasks.overdue_check import run_overdue_check_job

    minutes = app.config.get("OVERDUE_CHECK_MINUTES", 60)
    scheduler = BackgroundScheduler(timezone="UTC")

    def _job_wrapper():
        try:
            run_overdue_check_job(app)
        except Exception as ex:
            app.logger.exception(f"[scheduler] overdue_check_job error: {ex}")

    scheduler.add_job(
        func=_job_wrapper,
        trigger=IntervalTrigger(minutes=minutes),
        id="overdue_check_job",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=120,
    )

    scheduler.start()
    app.logger.info(f"[scheduler] Overdue check job started (every {minutes} minutes).")

    app.extensions["apscheduler"] = scheduler

    def _shutdown():
        if scheduler.running:
            scheduler.shutdown(wait=False)

    atexit.register(_shutdown)
    return scheduler
