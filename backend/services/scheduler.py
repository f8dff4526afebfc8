"""
In-process daily scheduler for the low-stock sweep.

A single daemon thread sleeps on a stop event until the next run time
(02:00 local by default), runs `run_daily_reconciliation` in a fresh session
and goes back to sleep for the following day. `stop()` wakes it immediately;
since the sweep never writes quantities, stopping mid-run is harmless.
"""
import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.orm import Session

from services.alerts import ReconciliationReport, run_daily_reconciliation

logger = logging.getLogger(__name__)


def next_run_after(now: datetime, hour: int = 2, minute: int = 0) -> datetime:
    run_at = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if run_at <= now:
        run_at += timedelta(days=1)
    return run_at


class DailyReconciliationScheduler:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        hour: int = 2,
        minute: int = 0,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._session_factory = session_factory
        self._hour = hour
        self._minute = minute
        self._clock = clock
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.last_report: Optional[ReconciliationReport] = None
        self.last_run_at: Optional[datetime] = None
        self.last_error: Optional[BaseException] = None
        self.last_error_at: Optional[datetime] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def seconds_until_next_run(self) -> float:
        now = self._clock()
        return (next_run_after(now, self._hour, self._minute) - now).total_seconds()

    def run_once(self) -> ReconciliationReport:
        """Run the sweep now in its own session (public for manual triggers and tests)."""
        db = self._session_factory()
        try:
            report = run_daily_reconciliation(db)
        finally:
            db.close()
        self.last_report = report
        self.last_run_at = self._clock()
        self.last_error = None
        return report

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name="daily-reconciliation", daemon=True)
        self._thread.start()
        logger.info("Background reconciliation scheduler is starting (daily at %02d:%02d).",
                    self._hour, self._minute)

    def stop(self, timeout: float = 10.0) -> None:
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        logger.info("Background reconciliation scheduler is stopping.")

    def _run_loop(self) -> None:
        while not self._stop_event.wait(timeout=self.seconds_until_next_run()):
            try:
                self.run_once()
                logger.info("Daily stock reconciliation completed successfully.")
            except Exception as exc:
                # Keep the thread alive for tomorrow's run
                self.last_error = exc
                self.last_error_at = self._clock()
                logger.exception("Error occurred during daily stock reconciliation.")
