from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from ..core.constants import DEFAULT_AUTO_MARK_INTERVAL_MINUTES, DEFAULT_LOCK_SWEEP_HOUR_UTC
from .auto_mark import AutoMarkService

logger = logging.getLogger(__name__)


class SweepScheduler:
    """Runs the auto-mark and lock sweeps on their own timer, away from request threads."""

    def __init__(
        self,
        auto_mark: AutoMarkService,
        *,
        interval_minutes: int = DEFAULT_AUTO_MARK_INTERVAL_MINUTES,
        lock_hour_utc: int = DEFAULT_LOCK_SWEEP_HOUR_UTC,
        scheduler: BackgroundScheduler | None = None,
    ):
        self._auto_mark = auto_mark
        self._interval_minutes = int(interval_minutes)
        self._lock_hour_utc = int(lock_hour_utc)
        self._scheduler = scheduler or BackgroundScheduler(timezone="UTC")
        self._configured = False

    @property
    def running(self) -> bool:
        return bool(self._scheduler.running)

    def _run_auto_mark(self) -> None:
        try:
            self._auto_mark.auto_mark_ongoing_classes()
        except Exception:
            # Storage outages end this tick only; the next tick tries again.
            logger.exception("Auto-mark sweep aborted")

    def _run_lock_sweep(self) -> None:
        try:
            self._auto_mark.run_lock_sweep()
        except Exception:
            logger.exception("Lock sweep aborted")

    def configure(self) -> None:
        if self._configured:
            return
        self._scheduler.add_job(
            func=self._run_auto_mark,
            trigger="interval",
            minutes=self._interval_minutes,
            id="auto_mark_ongoing_classes",
            name="Auto-mark students of ongoing classes",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.add_job(
            func=self._run_lock_sweep,
            trigger="cron",
            hour=self._lock_hour_utc,
            minute=5,
            id="lock_old_attendances",
            name="Lock attendance outside the edit window",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._configured = True

    def start(self) -> None:
        self.configure()
        if not self._scheduler.running:
            self._auto_mark.stop_event.clear()
            self._scheduler.start()
            logger.info(
                "Sweep scheduler started (auto-mark every %s min, lock sweep daily at %02d:05 UTC)",
                self._interval_minutes, self._lock_hour_utc,
            )

    def stop(self) -> None:
        """Ask running sweeps to finish their current student, then wait for them."""

        self._auto_mark.stop_event.set()
        if self._scheduler.running:
            self._scheduler.shutdown(wait=True)
            logger.info("Sweep scheduler stopped")
