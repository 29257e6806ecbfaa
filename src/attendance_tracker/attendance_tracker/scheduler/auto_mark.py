from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import mysql.connector

from ..attendance.service import AttendanceLedger
from ..common.datetime_utils import Clock, SystemClock, as_utc
from ..core.enums import AttendanceStatus
from ..core.exceptions import DomainError
from ..enrollment.repository import EnrollmentRepository
from ..timetable.service import TimetableResolver

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    classes: int = 0
    created: int = 0
    skipped_existing: int = 0
    failed: int = 0
    stopped: bool = False

    @property
    def writes(self) -> int:
        return self.created


class AutoMarkService:
    """Creates a default Absent record for every enrolled student of every class in session.

    Each student is an independent unit: a domain or storage failure (lock wait
    timeout, deadlock) is logged and counted, and the sweep moves on. The stop
    event is checked between students so a shutdown never interrupts a write
    half way.
    """

    def __init__(
        self,
        ledger: AttendanceLedger,
        resolver: TimetableResolver,
        enrollments: EnrollmentRepository,
        *,
        clock: Clock | None = None,
        stop_event: Optional[threading.Event] = None,
    ):
        self._ledger = ledger
        self._resolver = resolver
        self._enrollments = enrollments
        self._clock = clock or SystemClock()
        self._stop = stop_event or threading.Event()

    @property
    def stop_event(self) -> threading.Event:
        return self._stop

    def auto_mark_ongoing_classes(self, now: datetime | None = None) -> SweepResult:
        now = as_utc(now or self._clock.now())
        today = now.date()
        result = SweepResult()

        for entry in self._resolver.list_ongoing(now):
            if self._stop.is_set():
                result.stopped = True
                break
            result.classes += 1

            students = self._enrollments.list_enrolled_students(
                course_id=entry.course_id, batch_id=entry.batch_id, section_id=entry.section_id
            )
            for student in students:
                if self._stop.is_set():
                    result.stopped = True
                    break
                try:
                    mark = self._ledger.create_if_absent(
                        student_id=student.student_id,
                        course_id=entry.course_id,
                        attendance_date=today,
                        status=AttendanceStatus.ABSENT,
                    )
                except (DomainError, mysql.connector.Error):
                    result.failed += 1
                    logger.warning(
                        "Auto-mark failed for student=%s course=%s date=%s",
                        student.student_id, entry.course_id, today, exc_info=True,
                    )
                    continue

                if mark.created:
                    result.created += 1
                else:
                    result.skipped_existing += 1

            if result.stopped:
                break

        if result.classes or result.stopped:
            logger.info(
                "Auto-mark sweep at %s: classes=%s created=%s skipped=%s failed=%s stopped=%s",
                now.isoformat(), result.classes, result.created, result.skipped_existing, result.failed, result.stopped,
            )
        return result

    def run_lock_sweep(self) -> int:
        return self._ledger.lock_old_attendances()
