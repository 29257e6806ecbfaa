from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..common.datetime_utils import Clock, SystemClock, as_utc
from ..common.validators import optional_text, require_positive_id
from ..core.constants import DEFAULT_EDIT_WINDOW_DAYS, MAX_MARK_ATTEMPTS
from ..core.enums import AttendanceSource, AttendanceStatus, MarkMode, MarkOutcome, Role
from ..core.exceptions import AuthorizationError, ConcurrencyError, DuplicateKeyError, LockedError, NotFoundError
from ..enrollment.model import Student
from ..enrollment.repository import EnrollmentRepository
from ..timetable.repository import TimetableRepository
from ..timetable.service import TimetableResolver
from ..users.model import SYSTEM_ACTOR, Actor
from ..users.permissions import can_annotate, require_mark_permission
from .factory import MarkStrategyFactory
from .model import AttendanceRecord, AttendanceRow, MarkCommand, MarkResult
from .repository import AttendanceRepository
from .strategies.base import MarkAction

logger = logging.getLogger(__name__)


class AttendanceLedger:
    """Owns every mutation of attendance records.

    Writes are read-then-conditionally-write. Two guards keep concurrent callers
    on the same (student, course, date) honest: the unique index turns a racing
    insert into DuplicateKeyError (retried as an update), and updates carry the
    version they read so a lost race is retried against fresh state.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        enrollments: EnrollmentRepository,
        timetable: TimetableRepository,
        *,
        resolver: TimetableResolver | None = None,
        clock: Clock | None = None,
        edit_window_days: int = DEFAULT_EDIT_WINDOW_DAYS,
        strategy_factory: MarkStrategyFactory | None = None,
        max_attempts: int = MAX_MARK_ATTEMPTS,
    ):
        self._attendance = attendance
        self._enrollments = enrollments
        self._timetable = timetable
        self._clock = clock or SystemClock()
        self._resolver = resolver or TimetableResolver(timetable, enrollments, clock=self._clock)
        self._edit_window_days = int(edit_window_days)
        self._factory = strategy_factory or MarkStrategyFactory()
        self._max_attempts = max(1, int(max_attempts))

    @property
    def edit_window_days(self) -> int:
        return self._edit_window_days

    def _today(self) -> date:
        return as_utc(self._clock.now()).date()

    def _cutoff(self) -> date:
        return self._today() - timedelta(days=self._edit_window_days)

    def can_edit_attendance(self, on: date) -> bool:
        # Evaluated against the clock on every call; "today" moves.
        return on >= self._cutoff()

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def _teaches(self, teacher_id: int, course_id: int, batch_id: int, section_id: int) -> bool:
        return self._timetable.teaches(teacher_id=teacher_id, course_id=course_id, batch_id=batch_id, section_id=section_id)

    def _authorize(self, actor: Actor, command: MarkCommand) -> None:
        # The sweep only ever passes students it read from the enrollment join.
        if actor.role == Role.SYSTEM:
            require_mark_permission(
                actor, student=None, course_id=command.course_id,
                status=command.status, source=command.source, teaches=self._teaches,
            )
            return

        student = self._load_student(command.student_id)
        if not self._enrollments.course_exists(command.course_id):
            raise NotFoundError(f"Course {command.course_id} not found")

        require_mark_permission(
            actor, student=student, course_id=command.course_id,
            status=command.status, source=command.source, teaches=self._teaches,
        )
        # Runs after the permission check; a refused caller never learns who is enrolled.
        if not self._enrollments.is_enrolled(student_id=student.student_id, course_id=command.course_id):
            raise NotFoundError(f"Student {student.student_id} is not enrolled in course {command.course_id}")

    def _load_student(self, student_id: int) -> Student:
        student = self._enrollments.get_student(int(student_id))
        if not student:
            raise NotFoundError(f"Student {student_id} not found")
        return student

    def mark_attendance(
        self,
        *,
        student_id: int,
        course_id: int,
        attendance_date: date,
        status: AttendanceStatus,
        marked_by_user_id: str,
        source: AttendanceSource,
        mode: MarkMode = MarkMode.UPSERT,
        actor: Actor | None = None,
    ) -> MarkResult:
        """Create or update one record.

        A locked record is reported through MarkResult(outcome=LOCKED, error=LockedError)
        and is left untouched. Passing an actor runs the permission check first.
        """

        command = MarkCommand(
            student_id=require_positive_id(student_id, "student_id"),
            course_id=require_positive_id(course_id, "course_id"),
            attendance_date=attendance_date,
            status=AttendanceStatus(status),
            marked_by_user_id=str(marked_by_user_id),
            source=AttendanceSource(source),
        )
        if actor is not None:
            self._authorize(actor, command)
        return self._apply(command, mode)

    def upsert_manual(
        self,
        *,
        actor: Actor,
        student_id: int,
        course_id: int,
        attendance_date: date,
        status: AttendanceStatus,
    ) -> MarkResult:
        """Teacher/admin correction."""
        return self.mark_attendance(
            student_id=student_id,
            course_id=course_id,
            attendance_date=attendance_date,
            status=status,
            marked_by_user_id=actor.user_id,
            source=AttendanceSource.MANUAL,
            mode=MarkMode.UPSERT,
            actor=actor,
        )

    def create_if_absent(
        self,
        *,
        student_id: int,
        course_id: int,
        attendance_date: date,
        status: AttendanceStatus = AttendanceStatus.ABSENT,
        actor: Actor = SYSTEM_ACTOR,
    ) -> MarkResult:
        """Auto-mark write: never touches an existing record."""
        return self.mark_attendance(
            student_id=student_id,
            course_id=course_id,
            attendance_date=attendance_date,
            status=status,
            marked_by_user_id=actor.user_id,
            source=AttendanceSource.AUTO,
            mode=MarkMode.CREATE_ONLY,
            actor=actor,
        )

    def self_mark(self, actor: Actor, *, now: datetime | None = None) -> MarkResult:
        """Student marks themselves Present for the class currently in session."""

        if actor.role != Role.STUDENT or actor.student_id is None:
            raise AuthorizationError("Only students can self-mark attendance")

        now = as_utc(now or self._clock.now())
        current = self._resolver.find_current_class_for_student(actor.student_id, now=now)
        if current is None:
            raise NotFoundError("No ongoing class found for self-marking")

        return self.mark_attendance(
            student_id=actor.student_id,
            course_id=current.course_id,
            attendance_date=now.date(),
            status=AttendanceStatus.PRESENT,
            marked_by_user_id=actor.user_id,
            source=AttendanceSource.AUTO,
            mode=MarkMode.UPSERT,
            actor=actor,
        )

    def _apply(self, command: MarkCommand, mode: MarkMode) -> MarkResult:
        strategy = self._factory.for_mode(mode)

        for attempt in range(1, self._max_attempts + 1):
            existing = self._attendance.get_by_key(
                student_id=command.student_id,
                course_id=command.course_id,
                attendance_date=command.attendance_date,
            )
            decision = strategy.decide(existing=existing, command=command)

            if decision.action == MarkAction.KEEP:
                return MarkResult(MarkOutcome.UNCHANGED_EXISTING, record=existing)

            if decision.action == MarkAction.REJECT_LOCKED:
                logger.info(
                    "Rejected edit of locked attendance student=%s course=%s date=%s",
                    command.student_id, command.course_id, command.attendance_date,
                )
                return MarkResult(
                    MarkOutcome.LOCKED,
                    record=existing,
                    error=LockedError(command.student_id, command.course_id, command.attendance_date),
                )

            marked_at = self._clock.now()

            if decision.action == MarkAction.CREATE:
                try:
                    record = self._attendance.insert(
                        student_id=command.student_id,
                        course_id=command.course_id,
                        attendance_date=command.attendance_date,
                        status=command.status,
                        marked_by_user_id=command.marked_by_user_id,
                        marked_at=marked_at,
                        source=command.source,
                        # A backfill older than the edit window is born locked.
                        is_locked=not self.can_edit_attendance(command.attendance_date),
                    )
                except DuplicateKeyError:
                    logger.debug(
                        "Concurrent insert for student=%s course=%s date=%s, retrying as update (attempt %s)",
                        command.student_id, command.course_id, command.attendance_date, attempt,
                    )
                    continue
                return MarkResult(MarkOutcome.CREATED, record=record)

            updated = self._attendance.update_marking(
                attendance_id=existing.attendance_id,
                expected_version=existing.version,
                status=command.status,
                marked_by_user_id=command.marked_by_user_id,
                marked_at=marked_at,
                source=command.source,
            )
            if updated:
                return MarkResult(
                    MarkOutcome.UPDATED,
                    record=replace(
                        existing,
                        status=command.status,
                        marked_by_user_id=command.marked_by_user_id,
                        marked_at=marked_at,
                        source=command.source,
                        version=existing.version + 1,
                    ),
                )
            logger.debug(
                "Stale version %s for attendance %s, re-reading (attempt %s)",
                existing.version, existing.attendance_id, attempt,
            )

        raise ConcurrencyError(
            f"Could not mark student {command.student_id} for course {command.course_id} "
            f"on {command.attendance_date} after {self._max_attempts} attempts"
        )

    def add_remarks(self, *, actor: Actor, attendance_id: int, remarks: str) -> AttendanceRecord:
        """Append remarks. Allowed on locked records; attendance fields stay as they are."""

        text = optional_text(remarks)
        if text is None:
            return self._require_record(attendance_id)

        record = self._require_record(attendance_id)
        student = self._enrollments.get_student(record.student_id)
        if not can_annotate(actor, student=student, course_id=record.course_id, teaches=self._teaches):
            raise AuthorizationError("You are not allowed to annotate this record")

        combined = f"{record.remarks}\n{text}" if record.remarks else text
        self._attendance.set_remarks(attendance_id=record.attendance_id, remarks=combined)
        return replace(record, remarks=combined)

    def _require_record(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise NotFoundError(f"Attendance record {attendance_id} not found")
        return record

    def lock_old_attendances(self) -> int:
        """Freeze every unlocked record dated on or before today - edit window."""

        cutoff = self._cutoff()
        locked = self._attendance.lock_through(cutoff)
        logger.info("Lock sweep through %s locked %s record(s)", cutoff, locked)
        return locked

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def get_student_attendance(
        self,
        student_id: int,
        *,
        course_id: Optional[int] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> Sequence[AttendanceRow]:
        return self._attendance.list_for_student(
            student_id=int(student_id), course_id=course_id, from_date=from_date, to_date=to_date
        )

    def get_course_attendance(self, course_id: int, on: date) -> Sequence[AttendanceRow]:
        return self._attendance.list_for_course(course_id=int(course_id), attendance_date=on)
