from __future__ import annotations

import logging
from datetime import datetime, time
from typing import Optional, Sequence

from ..common.datetime_utils import Clock, SystemClock, as_utc
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, DuplicateKeyError, NotFoundError, ValidationError
from ..enrollment.repository import EnrollmentRepository
from .model import TimetableEntry, TimetableSlotRow
from .repository import TimetableRepository

logger = logging.getLogger(__name__)


class TimetableResolver:
    """Finds which weekly slot is in session for a batch/section at a given instant.

    Overlapping slots (different start times, intersecting ranges) are not
    rejected at write time. When several match, the one with the earliest
    start_time wins, then the lowest timetable_id.
    """

    def __init__(self, timetable: TimetableRepository, enrollments: EnrollmentRepository, *, clock: Clock | None = None):
        self._timetable = timetable
        self._enrollments = enrollments
        self._clock = clock or SystemClock()

    def _now(self, now: Optional[datetime]) -> datetime:
        return as_utc(now or self._clock.now())

    def find_current_class(self, *, batch_id: int, section_id: int, now: datetime | None = None) -> Optional[TimetableEntry]:
        now = self._now(now)
        ongoing = self._timetable.list_ongoing(
            day_of_week=now.weekday(),
            at=now.time().replace(tzinfo=None),
            batch_id=batch_id,
            section_id=section_id,
        )
        if not ongoing:
            return None
        return min(ongoing, key=lambda e: (e.start_time, e.timetable_id))

    def find_current_class_for_student(self, student_id: int, *, now: datetime | None = None) -> Optional[TimetableEntry]:
        student = self._enrollments.get_student(int(student_id))
        if not student:
            raise NotFoundError(f"Student {student_id} not found")
        return self.find_current_class(batch_id=student.batch_id, section_id=student.section_id, now=now)

    def is_class_ongoing(self, student_id: int, *, now: datetime | None = None) -> bool:
        return self.find_current_class_for_student(student_id, now=now) is not None

    def list_ongoing(self, now: datetime | None = None) -> Sequence[TimetableEntry]:
        """All slots in session system-wide."""
        now = self._now(now)
        return self._timetable.list_ongoing(day_of_week=now.weekday(), at=now.time().replace(tzinfo=None))

    def get_student_timetable(self, student_id: int) -> Sequence[TimetableSlotRow]:
        student = self._enrollments.get_student(int(student_id))
        if not student:
            return []
        return self._timetable.list_for_section(batch_id=student.batch_id, section_id=student.section_id)

    def get_teacher_timetable(self, teacher_id: int) -> Sequence[TimetableSlotRow]:
        return self._timetable.list_for_teacher(teacher_id=int(teacher_id))

    def add_entry(
        self,
        *,
        current_role: Role,
        course_id: int,
        teacher_id: int,
        batch_id: int,
        section_id: int,
        day_of_week: int,
        start_time: time,
        end_time: time,
    ) -> int:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can edit the timetable")

        if not 0 <= int(day_of_week) <= 6:
            raise ValidationError("day_of_week must be between 0 (Monday) and 6 (Sunday)")
        if start_time >= end_time:
            raise ValidationError("start_time must be before end_time")
        if not self._enrollments.course_exists(int(course_id)):
            raise NotFoundError(f"Course {course_id} not found")

        try:
            return self._timetable.create(
                course_id=int(course_id),
                teacher_id=int(teacher_id),
                batch_id=int(batch_id),
                section_id=int(section_id),
                day_of_week=int(day_of_week),
                start_time=start_time,
                end_time=end_time,
            )
        except DuplicateKeyError:
            logger.info(
                "Rejected duplicate timetable slot batch=%s section=%s day=%s start=%s",
                batch_id, section_id, day_of_week, start_time,
            )
            raise ValidationError("A class already starts at that time for this batch and section")
