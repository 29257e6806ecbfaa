from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceSource, AttendanceStatus
from .model import AttendanceRecord, AttendanceRow, CourseTally


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_by_key(self, *, student_id: int, course_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def insert(
        self,
        *,
        student_id: int,
        course_id: int,
        attendance_date: date,
        status: AttendanceStatus,
        marked_by_user_id: str,
        marked_at: datetime,
        source: AttendanceSource,
        is_locked: bool,
    ) -> AttendanceRecord:
        """Create a record. Raises DuplicateKeyError if the key already exists."""

        raise NotImplementedError

    def update_marking(
        self,
        *,
        attendance_id: int,
        expected_version: int,
        status: AttendanceStatus,
        marked_by_user_id: str,
        marked_at: datetime,
        source: AttendanceSource,
    ) -> bool:
        """Overwrite attendance fields if the row is unlocked and still at expected_version.

        Returns False when another writer got there first or the row was locked meanwhile.
        """

        raise NotImplementedError

    def lock_through(self, cutoff: date) -> int:
        """Lock every unlocked record dated on or before cutoff. Returns rows changed."""

        raise NotImplementedError

    def set_remarks(self, *, attendance_id: int, remarks: Optional[str]) -> bool:
        raise NotImplementedError

    def list_for_student(
        self,
        *,
        student_id: int,
        course_id: Optional[int] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> Sequence[AttendanceRow]:
        """Newest first, then by course code."""

        raise NotImplementedError

    def list_for_course(self, *, course_id: int, attendance_date: date) -> Sequence[AttendanceRow]:
        """Ordered by roll number."""

        raise NotImplementedError

    def tally_for_student(self, *, student_id: int) -> Sequence[CourseTally]:
        raise NotImplementedError

    def tally_all(self, *, course_id: Optional[int] = None) -> Sequence[CourseTally]:
        raise NotImplementedError
