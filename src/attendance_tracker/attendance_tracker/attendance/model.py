from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceSource, AttendanceStatus, MarkOutcome
from ..core.exceptions import LockedError


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one student's attendance for one course on one date.

    (student_id, course_id, attendance_date) is unique. Once is_locked is set,
    status/marked_by/marked_at/source never change again; remarks still may.
    """

    attendance_id: int
    student_id: int
    course_id: int
    attendance_date: date
    status: AttendanceStatus
    marked_by_user_id: str
    marked_at: datetime
    source: AttendanceSource
    is_locked: bool = False
    remarks: Optional[str] = None
    version: int = 1


@dataclass(frozen=True)
class MarkCommand:
    student_id: int
    course_id: int
    attendance_date: date
    status: AttendanceStatus
    marked_by_user_id: str
    source: AttendanceSource


@dataclass(frozen=True)
class MarkResult:
    outcome: MarkOutcome
    record: Optional[AttendanceRecord] = None
    error: Optional[LockedError] = None

    @property
    def ok(self) -> bool:
        return self.outcome != MarkOutcome.LOCKED

    @property
    def created(self) -> bool:
        return self.outcome == MarkOutcome.CREATED


@dataclass(frozen=True)
class AttendanceRow:
    """Read-model for listings and exports (joined with course and student)."""

    attendance_id: int
    student_id: int
    roll_number: str
    student_name: str
    course_id: int
    course_code: str
    course_name: str
    attendance_date: date
    status: AttendanceStatus
    source: AttendanceSource
    marked_by_user_id: str
    marked_at: datetime
    is_locked: bool
    remarks: Optional[str] = None


@dataclass(frozen=True)
class CourseTally:
    """Per (student, course) status counts, used by the percentage reports."""

    student_id: int
    course_id: int
    course_code: str
    course_name: str
    total: int
    present: int
    late: int
    absent: int
    roll_number: str = ""
    student_name: str = ""

    @property
    def attended(self) -> int:
        return self.present + self.late
