from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..core.constants import DEFAULT_LOW_ATTENDANCE_THRESHOLD
from .calculator import AttendanceCalculator, StandardAttendanceCalculator


@dataclass(frozen=True)
class CourseBreakdown:
    course_id: int
    course_code: str
    course_name: str
    total: int
    present: int
    late: int
    absent: int
    percentage: float


@dataclass(frozen=True)
class StudentSummary:
    student_id: int
    courses: list[CourseBreakdown] = field(default_factory=list)
    overall_percentage: Optional[float] = None


@dataclass(frozen=True)
class LowAttendanceRow:
    student_id: int
    roll_number: str
    student_name: str
    course_id: int
    course_code: str
    course_name: str
    total: int
    attended: int
    percentage: float
    shortfall: int


class AttendanceReportService:
    """Read-side aggregation over the attendance ledger."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        calculator: Optional[AttendanceCalculator] = None,
        low_threshold: float = DEFAULT_LOW_ATTENDANCE_THRESHOLD,
    ):
        self._attendance = attendance
        self._calculator = calculator or StandardAttendanceCalculator()
        self._low_threshold = float(low_threshold)

    def get_student_attendance_percentage(self, student_id: int) -> dict[int, float]:
        """course_id -> percentage. Courses without records are absent from the map."""

        return {
            t.course_id: self._calculator.percentage(t)
            for t in self._attendance.tally_for_student(student_id=int(student_id))
            if t.total > 0
        }

    def build_student_summary(self, student_id: int) -> StudentSummary:
        courses = [
            CourseBreakdown(
                course_id=t.course_id,
                course_code=t.course_code,
                course_name=t.course_name,
                total=t.total,
                present=t.present,
                late=t.late,
                absent=t.absent,
                percentage=self._calculator.percentage(t),
            )
            for t in self._attendance.tally_for_student(student_id=int(student_id))
            if t.total > 0
        ]

        overall = None
        if courses:
            overall = round(sum(c.percentage for c in courses) / len(courses), 2)

        return StudentSummary(student_id=int(student_id), courses=courses, overall_percentage=overall)

    def find_low_attendance(
        self,
        *,
        course_id: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> list[LowAttendanceRow]:
        threshold = self._low_threshold if threshold is None else float(threshold)

        out: list[LowAttendanceRow] = []
        for t in self._attendance.tally_all(course_id=course_id):
            if t.total <= 0:
                continue
            pct = self._calculator.percentage(t)
            if pct >= threshold:
                continue
            out.append(
                LowAttendanceRow(
                    student_id=t.student_id,
                    roll_number=t.roll_number,
                    student_name=t.student_name,
                    course_id=t.course_id,
                    course_code=t.course_code,
                    course_name=t.course_name,
                    total=t.total,
                    attended=self._calculator.attended(t),
                    percentage=pct,
                    shortfall=self._calculator.shortfall(t, threshold),
                )
            )

        out.sort(key=lambda r: (r.percentage, r.course_code, r.roll_number))
        return out
