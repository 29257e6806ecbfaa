from __future__ import annotations

from datetime import date, timedelta

import pytest

from src.attendance_tracker.attendance_tracker.attendance.model import CourseTally
from src.attendance_tracker.attendance_tracker.core.enums import AttendanceStatus
from src.attendance_tracker.attendance_tracker.reports.calculator import StandardAttendanceCalculator
from src.attendance_tracker.attendance_tracker.reports.service import AttendanceReportService

from tests.fakes import InMemoryAttendance, InMemoryEnrollments, make_record

START = date(2026, 2, 2)


def _seed(attendance, *, student_id, course_id, present=0, late=0, absent=0, first_id=1):
    statuses = [AttendanceStatus.PRESENT] * present + [AttendanceStatus.LATE] * late + [AttendanceStatus.ABSENT] * absent
    for i, status in enumerate(statuses):
        attendance.put(
            make_record(
                attendance_id=first_id + i,
                student_id=student_id,
                course_id=course_id,
                on=START + timedelta(days=i),
                status=status,
            )
        )
    return first_id + len(statuses)


@pytest.fixture()
def setup():
    enrollments = InMemoryEnrollments()
    enrollments.add_course(10, "CS101", "Programming")
    enrollments.add_course(20, "MA101", "Calculus")
    enrollments.add_course(30, "PH101", "Physics")
    enrollments.add_student(1)
    enrollments.add_student(2)
    attendance = InMemoryAttendance(enrollments)
    return attendance, AttendanceReportService(attendance, low_threshold=75.0)


def test_late_counts_as_attended(setup):
    attendance, reports = setup
    _seed(attendance, student_id=1, course_id=10, present=7, late=1, absent=2)

    assert reports.get_student_attendance_percentage(1) == {10: 80.0}


def test_courses_without_records_are_left_out(setup):
    attendance, reports = setup
    _seed(attendance, student_id=1, course_id=10, present=1)

    percentages = reports.get_student_attendance_percentage(1)

    assert 20 not in percentages
    assert 30 not in percentages
    assert reports.get_student_attendance_percentage(2) == {}


def test_summary_averages_course_percentages(setup):
    attendance, reports = setup
    next_id = _seed(attendance, student_id=1, course_id=10, present=3, absent=1)
    _seed(attendance, student_id=1, course_id=20, present=1, absent=1, first_id=next_id)

    summary = reports.build_student_summary(1)

    assert [c.course_code for c in summary.courses] == ["CS101", "MA101"]
    assert [c.percentage for c in summary.courses] == [75.0, 50.0]
    assert summary.overall_percentage == 62.5


def test_summary_for_student_without_records(setup):
    _, reports = setup

    summary = reports.build_student_summary(2)

    assert summary.courses == []
    assert summary.overall_percentage is None


def test_low_attendance_lists_shortfall(setup):
    attendance, reports = setup
    next_id = _seed(attendance, student_id=1, course_id=10, present=5, absent=5)
    _seed(attendance, student_id=2, course_id=10, present=8, late=1, absent=1, first_id=next_id)

    rows = reports.find_low_attendance(course_id=10)

    assert len(rows) == 1
    row = rows[0]
    assert row.student_id == 1
    assert row.attended == 5
    assert row.percentage == 50.0
    # ceil(10 * 0.75) = 8 classes needed.
    assert row.shortfall == 3


def test_low_attendance_threshold_override(setup):
    attendance, reports = setup
    _seed(attendance, student_id=2, course_id=10, present=8, late=1, absent=1)

    assert reports.find_low_attendance(threshold=95.0)[0].shortfall == 1
    assert reports.find_low_attendance(threshold=90.0) == []


def test_calculator_handles_empty_tally():
    tally = CourseTally(student_id=1, course_id=10, course_code="CS101", course_name="", total=0, present=0, late=0, absent=0)

    assert StandardAttendanceCalculator().percentage(tally) == 0.0
