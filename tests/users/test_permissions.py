from __future__ import annotations

import pytest

from src.attendance_tracker.attendance_tracker.core.enums import AttendanceSource, AttendanceStatus, Role
from src.attendance_tracker.attendance_tracker.core.exceptions import AuthorizationError
from src.attendance_tracker.attendance_tracker.enrollment.model import Student
from src.attendance_tracker.attendance_tracker.users.model import SYSTEM_ACTOR, Actor
from src.attendance_tracker.attendance_tracker.users.permissions import can_annotate, can_mark, require_mark_permission

STUDENT = Student(
    student_id=1, user_id="stu-1", roll_number="R001", full_name="Student 1", department_id=1, batch_id=1, section_id=2
)
ADMIN = Actor(user_id="admin-1", role=Role.ADMIN)
TEACHER = Actor(user_id="t-7", role=Role.TEACHER, teacher_id=7)


def teaches(teacher_id, course_id, batch_id, section_id):
    return (teacher_id, course_id, batch_id, section_id) == (7, 10, 1, 2)


def _can(actor, *, course_id=10, status=AttendanceStatus.PRESENT, source=AttendanceSource.MANUAL, student=STUDENT):
    return can_mark(actor, student=student, course_id=course_id, status=status, source=source, teaches=teaches)


def test_admin_can_mark_anything():
    assert _can(ADMIN)
    assert _can(ADMIN, course_id=99, source=AttendanceSource.AUTO)


def test_teacher_limited_to_assigned_classes():
    assert _can(TEACHER)
    assert not _can(TEACHER, course_id=20)
    assert not _can(TEACHER, source=AttendanceSource.AUTO)
    assert not _can(Actor(user_id="t-x", role=Role.TEACHER))


def test_student_only_self_marks_present():
    me = Actor(user_id="stu-1", role=Role.STUDENT, student_id=1)
    other = Actor(user_id="stu-2", role=Role.STUDENT, student_id=2)

    assert _can(me, source=AttendanceSource.AUTO)
    assert not _can(me, source=AttendanceSource.MANUAL)
    assert not _can(me, status=AttendanceStatus.ABSENT, source=AttendanceSource.AUTO)
    assert not _can(other, source=AttendanceSource.AUTO)


def test_system_writes_auto_records_only():
    assert _can(SYSTEM_ACTOR, status=AttendanceStatus.ABSENT, source=AttendanceSource.AUTO, student=None)
    assert not _can(SYSTEM_ACTOR, source=AttendanceSource.MANUAL)


def test_require_mark_permission_raises():
    with pytest.raises(AuthorizationError):
        require_mark_permission(
            TEACHER, student=STUDENT, course_id=20,
            status=AttendanceStatus.PRESENT, source=AttendanceSource.MANUAL, teaches=teaches,
        )


def test_annotation_rights():
    assert can_annotate(ADMIN, student=STUDENT, course_id=20, teaches=teaches)
    assert can_annotate(TEACHER, student=STUDENT, course_id=10, teaches=teaches)
    assert not can_annotate(TEACHER, student=STUDENT, course_id=20, teaches=teaches)
    assert not can_annotate(Actor(user_id="stu-1", role=Role.STUDENT, student_id=1), student=STUDENT, course_id=10, teaches=teaches)
