from __future__ import annotations

from datetime import date, datetime, time, timedelta

import pytest

from src.attendance_tracker.attendance_tracker.attendance.service import AttendanceLedger
from src.attendance_tracker.attendance_tracker.common.datetime_utils import FixedClock
from src.attendance_tracker.attendance_tracker.core.enums import AttendanceSource, AttendanceStatus, MarkOutcome, Role
from src.attendance_tracker.attendance_tracker.core.exceptions import AuthorizationError, LockedError, NotFoundError
from src.attendance_tracker.attendance_tracker.users.model import Actor

from tests.fakes import InMemoryAttendance, InMemoryEnrollments, InMemoryTimetable, make_record

MONDAY = date(2026, 2, 2)
COURSE_A = 10
COURSE_B = 20

ADMIN = Actor(user_id="admin-1", role=Role.ADMIN)
TEACHER = Actor(user_id="teacher-7", role=Role.TEACHER, teacher_id=7)
OTHER_TEACHER = Actor(user_id="teacher-8", role=Role.TEACHER, teacher_id=8)


def build(*, now: datetime = datetime(2026, 2, 2, 9, 30), edit_window_days: int = 2):
    enrollments = InMemoryEnrollments()
    enrollments.add_course(COURSE_A, "CS101", "Programming")
    enrollments.add_course(COURSE_B, "MA101", "Calculus")
    enrollments.add_student(1, roll="R002")
    enrollments.add_student(2, roll="R001")
    enrollments.add_student(3, batch_id=2, section_id=1, roll="R100")
    # Sits in the class's batch and section without taking CS101.
    enrollments.add_student(4, roll="R004")
    for sid in (1, 2):
        enrollments.enroll(sid, COURSE_A)
    enrollments.enroll(1, COURSE_B)

    timetable = InMemoryTimetable(enrollments.courses)
    timetable.add(course_id=COURSE_A, day_of_week=0, start=time(9, 0), end=time(10, 30), teacher_id=7)
    timetable.add(course_id=COURSE_B, day_of_week=0, start=time(11, 0), end=time(12, 0), teacher_id=8)

    attendance = InMemoryAttendance(enrollments)
    clock = FixedClock(now)
    ledger = AttendanceLedger(attendance, enrollments, timetable, clock=clock, edit_window_days=edit_window_days)
    return ledger, attendance, clock


def test_manual_mark_creates_unlocked_record():
    ledger, attendance, _ = build()

    result = ledger.upsert_manual(actor=TEACHER, student_id=1, course_id=COURSE_A, attendance_date=MONDAY, status=AttendanceStatus.PRESENT)

    assert result.outcome == MarkOutcome.CREATED
    assert result.ok
    rec = attendance.get_by_key(student_id=1, course_id=COURSE_A, attendance_date=MONDAY)
    assert rec.status == AttendanceStatus.PRESENT
    assert rec.source == AttendanceSource.MANUAL
    assert rec.marked_by_user_id == "teacher-7"
    assert rec.is_locked is False


def test_marking_twice_with_same_arguments_is_idempotent():
    ledger, attendance, _ = build()
    kwargs = dict(actor=TEACHER, student_id=1, course_id=COURSE_A, attendance_date=MONDAY, status=AttendanceStatus.LATE)

    ledger.upsert_manual(**kwargs)
    once = attendance.records
    second = ledger.upsert_manual(**kwargs)

    assert second.ok
    assert attendance.records == once


def test_unlocked_record_is_overwritten():
    ledger, attendance, _ = build()
    ledger.create_if_absent(student_id=1, course_id=COURSE_A, attendance_date=MONDAY)

    result = ledger.upsert_manual(actor=TEACHER, student_id=1, course_id=COURSE_A, attendance_date=MONDAY, status=AttendanceStatus.PRESENT)

    assert result.outcome == MarkOutcome.UPDATED
    rec = attendance.get_by_key(student_id=1, course_id=COURSE_A, attendance_date=MONDAY)
    assert rec.status == AttendanceStatus.PRESENT
    assert rec.source == AttendanceSource.MANUAL
    assert rec.version == 2
    assert result.record == rec


def test_backfill_older_than_window_is_born_locked():
    ledger, attendance, _ = build()
    old = MONDAY - timedelta(days=3)

    result = ledger.upsert_manual(actor=ADMIN, student_id=1, course_id=COURSE_A, attendance_date=old, status=AttendanceStatus.PRESENT)

    assert result.outcome == MarkOutcome.CREATED
    assert attendance.get_by_key(student_id=1, course_id=COURSE_A, attendance_date=old).is_locked is True


def test_lock_sweep_then_mark_reports_locked_without_raising():
    ledger, attendance, clock = build()
    ledger.upsert_manual(actor=TEACHER, student_id=1, course_id=COURSE_A, attendance_date=MONDAY, status=AttendanceStatus.ABSENT)

    clock.advance(days=3)
    assert ledger.lock_old_attendances() == 1

    result = ledger.upsert_manual(actor=TEACHER, student_id=1, course_id=COURSE_A, attendance_date=MONDAY, status=AttendanceStatus.PRESENT)

    assert result.outcome == MarkOutcome.LOCKED
    assert not result.ok
    assert isinstance(result.error, LockedError)
    rec = attendance.get_by_key(student_id=1, course_id=COURSE_A, attendance_date=MONDAY)
    assert rec.status == AttendanceStatus.ABSENT
    assert rec.version == 1


def test_lock_sweep_is_idempotent():
    ledger, _, clock = build()
    ledger.upsert_manual(actor=TEACHER, student_id=1, course_id=COURSE_A, attendance_date=MONDAY, status=AttendanceStatus.ABSENT)
    ledger.upsert_manual(actor=TEACHER, student_id=2, course_id=COURSE_A, attendance_date=MONDAY, status=AttendanceStatus.PRESENT)
    clock.advance(days=2)

    assert ledger.lock_old_attendances() == 2
    assert ledger.lock_old_attendances() == 0


def test_lock_sweep_leaves_recent_records_alone():
    ledger, attendance, clock = build()
    ledger.upsert_manual(actor=TEACHER, student_id=1, course_id=COURSE_A, attendance_date=MONDAY, status=AttendanceStatus.ABSENT)
    clock.advance(days=1)

    assert ledger.lock_old_attendances() == 0
    assert attendance.get_by_key(student_id=1, course_id=COURSE_A, attendance_date=MONDAY).is_locked is False


def test_can_edit_window_boundaries():
    ledger, _, _ = build(edit_window_days=2)

    assert ledger.can_edit_attendance(MONDAY)
    assert ledger.can_edit_attendance(MONDAY - timedelta(days=2))
    assert not ledger.can_edit_attendance(MONDAY - timedelta(days=3))
    assert ledger.can_edit_attendance(MONDAY + timedelta(days=5))


def test_can_edit_is_monotonic_as_time_passes():
    ledger, _, clock = build()
    day = MONDAY - timedelta(days=1)

    seen = []
    for _ in range(6):
        seen.append(ledger.can_edit_attendance(day))
        clock.advance(days=1)

    first_false = seen.index(False)
    assert all(v is False for v in seen[first_false:])
    assert all(v is True for v in seen[:first_false])


def test_create_if_absent_never_touches_existing_record():
    ledger, attendance, _ = build()
    attendance.put(make_record(attendance_id=1, student_id=1, course_id=COURSE_A, on=MONDAY, status=AttendanceStatus.PRESENT, source=AttendanceSource.AUTO))
    attendance.put(make_record(attendance_id=2, student_id=2, course_id=COURSE_A, on=MONDAY, status=AttendanceStatus.LATE, is_locked=True))

    first = ledger.create_if_absent(student_id=1, course_id=COURSE_A, attendance_date=MONDAY)
    second = ledger.create_if_absent(student_id=2, course_id=COURSE_A, attendance_date=MONDAY)

    assert first.outcome == MarkOutcome.UNCHANGED_EXISTING
    assert second.outcome == MarkOutcome.UNCHANGED_EXISTING
    assert attendance.get_by_key(student_id=1, course_id=COURSE_A, attendance_date=MONDAY).status == AttendanceStatus.PRESENT
    assert attendance.get_by_key(student_id=2, course_id=COURSE_A, attendance_date=MONDAY).status == AttendanceStatus.LATE
    assert attendance.update_calls == 0


def test_teacher_cannot_mark_sections_they_do_not_teach():
    ledger, attendance, _ = build()

    with pytest.raises(AuthorizationError):
        ledger.upsert_manual(actor=OTHER_TEACHER, student_id=1, course_id=COURSE_A, attendance_date=MONDAY, status=AttendanceStatus.PRESENT)

    # Student 3 sits in batch 2, which teacher 7 has no slot for.
    with pytest.raises(AuthorizationError):
        ledger.upsert_manual(actor=TEACHER, student_id=3, course_id=COURSE_A, attendance_date=MONDAY, status=AttendanceStatus.PRESENT)

    assert attendance.records == []


def test_unknown_student_or_course_is_not_found():
    ledger, _, _ = build()

    with pytest.raises(NotFoundError):
        ledger.upsert_manual(actor=ADMIN, student_id=99, course_id=COURSE_A, attendance_date=MONDAY, status=AttendanceStatus.PRESENT)
    with pytest.raises(NotFoundError):
        ledger.upsert_manual(actor=ADMIN, student_id=1, course_id=999, attendance_date=MONDAY, status=AttendanceStatus.PRESENT)


def test_marking_requires_enrollment_in_the_course():
    ledger, attendance, _ = build()

    with pytest.raises(NotFoundError, match="not enrolled"):
        ledger.upsert_manual(actor=TEACHER, student_id=4, course_id=COURSE_A, attendance_date=MONDAY, status=AttendanceStatus.PRESENT)
    with pytest.raises(NotFoundError, match="not enrolled"):
        ledger.upsert_manual(actor=ADMIN, student_id=2, course_id=COURSE_B, attendance_date=MONDAY, status=AttendanceStatus.ABSENT)

    assert attendance.records == []
    assert ledger.get_student_attendance(4) == []


def test_self_mark_into_unenrolled_class_is_refused():
    # MA101 runs for the section at 11:30, but student 2 only takes CS101.
    ledger, attendance, _ = build(now=datetime(2026, 2, 2, 11, 30))
    student = Actor(user_id="stu-2", role=Role.STUDENT, student_id=2)

    with pytest.raises(NotFoundError):
        ledger.self_mark(student)
    assert attendance.records == []


def test_self_mark_overrides_auto_absent_during_class():
    ledger, attendance, _ = build(now=datetime(2026, 2, 2, 9, 45))
    ledger.create_if_absent(student_id=1, course_id=COURSE_A, attendance_date=MONDAY)
    student = Actor(user_id="stu-1", role=Role.STUDENT, student_id=1)

    result = ledger.self_mark(student)

    assert result.outcome == MarkOutcome.UPDATED
    rec = attendance.get_by_key(student_id=1, course_id=COURSE_A, attendance_date=MONDAY)
    assert rec.status == AttendanceStatus.PRESENT
    assert rec.source == AttendanceSource.AUTO
    assert rec.marked_by_user_id == "stu-1"


def test_self_mark_without_ongoing_class_is_not_found():
    ledger, attendance, _ = build(now=datetime(2026, 2, 2, 10, 45))
    student = Actor(user_id="stu-1", role=Role.STUDENT, student_id=1)

    with pytest.raises(NotFoundError):
        ledger.self_mark(student)
    assert attendance.records == []


def test_self_mark_is_for_students_only():
    ledger, _, _ = build()

    with pytest.raises(AuthorizationError):
        ledger.self_mark(TEACHER)


def test_student_cannot_mark_someone_else():
    ledger, _, _ = build()
    student = Actor(user_id="stu-1", role=Role.STUDENT, student_id=1)

    with pytest.raises(AuthorizationError):
        ledger.mark_attendance(
            student_id=2,
            course_id=COURSE_A,
            attendance_date=MONDAY,
            status=AttendanceStatus.PRESENT,
            marked_by_user_id="stu-1",
            source=AttendanceSource.AUTO,
            actor=student,
        )


def test_remarks_can_be_appended_to_locked_record():
    ledger, attendance, _ = build()
    attendance.put(make_record(attendance_id=5, student_id=1, course_id=COURSE_A, on=MONDAY, status=AttendanceStatus.ABSENT, is_locked=True))

    ledger.add_remarks(actor=TEACHER, attendance_id=5, remarks="Medical certificate submitted")
    updated = ledger.add_remarks(actor=ADMIN, attendance_id=5, remarks="Verified")

    assert updated.remarks == "Medical certificate submitted\nVerified"
    rec = attendance.get_by_id(5)
    assert rec.remarks == "Medical certificate submitted\nVerified"
    assert rec.status == AttendanceStatus.ABSENT
    assert rec.is_locked is True


def test_remarks_need_teacher_of_the_class():
    ledger, attendance, _ = build()
    attendance.put(make_record(attendance_id=5, student_id=1, course_id=COURSE_A, on=MONDAY, status=AttendanceStatus.ABSENT))

    with pytest.raises(AuthorizationError):
        ledger.add_remarks(actor=OTHER_TEACHER, attendance_id=5, remarks="note")
    with pytest.raises(NotFoundError):
        ledger.add_remarks(actor=ADMIN, attendance_id=404, remarks="note")


def test_read_models_are_ordered():
    ledger, attendance, _ = build()
    for sid in (1, 2):
        ledger.upsert_manual(actor=TEACHER, student_id=sid, course_id=COURSE_A, attendance_date=MONDAY, status=AttendanceStatus.PRESENT)
    ledger.upsert_manual(actor=ADMIN, student_id=1, course_id=COURSE_B, attendance_date=MONDAY, status=AttendanceStatus.ABSENT)
    ledger.upsert_manual(actor=ADMIN, student_id=1, course_id=COURSE_A, attendance_date=MONDAY - timedelta(days=1), status=AttendanceStatus.LATE)

    rows = ledger.get_student_attendance(1)
    assert [(r.attendance_date, r.course_code) for r in rows] == [
        (MONDAY, "CS101"),
        (MONDAY, "MA101"),
        (MONDAY - timedelta(days=1), "CS101"),
    ]

    only_a = ledger.get_student_attendance(1, course_id=COURSE_A, from_date=MONDAY)
    assert len(only_a) == 1

    course_rows = ledger.get_course_attendance(COURSE_A, MONDAY)
    assert [r.roll_number for r in course_rows] == ["R001", "R002"]
