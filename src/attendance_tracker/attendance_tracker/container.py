from __future__ import annotations

from dataclasses import dataclass

from .attendance.factory import MarkStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceLedger
from .common.datetime_utils import Clock, SystemClock
from .core.constants import (
    DEFAULT_AUTO_MARK_INTERVAL_MINUTES,
    DEFAULT_EDIT_WINDOW_DAYS,
    DEFAULT_LOCK_SWEEP_HOUR_UTC,
    DEFAULT_LOW_ATTENDANCE_THRESHOLD,
)
from .database.connection import DBConfig, DatabaseConnection
from .enrollment.mysql_enrollment_repository import MySQLEnrollmentRepository
from .reports.service import AttendanceReportService
from .scheduler.auto_mark import AutoMarkService
from .scheduler.runner import SweepScheduler
from .timetable.mysql_timetable_repository import MySQLTimetableRepository
from .timetable.service import TimetableResolver


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    clock: Clock

    attendance_repo: MySQLAttendanceRepository
    enrollments_repo: MySQLEnrollmentRepository
    timetable_repo: MySQLTimetableRepository

    timetable_resolver: TimetableResolver
    attendance_ledger: AttendanceLedger
    report_service: AttendanceReportService
    auto_mark_service: AutoMarkService
    sweep_scheduler: SweepScheduler


def build_container(
    *,
    db_config: dict,
    edit_window_days: int = DEFAULT_EDIT_WINDOW_DAYS,
    auto_mark_interval_minutes: int = DEFAULT_AUTO_MARK_INTERVAL_MINUTES,
    lock_sweep_hour_utc: int = DEFAULT_LOCK_SWEEP_HOUR_UTC,
    low_attendance_threshold: float = DEFAULT_LOW_ATTENDANCE_THRESHOLD,
    clock: Clock | None = None,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    clock = clock or SystemClock()

    attendance_repo = MySQLAttendanceRepository(conn)
    enrollments_repo = MySQLEnrollmentRepository(conn)
    timetable_repo = MySQLTimetableRepository(conn)

    timetable_resolver = TimetableResolver(timetable_repo, enrollments_repo, clock=clock)
    attendance_ledger = AttendanceLedger(
        attendance_repo,
        enrollments_repo,
        timetable_repo,
        resolver=timetable_resolver,
        clock=clock,
        edit_window_days=edit_window_days,
        strategy_factory=MarkStrategyFactory(),
    )
    report_service = AttendanceReportService(attendance_repo, low_threshold=low_attendance_threshold)
    auto_mark_service = AutoMarkService(attendance_ledger, timetable_resolver, enrollments_repo, clock=clock)
    sweep_scheduler = SweepScheduler(
        auto_mark_service,
        interval_minutes=auto_mark_interval_minutes,
        lock_hour_utc=lock_sweep_hour_utc,
    )

    return Container(
        conn=conn,
        clock=clock,
        attendance_repo=attendance_repo,
        enrollments_repo=enrollments_repo,
        timetable_repo=timetable_repo,
        timetable_resolver=timetable_resolver,
        attendance_ledger=attendance_ledger,
        report_service=report_service,
        auto_mark_service=auto_mark_service,
        sweep_scheduler=sweep_scheduler,
    )
