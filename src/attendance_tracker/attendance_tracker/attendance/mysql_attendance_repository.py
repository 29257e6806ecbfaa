from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import as_utc
from ..core.enums import AttendanceSource, AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, translate_duplicate_key
from .model import AttendanceRecord, AttendanceRow, CourseTally
from .repository import AttendanceRepository

_RECORD_COLUMNS = (
    "ar.attendance_id, ar.student_id, ar.course_id, ar.attendance_date, ar.status, "
    "ar.marked_by_user_id, ar.marked_at, ar.source, ar.is_locked, ar.remarks, ar.version"
)

_ROW_SELECT = f"""
    SELECT
        {_RECORD_COLUMNS},
        s.roll_number, s.full_name AS student_name,
        c.code AS course_code, c.name AS course_name
    FROM attendance_records ar
    JOIN students s ON s.student_id = ar.student_id
    JOIN courses c ON c.course_id = ar.course_id
"""

_TALLY_SELECT = """
    SELECT
        ar.student_id, ar.course_id,
        c.code AS course_code, c.name AS course_name,
        s.roll_number, s.full_name AS student_name,
        COUNT(*) AS total,
        SUM(ar.status = 'PRESENT') AS present,
        SUM(ar.status = 'LATE') AS late,
        SUM(ar.status = 'ABSENT') AS absent
    FROM attendance_records ar
    JOIN courses c ON c.course_id = ar.course_id
    JOIN students s ON s.student_id = ar.student_id
"""


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        student_id=int(r["student_id"]),
        course_id=int(r["course_id"]),
        attendance_date=r["attendance_date"],
        status=AttendanceStatus(r["status"]),
        marked_by_user_id=str(r["marked_by_user_id"]),
        marked_at=r["marked_at"],
        source=AttendanceSource(r["source"]),
        is_locked=bool(r["is_locked"]),
        remarks=r.get("remarks"),
        version=int(r["version"]),
    )


def _to_row(r: dict) -> AttendanceRow:
    return AttendanceRow(
        attendance_id=int(r["attendance_id"]),
        student_id=int(r["student_id"]),
        roll_number=r["roll_number"],
        student_name=r["student_name"],
        course_id=int(r["course_id"]),
        course_code=r["course_code"],
        course_name=r["course_name"],
        attendance_date=r["attendance_date"],
        status=AttendanceStatus(r["status"]),
        source=AttendanceSource(r["source"]),
        marked_by_user_id=str(r["marked_by_user_id"]),
        marked_at=r["marked_at"],
        is_locked=bool(r["is_locked"]),
        remarks=r.get("remarks"),
    )


def _to_tally(r: dict) -> CourseTally:
    return CourseTally(
        student_id=int(r["student_id"]),
        course_id=int(r["course_id"]),
        course_code=r["course_code"],
        course_name=r["course_name"],
        total=int(r["total"] or 0),
        present=int(r["present"] or 0),
        late=int(r["late"] or 0),
        absent=int(r["absent"] or 0),
        roll_number=r.get("roll_number") or "",
        student_name=r.get("student_name") or "",
    )


def _naive_utc(value: datetime) -> datetime:
    # DATETIME columns carry no zone; everything stored is UTC.
    return as_utc(value).replace(tzinfo=None)


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records ar WHERE ar.attendance_id=%s",
                (int(attendance_id),),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_by_key(self, *, student_id: int, course_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance_records ar
                WHERE ar.student_id=%s AND ar.course_id=%s AND ar.attendance_date=%s
                """,
                (int(student_id), int(course_id), attendance_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

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
        with translate_duplicate_key("Attendance already recorded for this student, course and date"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        student_id, course_id, attendance_date, status,
                        marked_by_user_id, marked_at, source, is_locked, version
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,1)
                    """,
                    (
                        int(student_id),
                        int(course_id),
                        attendance_date,
                        status.value,
                        marked_by_user_id,
                        _naive_utc(marked_at),
                        source.value,
                        1 if is_locked else 0,
                    ),
                )
                attendance_id = int(cur.lastrowid)

        return AttendanceRecord(
            attendance_id=attendance_id,
            student_id=int(student_id),
            course_id=int(course_id),
            attendance_date=attendance_date,
            status=status,
            marked_by_user_id=marked_by_user_id,
            marked_at=marked_at,
            source=source,
            is_locked=bool(is_locked),
        )

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s, marked_by_user_id=%s, marked_at=%s, source=%s, version=version + 1
                WHERE attendance_id=%s AND version=%s AND is_locked=0
                """,
                (status.value, marked_by_user_id, _naive_utc(marked_at), source.value, int(attendance_id), int(expected_version)),
            )
            return cur.rowcount > 0

    def lock_through(self, cutoff: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance_records SET is_locked=1 WHERE is_locked=0 AND attendance_date <= %s",
                (cutoff,),
            )
            return int(cur.rowcount)

    def set_remarks(self, *, attendance_id: int, remarks: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance_records SET remarks=%s WHERE attendance_id=%s",
                (remarks, int(attendance_id)),
            )
            return cur.rowcount > 0

    def list_for_student(
        self,
        *,
        student_id: int,
        course_id: Optional[int] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> Sequence[AttendanceRow]:
        clauses = ["ar.student_id=%s"]
        params: list[object] = [int(student_id)]

        if course_id is not None:
            clauses.append("ar.course_id=%s")
            params.append(int(course_id))
        if from_date is not None:
            clauses.append("ar.attendance_date >= %s")
            params.append(from_date)
        if to_date is not None:
            clauses.append("ar.attendance_date <= %s")
            params.append(to_date)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_ROW_SELECT} WHERE {where} ORDER BY ar.attendance_date DESC, c.code ASC",
                tuple(params),
            )
            return [_to_row(r) for r in fetchall(cur)]

    def list_for_course(self, *, course_id: int, attendance_date: date) -> Sequence[AttendanceRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_ROW_SELECT} WHERE ar.course_id=%s AND ar.attendance_date=%s ORDER BY s.roll_number ASC",
                (int(course_id), attendance_date),
            )
            return [_to_row(r) for r in fetchall(cur)]

    def tally_for_student(self, *, student_id: int) -> Sequence[CourseTally]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_TALLY_SELECT}
                WHERE ar.student_id=%s
                GROUP BY ar.student_id, ar.course_id, c.code, c.name, s.roll_number, s.full_name
                ORDER BY c.code ASC
                """,
                (int(student_id),),
            )
            return [_to_tally(r) for r in fetchall(cur)]

    def tally_all(self, *, course_id: Optional[int] = None) -> Sequence[CourseTally]:
        where = ""
        params: tuple = ()
        if course_id is not None:
            where = "WHERE ar.course_id=%s"
            params = (int(course_id),)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_TALLY_SELECT}
                {where}
                GROUP BY ar.student_id, ar.course_id, c.code, c.name, s.roll_number, s.full_name
                ORDER BY c.code ASC, s.roll_number ASC
                """,
                params,
            )
            return [_to_tally(r) for r in fetchall(cur)]
