from __future__ import annotations

from datetime import time
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time, translate_duplicate_key
from .model import TimetableEntry, TimetableSlotRow
from .repository import TimetableRepository

_ENTRY_COLUMNS = "t.timetable_id, t.course_id, t.teacher_id, t.batch_id, t.section_id, t.day_of_week, t.start_time, t.end_time"


def _to_entry(r: dict) -> TimetableEntry:
    return TimetableEntry(
        timetable_id=int(r["timetable_id"]),
        course_id=int(r["course_id"]),
        teacher_id=int(r["teacher_id"]),
        batch_id=int(r["batch_id"]),
        section_id=int(r["section_id"]),
        day_of_week=int(r["day_of_week"]),
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
    )


def _to_slot_row(r: dict) -> TimetableSlotRow:
    return TimetableSlotRow(
        entry=_to_entry(r),
        course_code=r["course_code"],
        course_name=r["course_name"],
        teacher_name=r.get("teacher_name"),
    )


class MySQLTimetableRepository(TimetableRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, timetable_id: int) -> Optional[TimetableEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_ENTRY_COLUMNS} FROM timetable_entries t WHERE t.timetable_id=%s", (int(timetable_id),))
            r = fetchone(cur)
            return _to_entry(r) if r else None

    def list_ongoing(
        self,
        *,
        day_of_week: int,
        at: time,
        batch_id: Optional[int] = None,
        section_id: Optional[int] = None,
    ) -> Sequence[TimetableEntry]:
        clauses = ["t.day_of_week=%s", "t.start_time <= %s", "t.end_time >= %s"]
        params: list[object] = [int(day_of_week), at, at]

        if batch_id is not None:
            clauses.append("t.batch_id=%s")
            params.append(int(batch_id))
        if section_id is not None:
            clauses.append("t.section_id=%s")
            params.append(int(section_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_ENTRY_COLUMNS}
                FROM timetable_entries t
                WHERE {where}
                ORDER BY t.start_time ASC, t.timetable_id ASC
                """,
                tuple(params),
            )
            return [_to_entry(r) for r in fetchall(cur)]

    def _list_slots(self, where: str, params: tuple) -> Sequence[TimetableSlotRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT
                    {_ENTRY_COLUMNS},
                    c.code AS course_code, c.name AS course_name,
                    te.full_name AS teacher_name
                FROM timetable_entries t
                JOIN courses c ON c.course_id = t.course_id
                LEFT JOIN teachers te ON te.teacher_id = t.teacher_id
                WHERE {where}
                ORDER BY t.day_of_week ASC, t.start_time ASC
                """,
                params,
            )
            return [_to_slot_row(r) for r in fetchall(cur)]

    def list_for_section(self, *, batch_id: int, section_id: int) -> Sequence[TimetableSlotRow]:
        return self._list_slots("t.batch_id=%s AND t.section_id=%s", (int(batch_id), int(section_id)))

    def list_for_teacher(self, *, teacher_id: int) -> Sequence[TimetableSlotRow]:
        return self._list_slots("t.teacher_id=%s", (int(teacher_id),))

    def teaches(self, *, teacher_id: int, course_id: int, batch_id: int, section_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS found
                FROM timetable_entries
                WHERE teacher_id=%s AND course_id=%s AND batch_id=%s AND section_id=%s
                LIMIT 1
                """,
                (int(teacher_id), int(course_id), int(batch_id), int(section_id)),
            )
            return fetchone(cur) is not None

    def create(
        self,
        *,
        course_id: int,
        teacher_id: int,
        batch_id: int,
        section_id: int,
        day_of_week: int,
        start_time: time,
        end_time: time,
    ) -> int:
        with translate_duplicate_key("Timetable slot already taken"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO timetable_entries(course_id, teacher_id, batch_id, section_id, day_of_week, start_time, end_time)
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (int(course_id), int(teacher_id), int(batch_id), int(section_id), int(day_of_week), start_time, end_time),
                )
                return int(cur.lastrowid)
