from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Student
from .repository import EnrollmentRepository

_STUDENT_COLUMNS = "s.student_id, s.user_id, s.roll_number, s.full_name, s.department_id, s.batch_id, s.section_id"


def _to_student(r: dict) -> Student:
    return Student(
        student_id=int(r["student_id"]),
        user_id=str(r["user_id"]),
        roll_number=r["roll_number"],
        full_name=r["full_name"],
        department_id=int(r["department_id"]),
        batch_id=int(r["batch_id"]),
        section_id=int(r["section_id"]),
    )


class MySQLEnrollmentRepository(EnrollmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_student(self, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_STUDENT_COLUMNS} FROM students s WHERE s.student_id=%s", (int(student_id),))
            r = fetchone(cur)
            return _to_student(r) if r else None

    def course_exists(self, course_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS found FROM courses WHERE course_id=%s", (int(course_id),))
            return fetchone(cur) is not None

    def is_enrolled(self, *, student_id: int, course_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS found FROM enrollments WHERE student_id=%s AND course_id=%s",
                (int(student_id), int(course_id)),
            )
            return fetchone(cur) is not None

    def list_enrolled_students(self, *, course_id: int, batch_id: int, section_id: int) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_STUDENT_COLUMNS}
                FROM enrollments e
                JOIN students s ON s.student_id = e.student_id
                WHERE e.course_id=%s AND s.batch_id=%s AND s.section_id=%s
                ORDER BY s.roll_number ASC
                """,
                (int(course_id), int(batch_id), int(section_id)),
            )
            return [_to_student(r) for r in fetchall(cur)]
