from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Student:
    """Domain entity: a student placed in one batch and section."""

    student_id: int
    user_id: str
    roll_number: str
    full_name: str
    department_id: int
    batch_id: int
    section_id: int


@dataclass(frozen=True)
class Enrollment:
    enrollment_id: int
    student_id: int
    course_id: int
