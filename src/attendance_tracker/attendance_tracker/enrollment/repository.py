from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Student


class EnrollmentRepository(Protocol):
    """Read-only access to students and their course enrollments."""

    def get_student(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def course_exists(self, course_id: int) -> bool:
        raise NotImplementedError

    def is_enrolled(self, *, student_id: int, course_id: int) -> bool:
        raise NotImplementedError

    def list_enrolled_students(self, *, course_id: int, batch_id: int, section_id: int) -> Sequence[Student]:
        """Students enrolled in the course whose current batch/section match."""

        raise NotImplementedError
