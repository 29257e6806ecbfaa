from __future__ import annotations

from datetime import time
from typing import Optional, Protocol, Sequence

from .model import TimetableEntry, TimetableSlotRow


class TimetableRepository(Protocol):
    def get_by_id(self, timetable_id: int) -> Optional[TimetableEntry]:
        raise NotImplementedError

    def list_ongoing(
        self,
        *,
        day_of_week: int,
        at: time,
        batch_id: Optional[int] = None,
        section_id: Optional[int] = None,
    ) -> Sequence[TimetableEntry]:
        """Entries in session at `at`, ordered by start_time then timetable_id."""

        raise NotImplementedError

    def list_for_section(self, *, batch_id: int, section_id: int) -> Sequence[TimetableSlotRow]:
        raise NotImplementedError

    def list_for_teacher(self, *, teacher_id: int) -> Sequence[TimetableSlotRow]:
        raise NotImplementedError

    def teaches(self, *, teacher_id: int, course_id: int, batch_id: int, section_id: int) -> bool:
        raise NotImplementedError

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
        """Insert a slot. Raises DuplicateKeyError on (batch, section, day, start) clash."""

        raise NotImplementedError
