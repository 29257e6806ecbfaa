from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Optional


@dataclass(frozen=True)
class TimetableEntry:
    """One weekly recurring class slot.

    day_of_week follows date.weekday(): Monday = 0 ... Sunday = 6.
    """

    timetable_id: int
    course_id: int
    teacher_id: int
    batch_id: int
    section_id: int
    day_of_week: int
    start_time: time
    end_time: time

    def is_ongoing(self, *, day_of_week: int, at: time) -> bool:
        # Both ends inclusive.
        return self.day_of_week == day_of_week and self.start_time <= at <= self.end_time


@dataclass(frozen=True)
class TimetableSlotRow:
    """Read-model for timetable listings (joined with course and teacher)."""

    entry: TimetableEntry
    course_code: str
    course_name: str
    teacher_name: Optional[str] = None
