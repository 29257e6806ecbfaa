from __future__ import annotations

import math
from abc import ABC, abstractmethod

from ..attendance.model import CourseTally


class AttendanceCalculator(ABC):
    """Calculator interface (Strategy Pattern for attendance percentages)."""

    @abstractmethod
    def attended(self, tally: CourseTally) -> int:
        raise NotImplementedError

    def percentage(self, tally: CourseTally) -> float:
        if tally.total <= 0:
            return 0.0
        return round(self.attended(tally) / tally.total * 100, 2)

    def shortfall(self, tally: CourseTally, threshold: float) -> int:
        """Classes still missing to reach threshold percent over the classes held so far."""
        required = math.ceil(round(tally.total * threshold / 100, 6))
        return max(0, required - self.attended(tally))


class StandardAttendanceCalculator(AttendanceCalculator):
    """Present and Late both count as attended."""

    def attended(self, tally: CourseTally) -> int:
        return tally.present + tally.late
