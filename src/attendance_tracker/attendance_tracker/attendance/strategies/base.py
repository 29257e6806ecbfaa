from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..model import AttendanceRecord, MarkCommand


class MarkAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    KEEP = "KEEP"
    REJECT_LOCKED = "REJECT_LOCKED"


@dataclass(frozen=True)
class MarkDecision:
    action: MarkAction


class MarkStrategy(ABC):
    """Strategy Pattern: decide what a write does given the current record."""

    @abstractmethod
    def decide(self, *, existing: Optional[AttendanceRecord], command: MarkCommand) -> MarkDecision:
        raise NotImplementedError
