from __future__ import annotations

from typing import Optional

from ..model import AttendanceRecord, MarkCommand
from .base import MarkAction, MarkDecision, MarkStrategy


class CreateOnlyStrategy(MarkStrategy):
    """Auto-mark sweep: write only when nothing exists yet, whatever its lock state."""

    def decide(self, *, existing: Optional[AttendanceRecord], command: MarkCommand) -> MarkDecision:
        if existing is None:
            return MarkDecision(MarkAction.CREATE)
        return MarkDecision(MarkAction.KEEP)
