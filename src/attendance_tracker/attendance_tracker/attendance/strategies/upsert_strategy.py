from __future__ import annotations

from typing import Optional

from ..model import AttendanceRecord, MarkCommand
from .base import MarkAction, MarkDecision, MarkStrategy


class UpsertStrategy(MarkStrategy):
    """Teacher correction and student self-service: create, or overwrite while unlocked."""

    def decide(self, *, existing: Optional[AttendanceRecord], command: MarkCommand) -> MarkDecision:
        if existing is None:
            return MarkDecision(MarkAction.CREATE)
        if existing.is_locked:
            return MarkDecision(MarkAction.REJECT_LOCKED)
        if (
            existing.status == command.status
            and existing.source == command.source
            and existing.marked_by_user_id == command.marked_by_user_id
        ):
            # Repeating the same mark is a no-op.
            return MarkDecision(MarkAction.KEEP)
        return MarkDecision(MarkAction.UPDATE)
