from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import MarkMode
from .strategies.base import MarkStrategy
from .strategies.create_only_strategy import CreateOnlyStrategy
from .strategies.upsert_strategy import UpsertStrategy


@dataclass
class MarkStrategyFactory:
    """Factory Pattern: choose the write strategy for a marking mode."""

    def for_mode(self, mode: MarkMode) -> MarkStrategy:
        if mode == MarkMode.CREATE_ONLY:
            return CreateOnlyStrategy()
        return UpsertStrategy()
