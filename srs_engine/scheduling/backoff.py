"""
Exponential backoff policy.

Items carry an unbounded srs level (stored in `stage`). Each answer moves
the level by a difficulty-dependent step and schedules the next review at

    base_interval(difficulty) * growth ** new_level

Difficulty steps (default table):
- easy: +2 levels, 4 day base
- medium: +1 level, 2 day base
- hard: -1 level (floored at 0), 1 day base
- impossible: back to level 0, reviewed again after a short delay
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any

from srs_engine.core.items import Difficulty, LearnableItem, SubTrack
from srs_engine.core.stages import DEFAULT_BACKOFF_TABLE, BackoffTable, PolicyKind

from .base import SchedulingPolicy


class BackoffPolicy(SchedulingPolicy):
    """Level-based exponential backoff."""

    kind = PolicyKind.BACKOFF

    def __init__(self, table: BackoffTable | None = None):
        super().__init__(table or DEFAULT_BACKOFF_TABLE)
        self.table: BackoffTable

    def normalize_outcome(self, item: LearnableItem, outcome: Any) -> Difficulty:
        return self._coerce_difficulty(item, outcome)

    def _apply(
        self,
        item: LearnableItem,
        outcome: Difficulty,
        now: datetime,
        track: SubTrack | None,
    ) -> tuple[LearnableItem, bool]:
        new_level = self.table.next_level(item.stage, outcome)
        next_review = now + self.table.interval_for(new_level, outcome)
        return replace(item, stage=new_level, next_review_at=next_review), outcome.is_correct

    def stage_name(self, item: LearnableItem) -> str:
        if item.is_locked:
            return "Locked"
        return self.table.mastery_label(item.stage)
