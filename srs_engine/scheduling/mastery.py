"""
Fixed five-stage policy driven by a mastery percentage.

Correct answers add the table increment to `mastery` (capped at 100) and
the active stage becomes the highest stage whose threshold is reached.
Incorrect answers subtract the decrement (floored at 0) and force the item
back to stage 0, whatever its mastery.

Intervals (default table): 0% -> 1 hour, 25% -> 1 day, 50% -> 10 days,
75% -> 30 days, 100% -> 180 days.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any

from srs_engine.core.items import LOCKED, NEW, Difficulty, LearnableItem, SubTrack
from srs_engine.core.stages import DEFAULT_MASTERY_TABLE, MasteryTable, PolicyKind

from .base import SchedulingPolicy


class MasteryPolicy(SchedulingPolicy):
    """Percent-based staged scheduling."""

    kind = PolicyKind.MASTERY

    def __init__(self, table: MasteryTable | None = None):
        super().__init__(table or DEFAULT_MASTERY_TABLE)
        self.table: MasteryTable

    def normalize_outcome(self, item: LearnableItem, outcome: Any) -> Difficulty:
        return self._coerce_difficulty(item, outcome)

    def _apply(
        self,
        item: LearnableItem,
        outcome: Difficulty,
        now: datetime,
        track: SubTrack | None,
    ) -> tuple[LearnableItem, bool]:
        if outcome.is_correct:
            mastery = min(self.table.max_mastery, item.mastery + self.table.increment)
            stage = self.table.stage_for(mastery)
        else:
            mastery = max(0, item.mastery - self.table.decrement)
            stage = NEW

        next_review = now + self.table.interval_for(stage)
        updated = replace(item, mastery=mastery, stage=stage, next_review_at=next_review)
        return updated, outcome.is_correct

    def is_learned(self, item: LearnableItem) -> bool:
        """Learned once mastery reaches the second stage (25% by default)."""
        if item.is_locked or len(self.table.stages) <= self.learned_floor:
            return False
        return item.mastery >= self.table.stages[self.learned_floor].mastery_threshold

    def stage_name(self, item: LearnableItem) -> str:
        if item.stage == LOCKED:
            return "Locked"
        index = min(max(item.stage, 0), len(self.table.stages) - 1)
        return self.table.stages[index].name
