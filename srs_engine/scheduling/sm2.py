"""
SM-2 Spaced Repetition Policy.

The SuperMemo 2 algorithm calculates review intervals from performance
history. Each item has:
- Easiness Factor (EF): How easy the item is (2.5 default, min 1.3)
- Interval: Days until next review
- Repetitions: Consecutive correct recalls (mirrored in `stage`)

SM-2 Grade Scale:
0 - Complete blackout, wrong response
1 - Incorrect, but upon seeing answer remembered
2 - Incorrect, but answer seemed easy to recall
3 - Correct, but with significant difficulty
4 - Correct, with some hesitation
5 - Correct, with perfect recall
"""

from __future__ import annotations

import math
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any

from srs_engine.core.errors import InvalidOutcome
from srs_engine.core.items import NEW, LearnableItem, SubTrack
from srs_engine.core.stages import DEFAULT_SM2_CONFIG, PolicyKind, SM2Config

from .base import SchedulingPolicy

PASSING_GRADE = 3


class SM2Policy(SchedulingPolicy):
    """Implements the SM-2 spaced repetition algorithm."""

    kind = PolicyKind.SM2

    def __init__(self, config: SM2Config | None = None):
        super().__init__(config or DEFAULT_SM2_CONFIG)
        self.table: SM2Config

    @property
    def config(self) -> SM2Config:
        return self.table

    def normalize_outcome(self, item: LearnableItem, outcome: Any) -> int:
        if isinstance(outcome, bool):
            return 4 if outcome else 0
        if not isinstance(outcome, int):
            raise InvalidOutcome(item, outcome, "SM-2 quality must be an integer 0-5")
        if not 0 <= outcome <= 5:
            raise InvalidOutcome(item, outcome, "SM-2 quality must be within 0-5")
        return outcome

    def _apply(
        self,
        item: LearnableItem,
        grade: int,
        now: datetime,
        track: SubTrack | None,
    ) -> tuple[LearnableItem, bool]:
        if grade < PASSING_GRADE:
            # Failed - reset to beginning with a flat ease penalty
            new_ef = max(
                self.config.minimum_easiness, item.ease_factor - self.config.failure_penalty
            )
            new_repetitions = NEW
            new_interval = self.config.first_interval
            next_review = now + self.config.failure_delay
        else:
            # EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
            ef_delta = 0.1 - (5 - grade) * (0.08 + (5 - grade) * 0.02)
            new_ef = max(self.config.minimum_easiness, item.ease_factor + ef_delta)
            new_repetitions = item.stage + 1

            if new_repetitions == 1:
                new_interval = self.config.first_interval
            elif new_repetitions == 2:
                new_interval = self.config.second_interval
            else:
                new_interval = max(1, _round_half_up(item.interval_days * new_ef))
            next_review = now + timedelta(days=new_interval)

        updated = replace(
            item,
            ease_factor=new_ef,
            interval_days=new_interval,
            stage=new_repetitions,
            next_review_at=next_review,
        )
        return updated, grade >= PASSING_GRADE

    def _on_unlock(self, item: LearnableItem) -> LearnableItem:
        return replace(item, ease_factor=self.config.initial_easiness, interval_days=0)

    def stage_name(self, item: LearnableItem) -> str:
        if item.is_locked:
            return "Locked"
        if item.stage == NEW:
            return "New"
        return f"Rep {item.stage} ({item.interval_days}d)"


def grade_from_response(
    is_correct: bool,
    response_ms: int,
    expected_ms: int = 10000,
) -> int:
    """
    Convert a timed response to an SM-2 grade.

    Args:
        is_correct: Whether the answer was correct
        response_ms: Time taken to respond
        expected_ms: Expected response time

    Returns:
        Grade 0-5
    """
    if not is_correct:
        # Incorrect responses: 0-2
        if response_ms < expected_ms * 0.5:
            return 2  # Quick wrong = almost knew it
        elif response_ms < expected_ms:
            return 1  # Wrong but remembered when shown
        else:
            return 0  # Complete blackout

    # Correct responses: 3-5
    if response_ms < expected_ms * 0.5:
        return 5  # Quick and correct = perfect recall
    elif response_ms < expected_ms:
        return 4  # Correct with some hesitation
    else:
        return 3  # Correct but struggled


def _round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (12.5 -> 13)."""
    return int(math.floor(value + 0.5))
