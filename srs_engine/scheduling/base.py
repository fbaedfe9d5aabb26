"""
SchedulingPolicy: the contract every scheduling algorithm implements.

A policy is a pure state machine over LearnableItem values:

    item' = policy.transition(item, outcome, now, track=None)

The base class owns the rules shared by all algorithms:
1. Locked and Retired items are rejected with InvalidTransition
2. Outcomes are normalized (or rejected with InvalidOutcome) before any
   state is touched
3. Lifetime counters, the streak, last_reviewed_at and version are updated
   together with the policy-specific state, in one replace() call
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, ClassVar

from loguru import logger

from srs_engine.core.errors import InvalidOutcome, InvalidTransition
from srs_engine.core.items import NEW, Difficulty, LearnableItem, SubTrack
from srs_engine.core.stages import PolicyKind, StageTable


class SchedulingPolicy(ABC):
    """Base class for scheduling algorithms."""

    kind: ClassVar[PolicyKind]
    dual_track: ClassVar[bool] = False
    learned_floor: ClassVar[int] = 1

    def __init__(self, table: StageTable):
        self.table = table

    # =========================================================================
    # Transition
    # =========================================================================

    def transition(
        self,
        item: LearnableItem,
        outcome: Any,
        now: datetime,
        track: SubTrack | str | None = None,
    ) -> LearnableItem:
        """
        Apply a review outcome and return the new item value.

        Args:
            item: Current item snapshot
            outcome: Policy-specific quality signal
            now: Review timestamp
            track: Sub-track selector (dual-track policies only)

        Returns:
            Updated LearnableItem; the input is never modified

        Raises:
            InvalidTransition: Item is Locked or Retired
            InvalidOutcome: Outcome or track outside the accepted domain
        """
        if item.is_locked:
            raise InvalidTransition(item, "item is locked")
        if self.is_retired(item):
            raise InvalidTransition(item, "item is retired")

        normalized = self.normalize_outcome(item, outcome)
        selected = self._normalize_track(item, track)

        updated, correct = self._apply(item, normalized, now, selected)
        result = self._record(updated, correct, now)

        logger.debug(
            f"{self.kind.value}: {item.id} {self.stage_name(item)} -> "
            f"{self.stage_name(result)} (outcome={normalized!r}, next={result.next_review_at})"
        )
        return result

    @abstractmethod
    def normalize_outcome(self, item: LearnableItem, outcome: Any) -> Any:
        """Validate and convert an outcome; raise InvalidOutcome if rejected."""

    @abstractmethod
    def _apply(
        self,
        item: LearnableItem,
        outcome: Any,
        now: datetime,
        track: SubTrack | None,
    ) -> tuple[LearnableItem, bool]:
        """Return (item with policy state updated, whether the answer was correct)."""

    def _normalize_track(self, item: LearnableItem, track: SubTrack | str | None) -> SubTrack | None:
        if track is None:
            return None
        if self.dual_track:
            try:
                return SubTrack(track)
            except ValueError:
                raise InvalidOutcome(item, track, "unknown sub-track") from None
        raise InvalidOutcome(item, track, f"{self.kind.value} policy has no sub-tracks")

    def _record(self, item: LearnableItem, correct: bool, now: datetime) -> LearnableItem:
        streak = item.streak + 1 if correct else 0
        return replace(
            item,
            correct_count=item.correct_count + (1 if correct else 0),
            wrong_count=item.wrong_count + (0 if correct else 1),
            streak=streak,
            best_streak=max(item.best_streak, streak),
            last_reviewed_at=now,
            version=item.version + 1,
        )

    # =========================================================================
    # Unlock
    # =========================================================================

    def unlock(
        self,
        item: LearnableItem,
        now: datetime,
        delay: timedelta | None = None,
    ) -> LearnableItem:
        """
        Move a Locked item to New.

        Only the unlock resolver should call this; the review path can never
        leave the Locked stage.
        """
        if not item.is_locked:
            raise InvalidTransition(item, "item is already unlocked")
        next_review = now + delay if delay else None
        unlocked = replace(item, stage=NEW, next_review_at=next_review, version=item.version + 1)
        return self._on_unlock(unlocked)

    def _on_unlock(self, item: LearnableItem) -> LearnableItem:
        return item

    # =========================================================================
    # Queries
    # =========================================================================

    def is_retired(self, item: LearnableItem) -> bool:
        return False

    def is_reviewable(self, item: LearnableItem) -> bool:
        return not item.is_locked and not self.is_retired(item)

    def is_learned(self, item: LearnableItem) -> bool:
        """True once the item reached the floor used by level gating."""
        return not item.is_locked and item.stage >= self.learned_floor

    def is_due(self, item: LearnableItem, now: datetime) -> bool:
        return self.is_reviewable(item) and item.is_due(now)

    @abstractmethod
    def stage_name(self, item: LearnableItem) -> str:
        """Display name of the item's current stage."""

    # =========================================================================
    # Outcome helpers
    # =========================================================================

    @staticmethod
    def _coerce_difficulty(item: LearnableItem, outcome: Any) -> Difficulty:
        """Accept a Difficulty, its string value, or a bool."""
        if isinstance(outcome, Difficulty):
            return outcome
        if isinstance(outcome, bool):
            return Difficulty.MEDIUM if outcome else Difficulty.IMPOSSIBLE
        if isinstance(outcome, str):
            try:
                return Difficulty(outcome.strip().lower())
            except ValueError:
                pass
        raise InvalidOutcome(
            item, outcome, "expected easy/medium/hard/impossible or a boolean"
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(table={self.table!r})"
