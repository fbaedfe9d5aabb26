"""
Dual-track policy for character courses (radicals, kanji, vocabulary).

Every stage requires a number of correct *meaning* answers and a number of
correct *reading* answers. Each answer is recorded against one sub-track;
the stage advances only when both sub-tracks meet the stage's thresholds at
the moment of the last correct answer. Advancing resets both counters.

One wrong answer on either sub-track is a hard reset: both counters go to
zero, the item returns to New, and both tracks are asked again.

Default progression: New -> S1 -> S2 -> S3 -> Retired. Retired items are
never reviewed again.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any

from srs_engine.core.errors import InvalidOutcome
from srs_engine.core.items import (
    LOCKED,
    NEW,
    Difficulty,
    DualTrackProgress,
    LearnableItem,
    SubTrack,
)
from srs_engine.core.stages import DEFAULT_DUAL_TRACK_TABLE, DualTrackTable, PolicyKind

from .base import SchedulingPolicy


class DualTrackPolicy(SchedulingPolicy):
    """Meaning + reading staged scheduling with a terminal stage."""

    kind = PolicyKind.DUAL_TRACK
    dual_track = True

    def __init__(self, table: DualTrackTable | None = None):
        super().__init__(table or DEFAULT_DUAL_TRACK_TABLE)
        self.table: DualTrackTable

    # =========================================================================
    # Outcome / track validation
    # =========================================================================

    def normalize_outcome(self, item: LearnableItem, outcome: Any) -> bool:
        if isinstance(outcome, bool):
            return outcome
        if isinstance(outcome, (Difficulty, str)):
            return self._coerce_difficulty(item, outcome).is_correct
        raise InvalidOutcome(item, outcome, "expected a boolean answer result")

    def _normalize_track(self, item: LearnableItem, track: SubTrack | str | None) -> SubTrack:
        if track is None:
            raise InvalidOutcome(item, track, "dual-track reviews need a sub-track")
        selected = super()._normalize_track(item, track)
        if selected not in self.tracks_for(item).enabled_tracks():
            raise InvalidOutcome(item, track, f"item has no {selected.value} track")
        return selected

    # =========================================================================
    # Transition
    # =========================================================================

    def _apply(
        self,
        item: LearnableItem,
        correct: bool,
        now: datetime,
        track: SubTrack | None,
    ) -> tuple[LearnableItem, bool]:
        tracks = self.tracks_for(item)

        if not correct:
            reset = tracks.reset(*self.table.thresholds(NEW))
            updated = replace(
                item,
                stage=NEW,
                tracks=reset,
                next_review_at=now + self.table.failure_delay,
            )
            return updated, False

        tracks = tracks.record_correct(track)

        if tracks.both_met:
            # A table without a terminal stage keeps cycling its last stage
            new_stage = min(item.stage + 1, self.table.last_index)
            interval = self.table.interval_for(new_stage)
            updated = replace(
                item,
                stage=new_stage,
                tracks=tracks.reset(*self.table.thresholds(new_stage)),
                next_review_at=None if interval is None else now + interval,
            )
            return updated, True

        interval = self.table.interval_for(item.stage)
        updated = replace(
            item,
            tracks=tracks,
            next_review_at=None if interval is None else now + interval,
        )
        return updated, True

    def _on_unlock(self, item: LearnableItem) -> LearnableItem:
        return replace(item, tracks=self.tracks_for(item).reset(*self.table.thresholds(NEW)))

    # =========================================================================
    # Queries
    # =========================================================================

    def tracks_for(self, item: LearnableItem) -> DualTrackProgress:
        """Item progress, with thresholds of the current stage for bare items."""
        if item.tracks is not None:
            return item.tracks
        stage = min(max(item.stage, NEW), self.table.last_index)
        return DualTrackProgress().reset(*self.table.thresholds(stage))

    def is_retired(self, item: LearnableItem) -> bool:
        terminal = self.table.terminal_index
        return terminal is not None and item.stage >= terminal

    def due_tracks(self, item: LearnableItem, now: datetime) -> tuple[SubTrack, ...]:
        """
        Sub-tracks of `item` that should be asked now.

        A track is asked whenever its count is below the stage threshold,
        whatever the review time. Advancing and resetting both zero the
        counters, so both tracks come back together. Only a stage with no
        requirements waits for next_review_at.
        """
        if not self.is_reviewable(item):
            return ()

        tracks = self.tracks_for(item)
        enabled = tracks.enabled_tracks()
        outstanding = tuple(t for t in enabled if not tracks.get(t).is_met)

        if outstanding:
            return outstanding
        return enabled if item.is_due(now) else ()

    def is_due(self, item: LearnableItem, now: datetime) -> bool:
        return bool(self.due_tracks(item, now))

    def stage_name(self, item: LearnableItem) -> str:
        if item.stage == LOCKED:
            return "Locked"
        index = min(max(item.stage, NEW), self.table.last_index)
        return self.table.stages[index].name
