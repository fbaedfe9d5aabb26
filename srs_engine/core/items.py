"""
Learnable items and their scheduling state.

A LearnableItem is an immutable snapshot. Policies and the unlock resolver
never mutate an item in place; they return a new value built with
dataclasses.replace, so a caller can always fall back to the snapshot it
started from.

Stage numbering shared by every policy:
- LOCKED (-1): not yet unlocked, accepts no reviews
- NEW (0): floor state, where every incorrect answer lands
- 1..n: positions in the policy's stage table (srs level for backoff,
  repetition count for SM-2)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any

LOCKED = -1
NEW = 0


class SubTrack(str, Enum):
    """Independent review dimensions of a dual-track item."""

    MEANING = "meaning"
    READING = "reading"


class Difficulty(str, Enum):
    """Self-rated recall difficulty used by the backoff and mastery policies."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    IMPOSSIBLE = "impossible"

    @property
    def is_correct(self) -> bool:
        return self in (Difficulty.EASY, Difficulty.MEDIUM)


@dataclass(frozen=True)
class TrackProgress:
    """Correct answers on one sub-track towards the current stage."""

    correct: int = 0
    required: int = 0

    @property
    def is_met(self) -> bool:
        return self.correct >= self.required


@dataclass(frozen=True)
class DualTrackProgress:
    """Meaning and reading progress of a dual-track item."""

    meaning: TrackProgress = field(default_factory=TrackProgress)
    reading: TrackProgress = field(default_factory=TrackProgress)
    reading_enabled: bool = True  # radicals only have a meaning

    def get(self, track: SubTrack) -> TrackProgress:
        return self.meaning if track is SubTrack.MEANING else self.reading

    def enabled_tracks(self) -> tuple[SubTrack, ...]:
        if self.reading_enabled:
            return (SubTrack.MEANING, SubTrack.READING)
        return (SubTrack.MEANING,)

    def record_correct(self, track: SubTrack) -> DualTrackProgress:
        """Return progress with one more correct answer on `track`."""
        current = self.get(track)
        updated = replace(current, correct=current.correct + 1)
        if track is SubTrack.MEANING:
            return replace(self, meaning=updated)
        return replace(self, reading=updated)

    def reset(self, required_meaning: int, required_reading: int) -> DualTrackProgress:
        """Zero both counters and load the thresholds of a stage."""
        return replace(
            self,
            meaning=TrackProgress(0, required_meaning),
            reading=TrackProgress(0, required_reading if self.reading_enabled else 0),
        )

    @property
    def both_met(self) -> bool:
        return all(self.get(t).is_met for t in self.enabled_tracks())


@dataclass(frozen=True)
class LearnableItem:
    """
    A single reviewable unit: a word, cloze sentence, radical, kanji, etc.

    Counters `correct_count` and `wrong_count` are lifetime figures for
    reporting. `streak` is the explicit run of consecutive correct answers;
    it is stored and updated with every transition.
    """

    id: str
    level: int = 1
    prerequisite_ids: frozenset[str] = frozenset()
    stage: int = NEW

    # Lifetime counters
    correct_count: int = 0
    wrong_count: int = 0
    streak: int = 0
    best_streak: int = 0

    # Timing
    last_reviewed_at: datetime | None = None
    next_review_at: datetime | None = None

    # Policy-specific scalars
    mastery: int = 0  # fixed-stage mastery percent
    ease_factor: float = 2.5  # SM-2
    interval_days: int = 0  # SM-2

    # Dual-track extension
    tracks: DualTrackProgress | None = None

    # Bumped by every applied transition, for version-checked saves
    version: int = 0

    def __post_init__(self):
        if not isinstance(self.prerequisite_ids, frozenset):
            object.__setattr__(self, "prerequisite_ids", frozenset(self.prerequisite_ids))
        if self.level < 1:
            raise ValueError(f"Item {self.id!r}: level must be >= 1, got {self.level}")

    @property
    def is_locked(self) -> bool:
        return self.stage == LOCKED

    @property
    def is_dual_track(self) -> bool:
        return self.tracks is not None

    @property
    def never_reviewed(self) -> bool:
        return self.last_reviewed_at is None

    def is_due(self, now: datetime) -> bool:
        """Timing check only; stage checks belong to the policy."""
        return self.next_review_at is None or self.next_review_at <= now

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LearnableItem:
        """
        Create an item from a plain dictionary (JSON or database row).

        Args:
            data: Mapping using the field names of this class

        Returns:
            LearnableItem instance
        """
        tracks = None
        tracks_data = data.get("tracks")
        if tracks_data:
            tracks = DualTrackProgress(
                meaning=TrackProgress(**tracks_data.get("meaning", {})),
                reading=TrackProgress(**tracks_data.get("reading", {})),
                reading_enabled=tracks_data.get("reading_enabled", True),
            )

        return cls(
            id=str(data["id"]),
            level=int(data.get("level", 1)),
            prerequisite_ids=frozenset(data.get("prerequisite_ids") or ()),
            stage=int(data.get("stage", NEW)),
            correct_count=int(data.get("correct_count", 0)),
            wrong_count=int(data.get("wrong_count", 0)),
            streak=int(data.get("streak", 0)),
            best_streak=int(data.get("best_streak", 0)),
            last_reviewed_at=_parse_timestamp(data.get("last_reviewed_at")),
            next_review_at=_parse_timestamp(data.get("next_review_at")),
            mastery=int(data.get("mastery", 0)),
            ease_factor=float(data.get("ease_factor", 2.5)),
            interval_days=int(data.get("interval_days", 0)),
            tracks=tracks,
            version=int(data.get("version", 0)),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        data: dict[str, Any] = {
            "id": self.id,
            "level": self.level,
            "prerequisite_ids": sorted(self.prerequisite_ids),
            "stage": self.stage,
            "correct_count": self.correct_count,
            "wrong_count": self.wrong_count,
            "streak": self.streak,
            "best_streak": self.best_streak,
            "last_reviewed_at": _format_timestamp(self.last_reviewed_at),
            "next_review_at": _format_timestamp(self.next_review_at),
            "mastery": self.mastery,
            "ease_factor": self.ease_factor,
            "interval_days": self.interval_days,
            "tracks": None,
            "version": self.version,
        }
        if self.tracks is not None:
            data["tracks"] = {
                "meaning": {
                    "correct": self.tracks.meaning.correct,
                    "required": self.tracks.meaning.required,
                },
                "reading": {
                    "correct": self.tracks.reading.correct,
                    "required": self.tracks.reading.required,
                },
                "reading_enabled": self.tracks.reading_enabled,
            }
        return data


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _format_timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
