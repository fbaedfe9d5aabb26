"""
Stage tables: the swappable configuration behind every scheduling policy.

Tables are immutable values. A policy is constructed with a table and never
hard-codes intervals or thresholds itself.

Built-in tables:
- DEFAULT_BACKOFF_TABLE: exponential backoff, interval = base(d) * 1.5^level
- DEFAULT_MASTERY_TABLE: five stages at mastery 0/25/50/75/100 percent
- DEFAULT_DUAL_TRACK_TABLE: New -> S1 -> S2 -> S3 -> Retired, each stage
  gated on correct meaning and reading answers
- DEFAULT_SM2_CONFIG: SuperMemo-2 parameters
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Literal, Union

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from .errors import StageTableError
from .items import LOCKED, Difficulty


class PolicyKind(str, Enum):
    """Available scheduling algorithms."""

    BACKOFF = "backoff"
    MASTERY = "mastery"
    SM2 = "sm2"
    DUAL_TRACK = "dual_track"


@dataclass(frozen=True)
class StageDescriptor:
    """One stage of a staged table."""

    name: str
    interval: timedelta | None  # None = terminal, never reviewed again
    mastery_threshold: int = 0  # fixed-stage tables
    required_meaning: int = 0  # dual-track tables
    required_reading: int = 0

    @property
    def is_terminal(self) -> bool:
        return self.interval is None


# =============================================================================
# Exponential Backoff
# =============================================================================


def _default_base_intervals() -> dict[Difficulty, timedelta]:
    return {
        Difficulty.EASY: timedelta(days=4),
        Difficulty.MEDIUM: timedelta(days=2),
        Difficulty.HARD: timedelta(days=1),
        Difficulty.IMPOSSIBLE: timedelta(0),
    }


@dataclass(frozen=True)
class BackoffTable:
    """Numbered levels grouped into mastery bands; interval grows geometrically."""

    base_intervals: dict[Difficulty, timedelta] = field(default_factory=_default_base_intervals)
    growth: float = 1.5
    easy_step: int = 2
    medium_step: int = 1
    hard_step: int = -1
    failure_delay: timedelta = timedelta(hours=1)
    max_interval: timedelta = timedelta(days=3650)
    # (highest level, label); levels above the last band get top_label
    mastery_bands: tuple[tuple[int, str], ...] = (
        (0, "Seed"),
        (2, "Sprout"),
        (5, "Seedling"),
        (10, "Plant"),
    )
    top_label: str = "Tree"

    def next_level(self, level: int, difficulty: Difficulty) -> int:
        if difficulty is Difficulty.IMPOSSIBLE:
            return 0
        step = {
            Difficulty.EASY: self.easy_step,
            Difficulty.MEDIUM: self.medium_step,
            Difficulty.HARD: self.hard_step,
        }[difficulty]
        return max(0, level + step)

    def interval_for(self, level: int, difficulty: Difficulty) -> timedelta:
        """Delay until the next review, computed from the new level."""
        base = self.base_intervals[difficulty]
        if base <= timedelta(0):
            return self.failure_delay
        seconds = base.total_seconds() * self.growth ** level
        return timedelta(seconds=min(seconds, self.max_interval.total_seconds()))

    def mastery_label(self, level: int) -> str:
        for ceiling, label in self.mastery_bands:
            if level <= ceiling:
                return label
        return self.top_label


# =============================================================================
# Fixed 5-stage (mastery percent)
# =============================================================================


@dataclass(frozen=True)
class MasteryTable:
    """Stages selected by a scalar mastery percentage."""

    stages: tuple[StageDescriptor, ...]
    increment: int = 25
    decrement: int = 25
    same_day_delay: timedelta = timedelta(hours=1)

    def __post_init__(self):
        if not self.stages:
            raise StageTableError("Mastery table needs at least one stage")
        thresholds = [s.mastery_threshold for s in self.stages]
        if thresholds[0] != 0:
            raise StageTableError("First mastery stage must start at 0")
        if any(b <= a for a, b in zip(thresholds, thresholds[1:])):
            raise StageTableError(f"Mastery thresholds must ascend: {thresholds}")
        if any(s.interval is None for s in self.stages):
            raise StageTableError("Mastery stages cannot be terminal")
        if self.increment <= 0 or self.decrement < 0:
            raise StageTableError("Mastery increment must be positive, decrement non-negative")

    @property
    def max_mastery(self) -> int:
        return max(100, self.stages[-1].mastery_threshold)

    def stage_for(self, mastery: int) -> int:
        """Index of the highest stage whose threshold is <= mastery."""
        for index in range(len(self.stages) - 1, -1, -1):
            if mastery >= self.stages[index].mastery_threshold:
                return index
        return 0

    def interval_for(self, stage: int) -> timedelta:
        interval = self.stages[stage].interval
        if interval is None or interval <= timedelta(0):
            return self.same_day_delay
        return interval


# =============================================================================
# Dual-track (meaning + reading)
# =============================================================================


@dataclass(frozen=True)
class DualTrackTable:
    """Named stages, each gated on correct answers on both sub-tracks."""

    stages: tuple[StageDescriptor, ...]
    failure_delay: timedelta = timedelta(hours=1)

    def __post_init__(self):
        if len(self.stages) < 2:
            raise StageTableError("Dual-track table needs at least two stages")
        for index, stage in enumerate(self.stages):
            last = index == len(self.stages) - 1
            if stage.is_terminal and not last:
                raise StageTableError(f"Only the last stage may be terminal, not {stage.name!r}")
            if not stage.is_terminal and stage.required_meaning < 1:
                raise StageTableError(f"Stage {stage.name!r} must require a meaning answer")
            if stage.required_reading < 0:
                raise StageTableError(f"Stage {stage.name!r} has a negative reading requirement")

    @property
    def terminal_index(self) -> int | None:
        last = len(self.stages) - 1
        return last if self.stages[last].is_terminal else None

    @property
    def last_index(self) -> int:
        return len(self.stages) - 1

    def thresholds(self, stage: int) -> tuple[int, int]:
        descriptor = self.stages[stage]
        return descriptor.required_meaning, descriptor.required_reading

    def interval_for(self, stage: int) -> timedelta | None:
        return self.stages[stage].interval

    def index_of(self, name: str) -> int:
        for index, stage in enumerate(self.stages):
            if stage.name.lower() == name.lower():
                return index
        raise KeyError(name)


# =============================================================================
# SM-2
# =============================================================================


@dataclass(frozen=True)
class SM2Config:
    """Configuration for SM-2 algorithm."""

    initial_easiness: float = 2.5
    minimum_easiness: float = 1.3
    first_interval: int = 1  # Days for first review
    second_interval: int = 6  # Days for second review
    failure_penalty: float = 0.2  # Ease lost on a failed recall
    failure_delay: timedelta = timedelta(hours=1)


StageTable = Union[BackoffTable, MasteryTable, DualTrackTable, SM2Config]


DEFAULT_BACKOFF_TABLE = BackoffTable()

DEFAULT_MASTERY_TABLE = MasteryTable(
    stages=(
        StageDescriptor("0%", timedelta(0), mastery_threshold=0),  # same day
        StageDescriptor("25%", timedelta(days=1), mastery_threshold=25),
        StageDescriptor("50%", timedelta(days=10), mastery_threshold=50),
        StageDescriptor("75%", timedelta(days=30), mastery_threshold=75),
        StageDescriptor("100%", timedelta(days=180), mastery_threshold=100),
    ),
)

DEFAULT_DUAL_TRACK_TABLE = DualTrackTable(
    stages=(
        StageDescriptor("New", timedelta(hours=4), required_meaning=1, required_reading=1),
        StageDescriptor("S1", timedelta(hours=8), required_meaning=2, required_reading=2),
        StageDescriptor("S2", timedelta(days=1), required_meaning=2, required_reading=2),
        StageDescriptor("S3", timedelta(days=7), required_meaning=2, required_reading=2),
        StageDescriptor("Retired", None),
    ),
)

DEFAULT_SM2_CONFIG = SM2Config()

DEFAULT_TABLES: dict[PolicyKind, StageTable] = {
    PolicyKind.BACKOFF: DEFAULT_BACKOFF_TABLE,
    PolicyKind.MASTERY: DEFAULT_MASTERY_TABLE,
    PolicyKind.SM2: DEFAULT_SM2_CONFIG,
    PolicyKind.DUAL_TRACK: DEFAULT_DUAL_TRACK_TABLE,
}


# =============================================================================
# Loading custom tables
# =============================================================================


class StageSpec(BaseModel):
    """A stage as written in a table file. Intervals are in hours."""

    name: str
    interval_hours: float | None = Field(default=0.0, ge=0)
    mastery_threshold: int = Field(default=0, ge=0, le=100)
    required_meaning: int = Field(default=0, ge=0)
    required_reading: int = Field(default=0, ge=0)


class StageTableFile(BaseModel):
    """Schema of a stage table JSON file."""

    kind: Literal["mastery", "dual_track"]
    stages: list[StageSpec]
    increment: int = 25
    decrement: int = 25
    failure_delay_hours: float = Field(default=1.0, gt=0)


def _to_descriptor(spec: StageSpec) -> StageDescriptor:
    interval = None if spec.interval_hours is None else timedelta(hours=spec.interval_hours)
    return StageDescriptor(
        name=spec.name,
        interval=interval,
        mastery_threshold=spec.mastery_threshold,
        required_meaning=spec.required_meaning,
        required_reading=spec.required_reading,
    )


def load_stage_table(path: str | Path) -> MasteryTable | DualTrackTable:
    """
    Load a custom stage table from a JSON file.

    Args:
        path: JSON file matching StageTableFile

    Returns:
        MasteryTable or DualTrackTable

    Raises:
        StageTableError: If the file is unreadable or invalid
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
        parsed = StageTableFile.model_validate(raw)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise StageTableError(f"Cannot load stage table {path}: {e}") from e

    stages = tuple(_to_descriptor(s) for s in parsed.stages)
    failure_delay = timedelta(hours=parsed.failure_delay_hours)

    if parsed.kind == "mastery":
        table: MasteryTable | DualTrackTable = MasteryTable(
            stages=stages,
            increment=parsed.increment,
            decrement=parsed.decrement,
            same_day_delay=failure_delay,
        )
    else:
        table = DualTrackTable(stages=stages, failure_delay=failure_delay)

    logger.info(f"Loaded {parsed.kind} stage table with {len(stages)} stages from {path}")
    return table


# =============================================================================
# Legacy stage names
# =============================================================================

# Older decks used WaniKani-style names, later plant names; both map onto
# the five dual-track stages.
LEGACY_STAGE_NAMES: dict[str, str] = {
    "apprentice": "New",
    "seed": "New",
    "guru": "S1",
    "sprout": "S1",
    "master": "S2",
    "seedling": "S2",
    "enlightened": "S3",
    "plant": "S3",
    "burned": "Retired",
    "tree": "Retired",
}


def migrate_stage_name(
    name: str | None,
    table: DualTrackTable = DEFAULT_DUAL_TRACK_TABLE,
) -> int:
    """
    Map a stored stage label to a stage index of `table`.

    Unknown or empty labels map to LOCKED, so a damaged record never
    becomes reviewable by accident.
    """
    if not name:
        return LOCKED
    normalized = name.strip().lower()
    if normalized == "locked":
        return LOCKED
    target = LEGACY_STAGE_NAMES.get(normalized, normalized)
    try:
        return table.index_of(target)
    except KeyError:
        logger.warning(f"Unknown stage label {name!r}, treating as locked")
        return LOCKED
