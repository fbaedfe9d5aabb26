"""
Core scheduling types: items, stage tables, clocks and errors.
"""

from .clock import Clock, FixedClock, SystemClock
from .errors import (
    DependencyCycle,
    InvalidOutcome,
    InvalidTransition,
    SchedulingError,
    StageTableError,
    StaleItemError,
    UnknownPrerequisite,
)
from .items import (
    LOCKED,
    NEW,
    Difficulty,
    DualTrackProgress,
    LearnableItem,
    SubTrack,
    TrackProgress,
)
from .stages import (
    DEFAULT_BACKOFF_TABLE,
    DEFAULT_DUAL_TRACK_TABLE,
    DEFAULT_MASTERY_TABLE,
    DEFAULT_SM2_CONFIG,
    DEFAULT_TABLES,
    BackoffTable,
    DualTrackTable,
    MasteryTable,
    PolicyKind,
    SM2Config,
    StageDescriptor,
    StageTable,
    load_stage_table,
    migrate_stage_name,
)

__all__ = [
    # Items
    "LearnableItem",
    "DualTrackProgress",
    "TrackProgress",
    "SubTrack",
    "Difficulty",
    "LOCKED",
    "NEW",
    # Stage tables
    "PolicyKind",
    "StageDescriptor",
    "StageTable",
    "BackoffTable",
    "MasteryTable",
    "DualTrackTable",
    "SM2Config",
    "DEFAULT_BACKOFF_TABLE",
    "DEFAULT_MASTERY_TABLE",
    "DEFAULT_DUAL_TRACK_TABLE",
    "DEFAULT_SM2_CONFIG",
    "DEFAULT_TABLES",
    "load_stage_table",
    "migrate_stage_name",
    # Clocks
    "Clock",
    "SystemClock",
    "FixedClock",
    # Errors
    "SchedulingError",
    "InvalidTransition",
    "InvalidOutcome",
    "UnknownPrerequisite",
    "DependencyCycle",
    "StageTableError",
    "StaleItemError",
]
