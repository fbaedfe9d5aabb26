"""
srs-engine: spaced repetition scheduling.

Four interchangeable scheduling policies over one item model, a
prerequisite-aware unlock resolver and a due-queue builder. Policies,
resolver and builder are pure; storage lives behind the ItemStore
protocol.

Example:
    >>> from srs_engine import SchedulingEngine, get_policy
    >>> engine = SchedulingEngine(get_policy("dual_track"))
    >>> queue = engine.due_queue(items)
"""

from srs_engine.core import (
    LOCKED,
    NEW,
    Clock,
    DependencyCycle,
    Difficulty,
    DualTrackProgress,
    FixedClock,
    InvalidOutcome,
    InvalidTransition,
    LearnableItem,
    PolicyKind,
    SchedulingError,
    StageTableError,
    StaleItemError,
    SubTrack,
    SystemClock,
    TrackProgress,
    UnknownPrerequisite,
)
from srs_engine.engine import ReviewSession, SchedulingEngine, SessionStats
from srs_engine.review import DueQueueBuilder, ReviewTask, StudySession
from srs_engine.scheduling import (
    BackoffPolicy,
    DualTrackPolicy,
    MasteryPolicy,
    SchedulingPolicy,
    SM2Policy,
    get_policy,
)
from srs_engine.storage import ItemStore, SQLiteItemStore, load_deck
from srs_engine.unlock import PrerequisiteGraph, UnlockResolver, unlockable

__version__ = "1.0.0"

__all__ = [
    # Items
    "LearnableItem",
    "DualTrackProgress",
    "TrackProgress",
    "SubTrack",
    "Difficulty",
    "LOCKED",
    "NEW",
    # Policies
    "PolicyKind",
    "SchedulingPolicy",
    "BackoffPolicy",
    "MasteryPolicy",
    "SM2Policy",
    "DualTrackPolicy",
    "get_policy",
    # Unlocking
    "PrerequisiteGraph",
    "UnlockResolver",
    "unlockable",
    # Queues
    "DueQueueBuilder",
    "ReviewTask",
    "StudySession",
    # Engine
    "SchedulingEngine",
    "ReviewSession",
    "SessionStats",
    # Storage
    "ItemStore",
    "SQLiteItemStore",
    "load_deck",
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
