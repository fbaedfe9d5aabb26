"""
Scheduling Engine: the facade callers work with.

SchedulingEngine bundles one policy with a clock and a random source and
exposes the pure operations (review, unlock, queues). It never touches
storage.

ReviewSession is the orchestration edge: it loads a snapshot from an
ItemStore, applies one answer, saves the result, and rebuilds the queue
from the saved state before picking the next task.

Usage:
    engine = SchedulingEngine.from_settings()
    session = ReviewSession(engine, SQLiteItemStore())
    while (task := session.next_task()) is not None:
        session.answer(task, ask_user(task))
"""

from __future__ import annotations

import random
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from loguru import logger

from srs_engine.core.clock import Clock, SystemClock
from srs_engine.core.errors import InvalidTransition
from srs_engine.core.items import LearnableItem, SubTrack
from srs_engine.review.builder import DueQueueBuilder, ReviewTask, StudySession
from srs_engine.review.forecast import ForecastSlot, review_forecast
from srs_engine.scheduling import policy_from_settings
from srs_engine.scheduling.base import SchedulingPolicy
from srs_engine.storage.base import ItemStore, ReviewLog
from srs_engine.unlock.graph import PrerequisiteGraph
from srs_engine.unlock.resolver import UnlockReport, UnlockResolver

if TYPE_CHECKING:
    from config import Settings


# =============================================================================
# Engine
# =============================================================================


class SchedulingEngine:
    """
    One policy plus the clock and random source it runs against.

    Args:
        policy: Active scheduling policy
        clock: Time source (SystemClock if None)
        rng: Random source for queue shuffles (unseeded if None)
        unlock_delay: Delay before unlocked items are first due
        strict_graph: Raise DependencyCycle when the collection has a cycle
    """

    def __init__(
        self,
        policy: SchedulingPolicy,
        clock: Clock | None = None,
        rng: random.Random | None = None,
        unlock_delay: timedelta | None = None,
        strict_graph: bool = True,
    ):
        self.policy = policy
        self.clock = clock or SystemClock()
        self.rng = rng or random.Random()
        self.unlock_delay = unlock_delay
        self.strict_graph = strict_graph

        self.resolver = UnlockResolver(policy)
        self.queue_builder = DueQueueBuilder(policy, self.rng)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        clock: Clock | None = None,
    ) -> SchedulingEngine:
        """Build an engine from application settings."""
        if settings is None:
            from config import get_settings

            settings = get_settings()

        rng = random.Random(settings.queue_seed) if settings.queue_seed is not None else None
        return cls(
            policy=policy_from_settings(settings),
            clock=clock,
            rng=rng,
            unlock_delay=settings.get_unlock_delay(),
            strict_graph=settings.strict_graph,
        )

    # =========================================================================
    # Reviews
    # =========================================================================

    def review(
        self,
        item: LearnableItem,
        outcome: Any,
        track: SubTrack | str | None = None,
    ) -> LearnableItem:
        """
        Apply one answer at the current clock time.

        Raises:
            InvalidTransition: Item is Locked or Retired
            InvalidOutcome: Outcome or track rejected by the policy
        """
        return self.policy.transition(item, outcome, self.clock.now(), track)

    def due_queue(
        self,
        items: Iterable[LearnableItem],
        limit: int | None = None,
    ) -> list[ReviewTask]:
        return self.queue_builder.build_queue(items, self.clock.now(), limit)

    def session(
        self,
        items: Iterable[LearnableItem],
        limit: int | None = None,
        new_limit: int | None = None,
    ) -> StudySession:
        return self.queue_builder.build_session(items, self.clock.now(), limit, new_limit)

    def forecast(
        self,
        items: Iterable[LearnableItem],
        horizon_days: int | None = None,
    ) -> list[ForecastSlot]:
        return review_forecast(items, self.policy, self.clock.now(), horizon_days)

    # =========================================================================
    # Unlocking
    # =========================================================================

    def validate(self, items: Iterable[LearnableItem]) -> PrerequisiteGraph:
        """
        Build the prerequisite graph of a collection.

        Raises:
            DependencyCycle: If strict_graph is set and a cycle exists
        """
        graph = PrerequisiteGraph.from_items(items)
        if self.strict_graph:
            graph.validate()
        return graph

    def unlock_report(self, items: Iterable[LearnableItem]) -> UnlockReport:
        items = list(items)
        return self.resolver.resolve(items, self.validate(items))

    def unlockable(self, items: Iterable[LearnableItem]) -> frozenset[str]:
        return self.unlock_report(items).unlockable

    def unlock(self, items: Iterable[LearnableItem]) -> list[LearnableItem]:
        """
        Unlock every unlockable item.

        Returns:
            Only the items that changed
        """
        items = list(items)
        self.validate(items)
        return self.resolver.apply(items, self.clock.now(), self.unlock_delay)

    def __repr__(self) -> str:
        return f"SchedulingEngine(policy={self.policy!r}, clock={self.clock!r})"


# =============================================================================
# Review Session
# =============================================================================


@dataclass
class SessionStats:
    """Running totals for one review session."""

    answered: int = 0
    correct: int = 0
    skipped: int = 0

    @property
    def accuracy(self) -> float:
        return 100.0 * self.correct / self.answered if self.answered else 0.0


class ReviewSession:
    """
    Load, transition, save, next task.

    Args:
        engine: Scheduling engine
        store: Item persistence
        level: Only review items of this level
    """

    def __init__(self, engine: SchedulingEngine, store: ItemStore, level: int | None = None):
        self.engine = engine
        self.store = store
        self.level = level
        self.stats = SessionStats()

    def next_task(self) -> ReviewTask | None:
        """Next task from a queue rebuilt over the current stored state."""
        queue = self.engine.due_queue(self.store.load_items(level=self.level))
        return queue[0] if queue else None

    def answer(
        self,
        task: ReviewTask | str,
        outcome: Any,
        track: SubTrack | str | None = None,
    ) -> LearnableItem | None:
        """
        Apply an answer and persist the result.

        Args:
            task: Task from next_task(), or an item id
            outcome: Policy-specific quality signal
            track: Sub-track (taken from the task when one is given)

        Returns:
            Saved item, or None when the item cannot be reviewed

        Raises:
            KeyError: Unknown item id
            InvalidOutcome: Outcome rejected by the policy
            StaleItemError: The item changed in the store meanwhile
        """
        if isinstance(task, ReviewTask):
            item_id, track = task.item_id, task.track if track is None else track
        else:
            item_id = task

        found = self.store.load_items(ids=[item_id])
        if not found:
            raise KeyError(item_id)
        item = found[0]

        try:
            updated = self.engine.review(item, outcome, track)
        except InvalidTransition as e:
            logger.debug(f"Skipping {item_id}: {e.reason}")
            self.stats.skipped += 1
            return None

        self.store.save_item(updated)

        correct = updated.correct_count > item.correct_count
        self.stats.answered += 1
        self.stats.correct += int(correct)
        if isinstance(self.store, ReviewLog):
            self.store.log_review(
                item_id,
                outcome,
                correct,
                updated.last_reviewed_at,
                SubTrack(track) if track is not None else None,
            )
        return updated

    def unlock_ready(self) -> list[LearnableItem]:
        """Unlock what the current state allows and persist it."""
        unlocked = self.engine.unlock(self.store.load_items())
        if unlocked:
            self.store.save_items(unlocked)
        return unlocked
