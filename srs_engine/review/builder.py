"""
Due-queue builder.

Turns an item snapshot into review tasks for a session:
- single-track policies emit one task per due item, most overdue first
- dual-track policies emit one task per outstanding sub-track, so an item
  may appear twice (meaning and reading); the combined list is shuffled

The queue is always rebuilt from current item state after each answer,
never replayed from a cached session list.
"""

from __future__ import annotations

import random
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from loguru import logger

from srs_engine.core.items import LearnableItem, SubTrack
from srs_engine.scheduling.base import SchedulingPolicy
from srs_engine.scheduling.dual_track import DualTrackPolicy


@dataclass(frozen=True)
class ReviewTask:
    """One question to ask: an item, and for dual-track items a sub-track."""

    item_id: str
    track: SubTrack | None = None

    def __str__(self) -> str:
        return self.item_id if self.track is None else f"{self.item_id}:{self.track.value}"


@dataclass
class StudySession:
    """A prepared study session."""

    review_tasks: list[ReviewTask] = field(default_factory=list)
    lesson_tasks: list[ReviewTask] = field(default_factory=list)
    queue: list[ReviewTask] = field(default_factory=list)

    @property
    def total_tasks(self) -> int:
        return len(self.queue)

    @property
    def estimated_minutes(self) -> int:
        """Estimate study time (30 sec per task average)."""
        return max(1, self.total_tasks // 2)


class DueQueueBuilder:
    """
    Builds review queues for a policy.

    Args:
        policy: Active scheduling policy
        rng: Random source for shuffling; pass a seeded random.Random in
            tests, leave None in production
    """

    def __init__(self, policy: SchedulingPolicy, rng: random.Random | None = None):
        self.policy = policy
        self.rng = rng or random.Random()

    def build_queue(
        self,
        items: Iterable[LearnableItem],
        now: datetime,
        limit: int | None = None,
    ) -> list[ReviewTask]:
        """
        Build the due set and apply the session cap.

        Args:
            items: Item snapshot
            now: Current time
            limit: Maximum tasks to return (None = all)

        Returns:
            Review tasks; dual-track order is random, single-track order is
            most overdue first
        """
        items = list(items)
        if isinstance(self.policy, DualTrackPolicy):
            tasks = self._dual_track_tasks(items, now)
        else:
            tasks = self._single_track_tasks(items, now)

        if limit is not None:
            tasks = tasks[: max(0, limit)]

        logger.debug(f"Due queue: {len(tasks)} tasks from {len(items)} items")
        return tasks

    def build_session(
        self,
        items: Iterable[LearnableItem],
        now: datetime,
        limit: int | None = None,
        new_limit: int | None = None,
    ) -> StudySession:
        """
        Build a session that separates lessons from reviews.

        Lessons are tasks for items that were never reviewed; at most
        `new_limit` distinct items are introduced per session. Reviews keep
        their queue order and the cap applies to the combined queue.
        """
        items = list(items)
        by_id = {item.id: item for item in items}
        session = StudySession()

        admitted: set[str] = set()
        queue: list[ReviewTask] = []
        for task in self.build_queue(items, now):
            if by_id[task.item_id].never_reviewed and task.item_id not in admitted:
                if new_limit is not None and len(admitted) >= new_limit:
                    continue
                admitted.add(task.item_id)
            queue.append(task)

        session.queue = queue if limit is None else queue[: max(0, limit)]
        for task in session.queue:
            if by_id[task.item_id].never_reviewed:
                session.lesson_tasks.append(task)
            else:
                session.review_tasks.append(task)

        logger.info(
            f"Session built: {len(session.review_tasks)} reviews + "
            f"{len(session.lesson_tasks)} lessons = {session.total_tasks} tasks "
            f"(~{session.estimated_minutes} min)"
        )
        return session

    def _single_track_tasks(self, items: list[LearnableItem], now: datetime) -> list[ReviewTask]:
        due = [item for item in items if self.policy.is_due(item, now)]
        # Unset next_review_at sorts first, then the most overdue
        due.sort(key=lambda i: (i.next_review_at is not None, i.next_review_at or now, i.id))
        return [ReviewTask(item.id) for item in due]

    def _dual_track_tasks(self, items: list[LearnableItem], now: datetime) -> list[ReviewTask]:
        policy: DualTrackPolicy = self.policy  # type: ignore[assignment]
        tasks = [
            ReviewTask(item.id, track)
            for item in sorted(items, key=lambda i: i.id)
            for track in policy.due_tracks(item, now)
        ]
        self.rng.shuffle(tasks)
        return tasks
