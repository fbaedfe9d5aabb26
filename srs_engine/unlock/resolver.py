"""
Unlock resolver.

Decides which Locked items may move to New. An item X at level L is
unlockable when both hold:
- level gate: L == 1, or every item at level L-1 is learned according to
  the active policy (stage S1 for dual-track, 25% mastery for fixed-stage)
- prerequisite gate: every prerequisite of X exists and is itself unlocked

Prerequisites only need to be unlocked, not learned. Items with unknown
prerequisites or inside a prerequisite cycle are never unlockable.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from loguru import logger

from srs_engine.core.errors import DependencyCycle, UnknownPrerequisite
from srs_engine.core.items import LearnableItem
from srs_engine.scheduling.base import SchedulingPolicy

from .graph import PrerequisiteGraph


@dataclass
class BlockingReason:
    """Why a locked item cannot be unlocked yet."""

    item_id: str
    reason: str  # level_gate, locked_prerequisite, unknown_prerequisite, cycle
    blocking_ids: frozenset[str] = frozenset()


@dataclass
class UnlockReport:
    """Result of an unlock resolution over a snapshot."""

    unlockable: frozenset[str] = frozenset()
    blocked: dict[str, BlockingReason] = field(default_factory=dict)
    unknown_prerequisites: list[UnknownPrerequisite] = field(default_factory=list)
    cycles: list[DependencyCycle] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.unknown_prerequisites or self.cycles)


class UnlockResolver:
    """
    Computes unlockable items for a policy.

    Example:
        >>> resolver = UnlockResolver(DualTrackPolicy())
        >>> resolver.unlockable(items)
        frozenset({'kanji-1', 'radical-3'})
    """

    def __init__(self, policy: SchedulingPolicy):
        self.policy = policy

    def resolve(
        self,
        items: Iterable[LearnableItem],
        graph: PrerequisiteGraph | None = None,
    ) -> UnlockReport:
        """
        Evaluate every locked item of a snapshot.

        Args:
            items: Full item collection
            graph: Pre-built graph for the same snapshot (built if None)

        Returns:
            UnlockReport with the unlockable ids and the reasons for the rest
        """
        items = list(items)
        graph = graph or PrerequisiteGraph.from_items(items)
        by_id = {item.id: item for item in items}
        report = UnlockReport(
            unknown_prerequisites=graph.unknown_prerequisite_errors(),
            cycles=graph.cycle_errors(),
        )

        for error in report.unknown_prerequisites:
            logger.warning(str(error))
        for error in report.cycles:
            logger.error(str(error))

        learned_levels = self._learned_levels(items)
        cycle_members = graph.cycle_members
        unlockable: set[str] = set()

        for item in sorted(items, key=lambda i: (i.level, i.id)):
            if not item.is_locked:
                continue

            if item.id in cycle_members:
                cycle = next(c for c in graph.cycles if item.id in c)
                report.blocked[item.id] = BlockingReason(item.id, "cycle", cycle)
                continue

            if item.id in graph.unknown:
                report.blocked[item.id] = BlockingReason(
                    item.id, "unknown_prerequisite", graph.unknown[item.id]
                )
                continue

            if item.level > 1 and not learned_levels.get(item.level - 1, True):
                report.blocked[item.id] = BlockingReason(item.id, "level_gate")
                continue

            locked_prereqs = frozenset(
                prereq for prereq in graph.prerequisites[item.id] if by_id[prereq].is_locked
            )
            if locked_prereqs:
                report.blocked[item.id] = BlockingReason(
                    item.id, "locked_prerequisite", locked_prereqs
                )
                continue

            unlockable.add(item.id)

        report.unlockable = frozenset(unlockable)
        logger.debug(
            f"Unlock resolution: {len(report.unlockable)} unlockable, "
            f"{len(report.blocked)} blocked"
        )
        return report

    def unlockable(self, items: Iterable[LearnableItem]) -> frozenset[str]:
        """Ids of locked items that may be unlocked now."""
        return self.resolve(items).unlockable

    def apply(
        self,
        items: Iterable[LearnableItem],
        now: datetime,
        delay: timedelta | None = None,
    ) -> list[LearnableItem]:
        """
        Unlock every unlockable item of a snapshot.

        Returns:
            The newly unlocked item values (only those that changed)
        """
        items = list(items)
        ids = self.unlockable(items)
        unlocked = [
            self.policy.unlock(item, now, delay)
            for item in sorted(items, key=lambda i: (i.level, i.id))
            if item.id in ids
        ]
        if unlocked:
            logger.info(f"Unlocked {len(unlocked)} items")
        return unlocked

    def _learned_levels(self, items: list[LearnableItem]) -> dict[int, bool]:
        """Map level -> whether every item at that level is learned."""
        learned: dict[int, bool] = defaultdict(lambda: True)
        for item in items:
            learned[item.level] = learned[item.level] and self.policy.is_learned(item)
        return dict(learned)


def unlockable(
    items: Iterable[LearnableItem],
    policy: SchedulingPolicy,
) -> frozenset[str]:
    """Shortcut for UnlockResolver(policy).unlockable(items)."""
    return UnlockResolver(policy).unlockable(items)
