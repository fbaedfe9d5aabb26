"""
Scheduling error kinds.

All engine errors derive from SchedulingError so callers can catch the
family in one place. Errors that concern a single item carry the item
unchanged, so a caller can keep using its snapshot after a rejection.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .items import LearnableItem


class SchedulingError(Exception):
    """Base class for scheduling engine errors."""
    pass


class InvalidTransition(SchedulingError):
    """Raised when a Locked or Retired item is reviewed."""

    def __init__(self, item: LearnableItem, reason: str):
        self.item = item
        self.reason = reason
        super().__init__(f"Item {item.id!r} cannot be reviewed: {reason}")


class InvalidOutcome(SchedulingError):
    """Raised when an outcome lies outside the policy's accepted domain."""

    def __init__(self, item: LearnableItem, outcome: Any, reason: str):
        self.item = item
        self.outcome = outcome
        self.reason = reason
        super().__init__(f"Invalid outcome {outcome!r} for item {item.id!r}: {reason}")


class UnknownPrerequisite(SchedulingError):
    """An item references prerequisite ids missing from the collection."""

    def __init__(self, item_id: str, missing_ids: Iterable[str]):
        self.item_id = item_id
        self.missing_ids = frozenset(missing_ids)
        super().__init__(
            f"Item {item_id!r} references unknown prerequisites: "
            f"{', '.join(sorted(self.missing_ids))}"
        )


class DependencyCycle(SchedulingError):
    """The prerequisite graph contains a cycle."""

    def __init__(self, members: Iterable[str]):
        self.members = frozenset(members)
        super().__init__(
            f"Prerequisite cycle between: {', '.join(sorted(self.members))}"
        )


class StageTableError(SchedulingError):
    """Raised when a stage table configuration is malformed."""
    pass


class StaleItemError(SchedulingError):
    """Raised when a save is computed from an outdated item snapshot."""

    def __init__(self, item_id: str, expected_version: int):
        self.item_id = item_id
        self.expected_version = expected_version
        super().__init__(
            f"Item {item_id!r} changed since it was loaded "
            f"(expected stored version {expected_version})"
        )
