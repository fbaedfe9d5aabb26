"""
Storage collaborator contract.

The engine never talks to storage itself; callers load a snapshot, run
transitions or unlocks, and save the results through an ItemStore.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol, runtime_checkable

from srs_engine.core.items import LearnableItem, SubTrack


class ItemStore(Protocol):
    """Load and persist learnable items."""

    def load_items(
        self,
        level: int | None = None,
        ids: Iterable[str] | None = None,
    ) -> list[LearnableItem]:
        """Load items, optionally filtered by level or ids."""
        ...

    def save_item(self, item: LearnableItem) -> None:
        """Persist one item; stores may reject stale versions."""
        ...

    def save_items(self, items: Iterable[LearnableItem]) -> None:
        """Persist several items atomically."""
        ...


@runtime_checkable
class ReviewLog(Protocol):
    """Stores that also keep a history of answers."""

    def log_review(
        self,
        item_id: str,
        outcome: object,
        correct: bool,
        reviewed_at: datetime,
        track: SubTrack | None = None,
    ) -> int: ...
