"""
Review forecast and progress summaries for dashboards.

- review_forecast: upcoming reviews grouped into slots
  ("Now", "In 3h", "Tomorrow", "In 4d", "Mar 02")
- level_progress: per level, how many items are unlocked and learned
- stage_breakdown: item count per stage name
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from srs_engine.core.items import LearnableItem
from srs_engine.scheduling.base import SchedulingPolicy


@dataclass
class ForecastSlot:
    """Reviews falling into one time slot."""

    label: str
    starts_at: datetime
    count: int = 0


@dataclass
class LevelProgress:
    """Unlock and learning progress for one level."""

    level: int
    total: int = 0
    unlocked: int = 0
    learned: int = 0

    @property
    def percent_learned(self) -> float:
        return 100.0 * self.learned / self.total if self.total else 0.0


def slot_label(next_review: datetime, now: datetime) -> str:
    """Human label for when a review comes up."""
    hours_until = math.ceil((next_review - now).total_seconds() / 3600)
    if hours_until <= 0:
        return "Now"
    if hours_until < 24:
        return f"In {hours_until}h"
    days_until = math.ceil(hours_until / 24)
    if days_until == 1:
        return "Tomorrow"
    if days_until <= 7:
        return f"In {days_until}d"
    return next_review.strftime("%b %d")


def review_forecast(
    items: Iterable[LearnableItem],
    policy: SchedulingPolicy,
    now: datetime,
    horizon_days: int | None = None,
) -> list[ForecastSlot]:
    """
    Group upcoming reviews into labelled slots, earliest first.

    Locked and Retired items are skipped. Items without a review time count
    as due now.

    Args:
        items: Item snapshot
        policy: Active policy (decides what is reviewable)
        now: Current time
        horizon_days: Ignore reviews further out than this

    Returns:
        Slots ordered by their earliest review time
    """
    slots: dict[str, ForecastSlot] = {}

    for item in items:
        if not policy.is_reviewable(item):
            continue
        when = item.next_review_at or now
        if horizon_days is not None and (when - now).total_seconds() > horizon_days * 86400:
            continue

        label = slot_label(when, now)
        slot = slots.get(label)
        if slot is None:
            slot = slots[label] = ForecastSlot(label=label, starts_at=max(when, now))
        slot.starts_at = min(slot.starts_at, max(when, now))
        slot.count += 1

    return sorted(slots.values(), key=lambda s: s.starts_at)


def level_progress(
    items: Iterable[LearnableItem],
    policy: SchedulingPolicy,
) -> list[LevelProgress]:
    """Per-level totals, ordered by level."""
    levels: dict[int, LevelProgress] = {}
    for item in items:
        progress = levels.setdefault(item.level, LevelProgress(level=item.level))
        progress.total += 1
        if not item.is_locked:
            progress.unlocked += 1
        if policy.is_learned(item):
            progress.learned += 1
    return [levels[level] for level in sorted(levels)]


def stage_breakdown(
    items: Iterable[LearnableItem],
    policy: SchedulingPolicy,
) -> dict[str, int]:
    """Item count per stage name, in stage order."""
    counts: dict[str, int] = {}
    for item in sorted(items, key=lambda i: i.stage):
        name = policy.stage_name(item)
        counts[name] = counts.get(name, 0) + 1
    return counts


def difficult_items(items: Iterable[LearnableItem]) -> list[LearnableItem]:
    """
    Items answered wrong more often than right, having been right at least once.

    Items never answered correctly are still being learned and are left out.
    Worst first, ties by id.
    """
    difficult = [
        item
        for item in items
        if item.wrong_count > item.correct_count and item.correct_count > 0
    ]
    difficult.sort(key=lambda i: (i.correct_count - i.wrong_count, i.id))
    return difficult
