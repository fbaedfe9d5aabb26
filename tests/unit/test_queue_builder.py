"""
Unit tests for due-queue and session building.
"""

import random
from datetime import timedelta

import pytest

from srs_engine.core.items import LOCKED, NEW, LearnableItem, SubTrack
from srs_engine.review.builder import DueQueueBuilder, ReviewTask
from srs_engine.scheduling.backoff import BackoffPolicy
from srs_engine.scheduling.dual_track import DualTrackPolicy


def item(item_id, **fields):
    fields.setdefault("stage", NEW)
    return LearnableItem(id=item_id, **fields)


class TestSingleTrackQueue:
    @pytest.fixture
    def builder(self, rng):
        return DueQueueBuilder(BackoffPolicy(), rng)

    def test_only_due_items(self, builder, now):
        items = [
            item("due", stage=2, next_review_at=now - timedelta(hours=1)),
            item("later", stage=2, next_review_at=now + timedelta(hours=1)),
            item("locked", stage=LOCKED),
        ]
        assert builder.build_queue(items, now) == [ReviewTask("due")]

    def test_unset_first_then_most_overdue(self, builder, now):
        items = [
            item("a", stage=1, next_review_at=now - timedelta(hours=1)),
            item("b", stage=1, next_review_at=now - timedelta(days=2)),
            item("c"),
        ]
        queue = builder.build_queue(items, now)
        assert [t.item_id for t in queue] == ["c", "b", "a"]

    def test_limit(self, builder, now):
        items = [item(f"i{n}") for n in range(10)]
        assert len(builder.build_queue(items, now, limit=3)) == 3
        assert builder.build_queue(items, now, limit=0) == []

    def test_tasks_have_no_track(self, builder, now):
        assert builder.build_queue([item("a")], now)[0].track is None


class TestDualTrackQueue:
    def test_one_task_per_track(self, now):
        builder = DueQueueBuilder(DualTrackPolicy(), random.Random(7))

        queue = builder.build_queue([item("kanji"), item("vocab")], now)

        assert sorted(str(t) for t in queue) == [
            "kanji:meaning",
            "kanji:reading",
            "vocab:meaning",
            "vocab:reading",
        ]

    def test_shuffle_is_seeded(self, now):
        items = [item(f"k{n}") for n in range(8)]
        first = DueQueueBuilder(DualTrackPolicy(), random.Random(99)).build_queue(items, now)
        second = DueQueueBuilder(DualTrackPolicy(), random.Random(99)).build_queue(items, now)
        assert first == second

    def test_input_order_does_not_matter(self, now):
        items = [item(f"k{n}") for n in range(8)]
        forward = DueQueueBuilder(DualTrackPolicy(), random.Random(5)).build_queue(items, now)
        backward = DueQueueBuilder(DualTrackPolicy(), random.Random(5)).build_queue(
            list(reversed(items)), now
        )
        assert forward == backward

    def test_retired_and_locked_excluded(self, now):
        builder = DueQueueBuilder(DualTrackPolicy(), random.Random(1))
        items = [item("retired", stage=4), item("locked", stage=LOCKED)]
        assert builder.build_queue(items, now) == []

    def test_limit_applies_to_tasks(self, now):
        builder = DueQueueBuilder(DualTrackPolicy(), random.Random(1))
        queue = builder.build_queue([item("a"), item("b")], now, limit=3)
        assert len(queue) == 3
        assert all(t.track in (SubTrack.MEANING, SubTrack.READING) for t in queue)


class TestSessionBuilding:
    def test_lessons_and_reviews_split(self, now):
        builder = DueQueueBuilder(BackoffPolicy(), random.Random(1))
        items = [
            item("seen", stage=1, last_reviewed_at=now - timedelta(days=1),
                 next_review_at=now - timedelta(hours=1)),
            item("fresh"),
        ]

        session = builder.build_session(items, now)

        assert [t.item_id for t in session.review_tasks] == ["seen"]
        assert [t.item_id for t in session.lesson_tasks] == ["fresh"]
        assert session.total_tasks == 2

    def test_new_item_limit(self, now):
        builder = DueQueueBuilder(DualTrackPolicy(), random.Random(3))
        items = [item(f"new{n}") for n in range(5)]

        session = builder.build_session(items, now, new_limit=2)

        assert len({t.item_id for t in session.lesson_tasks}) == 2
        # Both tracks of each admitted item stay in the session
        assert len(session.lesson_tasks) == 4

    def test_session_limit(self, now):
        builder = DueQueueBuilder(BackoffPolicy(), random.Random(1))
        session = builder.build_session([item(f"i{n}") for n in range(10)], now, limit=4)
        assert session.total_tasks == 4
        assert session.estimated_minutes == 2

    def test_empty_session(self, now):
        session = DueQueueBuilder(BackoffPolicy()).build_session([], now)
        assert session.total_tasks == 0
        assert session.estimated_minutes == 1
