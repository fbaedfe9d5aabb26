"""
Unit tests for the unlock resolver: level gating, prerequisite gating,
and the purity and monotonicity of unlocking.
"""

from datetime import timedelta

import pytest

from srs_engine.core.items import LOCKED, NEW, LearnableItem
from srs_engine.scheduling.dual_track import DualTrackPolicy
from srs_engine.scheduling.mastery import MasteryPolicy
from srs_engine.unlock.resolver import UnlockResolver, unlockable


@pytest.fixture
def resolver():
    return UnlockResolver(DualTrackPolicy())


def item(item_id, stage=LOCKED, level=1, prereqs=(), **fields):
    return LearnableItem(id=item_id, stage=stage, level=level, prerequisite_ids=set(prereqs),
                         **fields)


class TestPrerequisiteGate:
    def test_locked_prerequisite_blocks(self, resolver):
        """X needs A (unlocked) and B (locked): X stays locked."""
        items = [item("A", stage=NEW), item("B"), item("X", prereqs=["A", "B"])]

        report = resolver.resolve(items)

        assert "X" not in report.unlockable
        assert report.blocked["X"].reason == "locked_prerequisite"
        assert report.blocked["X"].blocking_ids == frozenset({"B"})
        assert "B" in report.unlockable

    def test_unlocked_prerequisites_suffice(self, resolver):
        """Prerequisites only need to be unlocked, not learned."""
        items = [item("A", stage=NEW), item("X", prereqs=["A"])]
        assert resolver.unlockable(items) == frozenset({"X"})

    def test_no_prerequisites(self, resolver):
        assert resolver.unlockable([item("solo")]) == frozenset({"solo"})

    def test_unknown_prerequisite_never_unlockable(self, resolver):
        items = [item("X", prereqs=["missing"])]

        report = resolver.resolve(items)

        assert report.unlockable == frozenset()
        assert report.blocked["X"].reason == "unknown_prerequisite"
        assert report.has_errors

    def test_cycle_members_never_unlockable(self, resolver):
        items = [item("A", prereqs=["B"]), item("B", prereqs=["A"]), item("C")]

        report = resolver.resolve(items)

        assert report.unlockable == frozenset({"C"})
        assert report.blocked["A"].reason == "cycle"
        assert len(report.cycles) == 1


class TestLevelGate:
    def test_blocked_until_previous_level_learned(self, resolver):
        items = [
            item("l1-a", stage=1, level=1),
            item("l1-b", stage=NEW, level=1),
            item("l2-a", level=2),
        ]

        report = resolver.resolve(items)

        assert report.blocked["l2-a"].reason == "level_gate"

    def test_open_once_previous_level_learned(self, resolver):
        items = [
            item("l1-a", stage=1, level=1),
            item("l1-b", stage=3, level=1),
            item("l2-a", level=2),
        ]
        assert resolver.unlockable(items) == frozenset({"l2-a"})

    def test_empty_previous_level_passes(self, resolver):
        items = [item("l1-a", stage=1, level=1), item("l3-a", level=3)]
        assert resolver.unlockable(items) == frozenset({"l3-a"})

    def test_gate_uses_policy_notion_of_learned(self):
        resolver = UnlockResolver(MasteryPolicy())
        items = [item("l1", stage=0, level=1, mastery=25), item("l2", level=2)]
        # Mastery 25% counts as learned even at stage 0
        assert resolver.unlockable(items) == frozenset({"l2"})


class TestApply:
    def test_apply_unlocks_and_returns_changed(self, resolver, now):
        items = [item("A", stage=NEW), item("X", prereqs=["A"]), item("Y", prereqs=["X"])]

        unlocked = resolver.apply(items, now)

        assert [i.id for i in unlocked] == ["X"]
        assert unlocked[0].stage == NEW
        assert unlocked[0].next_review_at is None

    def test_apply_with_delay(self, resolver, now):
        unlocked = resolver.apply([item("A")], now, delay=timedelta(hours=2))
        assert unlocked[0].next_review_at == now + timedelta(hours=2)

    def test_resolution_is_pure(self, resolver):
        items = [item("A", stage=NEW), item("X", prereqs=["A"])]
        snapshot = list(items)

        first = resolver.unlockable(items)
        second = resolver.unlockable(items)

        assert first == second
        assert items == snapshot

    def test_unlocking_never_shrinks_unlockable_set(self, resolver, now):
        """Unlocking an item can only open up its dependents."""
        items = [
            item("A"),
            item("B", prereqs=["A"]),
            item("C", prereqs=["B"]),
            item("D", prereqs=["A", "C"]),
        ]
        seen_unlocked: set[str] = set()

        for _ in range(5):
            by_id = {i.id: i for i in items}
            before = resolver.unlockable(items)
            assert seen_unlocked.isdisjoint(before)
            for changed in resolver.apply(items, now):
                by_id[changed.id] = changed
                seen_unlocked.add(changed.id)
            items = list(by_id.values())

        assert seen_unlocked == {"A", "B", "C", "D"}

    def test_adding_missing_prerequisite_only_grows_set(self, resolver):
        """Supplying an unknown prerequisite never removes anything."""
        items = [item("A", stage=NEW), item("X", prereqs=["A", "M"]), item("Y")]

        before = resolver.unlockable(items)
        after = resolver.unlockable([*items, item("M", stage=NEW)])

        assert "X" not in before
        assert before <= after
        assert after == before | {"X"}

    def test_shortcut_function(self):
        assert unlockable([item("A")], DualTrackPolicy()) == frozenset({"A"})
