"""
Unit tests for the fixed five-stage mastery policy.
"""

from datetime import timedelta

import pytest

from srs_engine.core.errors import InvalidTransition
from srs_engine.core.items import LOCKED, NEW, Difficulty
from srs_engine.scheduling.mastery import MasteryPolicy


@pytest.fixture
def policy():
    return MasteryPolicy()


class TestMasteryTransitions:
    def test_first_correct_answer(self, policy, make_item, now):
        """0% + correct -> 25%, stage 25%, due in one day."""
        updated = policy.transition(make_item(mastery=0), Difficulty.MEDIUM, now)

        assert updated.mastery == 25
        assert updated.stage == 1
        assert updated.next_review_at == now + timedelta(days=1)

    def test_incorrect_drops_to_first_stage(self, policy, make_item, now):
        """50% + incorrect -> 25% mastery but stage 0, shown again the same day."""
        item = make_item(mastery=50, stage=2, streak=2, best_streak=2)

        updated = policy.transition(item, Difficulty.IMPOSSIBLE, now)

        assert updated.mastery == 25
        assert updated.stage == NEW
        assert updated.next_review_at == now + timedelta(hours=1)
        assert updated.streak == 0
        assert updated.best_streak == 2

    def test_mastery_caps_at_hundred(self, policy, make_item, now):
        updated = policy.transition(make_item(mastery=100, stage=4), True, now)

        assert updated.mastery == 100
        assert updated.stage == 4
        assert updated.next_review_at == now + timedelta(days=180)

    def test_mastery_floors_at_zero(self, policy, make_item, now):
        updated = policy.transition(make_item(mastery=10), False, now)
        assert updated.mastery == 0

    def test_hard_counts_as_incorrect(self, policy, make_item, now):
        updated = policy.transition(make_item(mastery=75, stage=3), "hard", now)

        assert updated.mastery == 50
        assert updated.stage == NEW
        assert updated.wrong_count == 1

    def test_climb_through_all_stages(self, policy, make_item, now):
        item = make_item()
        stages = []
        for _ in range(4):
            item = policy.transition(item, True, now)
            stages.append(policy.stage_name(item))

        assert stages == ["25%", "50%", "75%", "100%"]
        assert item.streak == 4


class TestMasteryQueries:
    def test_learned_at_quarter_mastery(self, policy, make_item):
        assert not policy.is_learned(make_item(mastery=0))
        assert policy.is_learned(make_item(mastery=25, stage=1))

    def test_locked_is_never_learned(self, policy, make_item):
        assert not policy.is_learned(make_item(mastery=50, stage=LOCKED))

    def test_locked_rejected(self, policy, make_item, now):
        with pytest.raises(InvalidTransition):
            policy.transition(make_item(stage=LOCKED), True, now)

    def test_stage_names(self, policy, make_item):
        assert policy.stage_name(make_item(stage=LOCKED)) == "Locked"
        assert policy.stage_name(make_item(stage=0)) == "0%"
