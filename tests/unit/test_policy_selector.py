"""
Unit tests for policy selection and settings.
"""

import json
from datetime import timedelta

import pytest

from config import Settings
from srs_engine.core.errors import StageTableError
from srs_engine.core.stages import DEFAULT_MASTERY_TABLE, DualTrackTable, PolicyKind, SM2Config
from srs_engine.scheduling import (
    BackoffPolicy,
    DualTrackPolicy,
    MasteryPolicy,
    SM2Policy,
    get_policy,
    policy_from_settings,
)


class TestGetPolicy:
    @pytest.mark.parametrize(
        "kind, expected",
        [
            ("backoff", BackoffPolicy),
            ("mastery", MasteryPolicy),
            ("sm2", SM2Policy),
            ("dual_track", DualTrackPolicy),
            (PolicyKind.SM2, SM2Policy),
        ],
    )
    def test_kinds(self, kind, expected):
        assert isinstance(get_policy(kind), expected)

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown scheduling policy"):
            get_policy("leitner")

    def test_custom_table(self):
        config = SM2Config(first_interval=3)
        assert get_policy("sm2", config).config is config

    def test_mismatched_table(self):
        with pytest.raises(ValueError):
            get_policy("dual_track", DEFAULT_MASTERY_TABLE)


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SRS_POLICY", raising=False)
        settings = Settings(_env_file=None)

        assert settings.policy == "dual_track"
        assert settings.session_limit == 50
        assert settings.new_items_per_session == 20
        assert settings.strict_graph is True
        assert settings.get_unlock_delay() is None

    def test_environment_prefix(self, monkeypatch):
        monkeypatch.setenv("SRS_POLICY", "sm2")
        monkeypatch.setenv("SRS_UNLOCK_DELAY_MINUTES", "90")

        settings = Settings(_env_file=None)

        assert settings.policy == "sm2"
        assert settings.get_unlock_delay() == timedelta(minutes=90)

    def test_policy_from_settings(self):
        policy = policy_from_settings(Settings(_env_file=None, policy="mastery"))
        assert isinstance(policy, MasteryPolicy)

    def test_policy_from_settings_with_table(self, tmp_path):
        path = tmp_path / "table.json"
        path.write_text(
            json.dumps(
                {
                    "kind": "dual_track",
                    "stages": [
                        {"name": "Learning", "interval_hours": 2, "required_meaning": 3,
                         "required_reading": 0},
                        {"name": "Done", "interval_hours": None},
                    ],
                }
            )
        )
        settings = Settings(_env_file=None, policy="dual_track", stage_table_path=path)

        policy = policy_from_settings(settings)

        assert isinstance(policy.table, DualTrackTable)
        assert policy.table.thresholds(0) == (3, 0)

    def test_broken_table_file(self, tmp_path):
        path = tmp_path / "table.json"
        path.write_text("{not json")
        settings = Settings(_env_file=None, stage_table_path=path)

        with pytest.raises(StageTableError):
            policy_from_settings(settings)
