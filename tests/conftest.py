"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import json
import random
import sys
from datetime import UTC, datetime
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from srs_engine.core.clock import FixedClock  # noqa: E402
from srs_engine.core.items import LOCKED, NEW, LearnableItem  # noqa: E402

START = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (SQLite in tmp_path)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def now():
    """A fixed review timestamp."""
    return START


@pytest.fixture
def clock():
    """A clock pinned to the same instant as `now`."""
    return FixedClock(START)


@pytest.fixture
def rng():
    """Seeded random source for reproducible shuffles."""
    return random.Random(1234)


@pytest.fixture
def make_item():
    """Factory for items with sensible defaults."""

    def _make(item_id="item-1", **fields):
        fields.setdefault("stage", NEW)
        return LearnableItem(id=item_id, **fields)

    return _make


@pytest.fixture
def sample_items():
    """
    A two-level collection.

    Level 1: radical-a, radical-b (unlocked, New), kanji-1 (locked, needs radical-a)
    Level 2: kanji-2 (locked, needs kanji-1)
    """
    return [
        LearnableItem(id="radical-a", level=1, stage=NEW),
        LearnableItem(id="radical-b", level=1, stage=NEW),
        LearnableItem(id="kanji-1", level=1, stage=LOCKED, prerequisite_ids={"radical-a"}),
        LearnableItem(id="kanji-2", level=2, stage=LOCKED, prerequisite_ids={"kanji-1"}),
    ]


@pytest.fixture
def deck_file(tmp_path):
    """A small JSON deck on disk."""
    deck = {
        "items": [
            {"id": "radical-a", "level": 1, "meaning_only": True},
            {"id": "radical-b", "level": 1, "meaning_only": True},
            {"id": "kanji-1", "level": 1, "prerequisites": ["radical-a", "radical-b"]},
            {"id": "vocab-1", "level": 2, "prerequisites": ["kanji-1"]},
        ]
    }
    path = tmp_path / "deck.json"
    path.write_text(json.dumps(deck), encoding="utf-8")
    return path
