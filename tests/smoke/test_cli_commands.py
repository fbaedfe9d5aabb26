"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import json

import pytest
from typer.testing import CliRunner

from config import get_settings
from srs_engine.cli import app
from srs_engine.core.items import LearnableItem
from srs_engine.storage.sqlite_store import SQLiteItemStore

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Run every command from an empty directory with default settings."""
    monkeypatch.chdir(tmp_path)
    for name in ("SRS_POLICY", "SRS_STAGE_TABLE_PATH", "SRS_DB_PATH", "SRS_QUEUE_SEED"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def db(tmp_path):
    return str(tmp_path / "state.db")


def run(*args, input=None):
    return runner.invoke(app, list(args), input=input)


def imported(db, deck_file, policy="dual_track"):
    result = run("--db", db, "--policy", policy, "import", str(deck_file))
    assert result.exit_code == 0, result.output
    return result


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self):
        """Main help should list every command."""
        result = run("--help")

        assert result.exit_code == 0
        for command in ("import", "queue", "review", "unlock", "forecast", "stats"):
            assert command in result.output

    @pytest.mark.parametrize("command", ["import", "queue", "review", "unlock", "forecast"])
    def test_command_help(self, command):
        result = run(command, "--help")
        assert result.exit_code == 0


class TestImportAndUnlock:
    def test_import(self, db, deck_file):
        result = imported(db, deck_file)
        assert "Imported 4 of 4 items" in result.output

    def test_import_invalid_deck(self, db, tmp_path):
        deck = tmp_path / "broken.json"
        deck.write_text(json.dumps([{"level": 1}]))

        result = run("--db", db, "import", str(deck))

        assert result.exit_code == 1
        assert "Cannot load deck" in result.output

    def test_import_rejects_cycles(self, db, tmp_path):
        deck = tmp_path / "cycle.json"
        deck.write_text(
            json.dumps([{"id": "a", "prerequisites": ["b"]}, {"id": "b", "prerequisites": ["a"]}])
        )

        result = run("--db", db, "import", str(deck))

        assert result.exit_code == 1
        assert "cycle" in result.output

    def test_unlock(self, db, deck_file):
        imported(db, deck_file)

        result = run("--db", db, "unlock")

        assert result.exit_code == 0
        assert "Unlocked 2 items" in result.output
        assert "radical-a" in result.output

    def test_unlock_dry_run(self, db, deck_file):
        imported(db, deck_file)

        result = run("--db", db, "unlock", "--dry-run")

        assert result.exit_code == 0
        assert "unlockable" in result.output
        assert "level_gate" in result.output

    def test_unknown_policy(self, db):
        result = run("--db", db, "--policy", "leitner", "queue")
        assert result.exit_code == 1


class TestReviewCommands:
    def test_queue_empty(self, db):
        result = run("--db", db, "queue")
        assert result.exit_code == 0
        assert "Nothing due" in result.output

    def test_queue_after_unlock(self, db, deck_file):
        imported(db, deck_file)
        run("--db", db, "unlock")

        result = run("--db", db, "queue")

        assert result.exit_code == 0
        assert "radical-a" in result.output
        assert "2 lessons" in result.output

    def test_review_session(self, db, deck_file):
        imported(db, deck_file)
        run("--db", db, "unlock")

        result = run("--db", db, "review", "--limit", "2", input="y\ny\n")

        assert result.exit_code == 0, result.output
        assert "Session complete" in result.output
        assert "Answered: 2" in result.output

    def test_review_quit(self, db, deck_file):
        imported(db, deck_file)
        run("--db", db, "unlock")

        result = run("--db", db, "review", input="q\n")

        assert result.exit_code == 0
        assert "No reviews answered" in result.output

    def test_sm2_review(self, db, deck_file):
        imported(db, deck_file, policy="sm2")
        run("--db", db, "--policy", "sm2", "unlock")

        result = run("--db", db, "--policy", "sm2", "review", "--limit", "1", input="5\n")

        assert result.exit_code == 0, result.output
        assert "Rep 1 (1d)" in result.output

    def test_forecast_and_stats(self, db, deck_file):
        imported(db, deck_file)
        run("--db", db, "unlock")
        run("--db", db, "review", "--limit", "2", input="y\nn\n")

        forecast = run("--db", db, "forecast")
        stats = run("--db", db, "stats")

        assert forecast.exit_code == 0
        assert "Upcoming reviews" in forecast.output
        assert stats.exit_code == 0
        assert "Retention rate" in stats.output
        assert "50.0%" in stats.output

    def test_stats_lists_difficult_items(self, db):
        store = SQLiteItemStore(db)
        store.import_items(
            [
                LearnableItem(id="tricky", stage=2, correct_count=1, wrong_count=3),
                LearnableItem(id="easy", stage=7, correct_count=6, wrong_count=0),
            ]
        )
        store.close()

        result = run("--db", db, "--policy", "backoff", "stats")

        assert result.exit_code == 0, result.output
        assert "Difficult items" in result.output
        assert "tricky: 3 wrong, 1 right" in result.output
        assert "Sprout" in result.output
        assert "Plant" in result.output
