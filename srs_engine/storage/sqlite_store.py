"""
SQLite Item Store.

Provides portable persistence for:
- Item scheduling state (one JSON document per item plus indexed columns)
- Review history log for statistics

Writes are version-checked: an item computed from a stale snapshot (for
example on a second device) is rejected with StaleItemError instead of
double-applying progress.

Database location: ~/.srs_engine/state.db
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from loguru import logger

from srs_engine.core.errors import StaleItemError
from srs_engine.core.items import LOCKED, LearnableItem, SubTrack

# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class ReviewRecord:
    """A single review event."""

    id: int
    item_id: str
    reviewed_at: datetime
    outcome: str
    track: SubTrack | None
    correct: bool


# =============================================================================
# Item Store
# =============================================================================


class SQLiteItemStore:
    """
    SQLite-backed item persistence.

    Handles:
    - Item state, version-checked on save
    - Review log with outcome and sub-track
    """

    DEFAULT_DB_PATH = Path.home() / ".srs_engine" / "state.db"

    def __init__(self, db_path: Path | str | None = None):
        """
        Initialize the item store.

        Args:
            db_path: Custom database path (defaults to ~/.srs_engine/state.db)
        """
        self.db_path = Path(db_path) if db_path else self.DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn: sqlite3.Connection | None = None
        self._init_schema()

        logger.info(f"SQLiteItemStore initialized at {self.db_path}")

    @property
    def conn(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path))
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _init_schema(self) -> None:
        """Initialize database schema."""
        cursor = self.conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS items (
                id TEXT PRIMARY KEY,
                level INTEGER NOT NULL DEFAULT 1,
                stage INTEGER NOT NULL DEFAULT 0,
                next_review_at TEXT,
                version INTEGER NOT NULL DEFAULT 0,
                data TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS review_log (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                item_id TEXT NOT NULL,
                reviewed_at TEXT NOT NULL,
                outcome TEXT NOT NULL,
                track TEXT,
                correct BOOLEAN NOT NULL,
                FOREIGN KEY (item_id) REFERENCES items(id)
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_items_level
            ON items(level)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_review_log_item
            ON review_log(item_id)
        """)

        self.conn.commit()

    # =========================================================================
    # Item Operations
    # =========================================================================

    def load_items(
        self,
        level: int | None = None,
        ids: Iterable[str] | None = None,
    ) -> list[LearnableItem]:
        """
        Load items, optionally filtered.

        Args:
            level: Only items at this level
            ids: Only these item ids

        Returns:
            Items ordered by level, then id
        """
        query = "SELECT data FROM items"
        clauses: list[str] = []
        params: list = []

        if level is not None:
            clauses.append("level = ?")
            params.append(level)
        if ids is not None:
            id_list = list(ids)
            if not id_list:
                return []
            clauses.append(f"id IN ({', '.join('?' for _ in id_list)})")
            params.extend(id_list)
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY level, id"

        cursor = self.conn.cursor()
        cursor.execute(query, params)
        return [LearnableItem.from_dict(json.loads(row["data"])) for row in cursor.fetchall()]

    def get_item(self, item_id: str) -> LearnableItem | None:
        items = self.load_items(ids=[item_id])
        return items[0] if items else None

    def import_items(self, items: Iterable[LearnableItem], replace: bool = False) -> int:
        """
        Insert items from an external source (deck import).

        Args:
            items: Items to insert
            replace: Overwrite existing items, discarding their progress

        Returns:
            Number of items written
        """
        verb = "INSERT OR REPLACE" if replace else "INSERT OR IGNORE"
        written = 0
        with self.conn:
            for item in items:
                cursor = self.conn.execute(
                    f"""
                    {verb} INTO items (id, level, stage, next_review_at, version, data)
                    VALUES (?, ?, ?, ?, ?, ?)
                """,
                    self._row(item),
                )
                written += cursor.rowcount
        logger.info(f"Imported {written} items into {self.db_path}")
        return written

    def save_item(self, item: LearnableItem) -> None:
        """
        Save one item if nobody else changed it since it was loaded.

        Raises:
            StaleItemError: Stored version is not item.version - 1
        """
        with self.conn:
            self._save(item)

    def save_items(self, items: Iterable[LearnableItem]) -> None:
        """Save several items in one transaction (all or nothing)."""
        with self.conn:
            for item in items:
                self._save(item)

    def _save(self, item: LearnableItem) -> None:
        expected = item.version - 1
        cursor = self.conn.execute(
            """
            UPDATE items SET
                level = ?, stage = ?, next_review_at = ?, version = ?, data = ?
            WHERE id = ? AND version = ?
        """,
            (*self._row(item)[1:], item.id, expected),
        )
        if cursor.rowcount:
            return

        exists = self.conn.execute("SELECT 1 FROM items WHERE id = ?", (item.id,)).fetchone()
        if exists:
            logger.warning(f"Rejected stale write for {item.id} (version {item.version})")
            raise StaleItemError(item.id, expected)

        self.conn.execute(
            """
            INSERT INTO items (id, level, stage, next_review_at, version, data)
            VALUES (?, ?, ?, ?, ?, ?)
        """,
            self._row(item),
        )

    @staticmethod
    def _row(item: LearnableItem) -> tuple:
        next_review = item.next_review_at.isoformat() if item.next_review_at else None
        return (
            item.id,
            item.level,
            item.stage,
            next_review,
            item.version,
            json.dumps(item.to_dict()),
        )

    # =========================================================================
    # Review Log Operations
    # =========================================================================

    def log_review(
        self,
        item_id: str,
        outcome: object,
        correct: bool,
        reviewed_at: datetime,
        track: SubTrack | None = None,
    ) -> int:
        """
        Log a review event.

        Returns:
            Review record ID
        """
        outcome_text = outcome.value if hasattr(outcome, "value") else str(outcome)
        with self.conn:
            cursor = self.conn.execute(
                """
                INSERT INTO review_log (item_id, reviewed_at, outcome, track, correct)
                VALUES (?, ?, ?, ?, ?)
            """,
                (
                    item_id,
                    reviewed_at.isoformat(),
                    outcome_text,
                    track.value if track else None,
                    correct,
                ),
            )
        return cursor.lastrowid

    def get_review_history(self, item_id: str, limit: int = 10) -> list[ReviewRecord]:
        """
        Get review history for an item, most recent first.
        """
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT * FROM review_log
            WHERE item_id = ?
            ORDER BY reviewed_at DESC, id DESC
            LIMIT ?
        """,
            (item_id, limit),
        )

        return [
            ReviewRecord(
                id=row["id"],
                item_id=row["item_id"],
                reviewed_at=datetime.fromisoformat(row["reviewed_at"]),
                outcome=row["outcome"],
                track=SubTrack(row["track"]) if row["track"] else None,
                correct=bool(row["correct"]),
            )
            for row in cursor.fetchall()
        ]

    # =========================================================================
    # Stats
    # =========================================================================

    def get_stats(self) -> dict:
        """
        Get overall learning statistics.

        Returns:
            Dictionary with aggregate stats
        """
        cursor = self.conn.cursor()

        cursor.execute("SELECT COUNT(*) as cnt FROM items")
        total_items = cursor.fetchone()["cnt"]

        cursor.execute("SELECT COUNT(*) as cnt FROM items WHERE stage = ?", (LOCKED,))
        locked_items = cursor.fetchone()["cnt"]

        cursor.execute("SELECT COUNT(*) as cnt FROM review_log")
        total_reviews = cursor.fetchone()["cnt"]

        # Retention over the last 100 reviews
        cursor.execute("""
            SELECT
                COUNT(CASE WHEN correct THEN 1 END) * 100.0 / COUNT(*) as retention
            FROM (
                SELECT correct FROM review_log ORDER BY reviewed_at DESC, id DESC LIMIT 100
            )
        """)
        row = cursor.fetchone()
        retention = row["retention"] if row["retention"] else 0

        return {
            "total_items": total_items,
            "locked_items": locked_items,
            "total_reviews": total_reviews,
            "retention_rate_percent": round(retention, 1),
        }
