"""
Deck loader: learnable items from JSON files.

A deck file is either a list of item records or an object with an
"items" list. Records are validated with pydantic before any item is
built, so one bad record rejects the whole file.

Record fields:
- id (required), level, prerequisites (or prerequisite_ids)
- stage: an index, a stage label ("locked", "New", "S2", or an older
  name such as "guru" or "sprout"), or omitted for Locked
- meaning_only: dual-track item without a reading track (radicals)
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path

from loguru import logger
from pydantic import AliasChoices, BaseModel, Field, ValidationError

from srs_engine.core.errors import SchedulingError
from srs_engine.core.items import LOCKED, DualTrackProgress, LearnableItem
from srs_engine.core.stages import DEFAULT_DUAL_TRACK_TABLE, DualTrackTable, migrate_stage_name


class DeckError(SchedulingError):
    """Deck file could not be read or failed validation."""

    pass


class ItemRecord(BaseModel):
    """One item as written in a deck file."""

    id: str = Field(min_length=1)
    level: int = Field(default=1, ge=1)
    prerequisite_ids: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("prerequisite_ids", "prerequisites"),
    )
    stage: int | str | None = None
    meaning_only: bool = False

    def to_item(self, table: DualTrackTable = DEFAULT_DUAL_TRACK_TABLE) -> LearnableItem:
        """
        Build a LearnableItem.

        Args:
            table: Table used to resolve stage labels

        Returns:
            LearnableItem instance
        """
        if self.stage is None:
            stage = LOCKED
        elif isinstance(self.stage, int):
            stage = max(self.stage, LOCKED)
        else:
            stage = migrate_stage_name(self.stage, table)

        tracks = DualTrackProgress(reading_enabled=False) if self.meaning_only else None

        return LearnableItem(
            id=self.id,
            level=self.level,
            prerequisite_ids=frozenset(self.prerequisite_ids),
            stage=stage,
            tracks=tracks,
        )


class DeckFile(BaseModel):
    items: list[ItemRecord]


def iter_records(path: str | Path) -> Iterator[ItemRecord]:
    """
    Read and validate the records of a deck file.

    Raises:
        DeckError: File unreadable, not JSON, or a record is invalid
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
        if isinstance(raw, list):
            raw = {"items": raw}
        deck = DeckFile.model_validate(raw)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise DeckError(f"Cannot load deck {path}: {e}") from e

    yield from deck.items


def load_deck(
    path: str | Path,
    table: DualTrackTable = DEFAULT_DUAL_TRACK_TABLE,
) -> list[LearnableItem]:
    """
    Load learnable items from a deck file.

    Duplicate ids keep the first record and log a warning.

    Args:
        path: JSON deck file
        table: Table used to resolve stage labels

    Returns:
        Items in file order

    Raises:
        DeckError: File unreadable or invalid
    """
    items: list[LearnableItem] = []
    seen: set[str] = set()

    for record in iter_records(path):
        if record.id in seen:
            logger.warning(f"Duplicate item id {record.id!r} in {path}, keeping the first")
            continue
        seen.add(record.id)
        items.append(record.to_item(table))

    logger.info(f"Loaded {len(items)} items from {path}")
    return items
