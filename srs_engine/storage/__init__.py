"""
Persistence: the ItemStore contract, the SQLite store and deck import.
"""

from .base import ItemStore, ReviewLog
from .deck import DeckError, ItemRecord, load_deck
from .sqlite_store import ReviewRecord, SQLiteItemStore

__all__ = [
    "ItemStore",
    "ReviewLog",
    "SQLiteItemStore",
    "ReviewRecord",
    "ItemRecord",
    "DeckError",
    "load_deck",
]
