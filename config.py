"""
Configuration settings for the srs-engine scheduler.

Uses Pydantic Settings for environment variable management with .env file support.
Every setting can be overridden with an SRS_-prefixed variable, e.g.
SRS_POLICY=sm2 or SRS_SESSION_LIMIT=100.
"""
from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SRS_",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Scheduling
    # ========================================
    policy: Literal["backoff", "mastery", "sm2", "dual_track"] = Field(
        default="dual_track",
        description="Scheduling algorithm for the collection",
    )
    stage_table_path: Path | None = Field(
        default=None,
        description="JSON file with a custom mastery or dual-track stage table",
    )
    strict_graph: bool = Field(
        default=True,
        description="Refuse to work on a collection whose prerequisites form a cycle",
    )
    unlock_delay_minutes: int = Field(
        default=0,
        ge=0,
        description="Delay before a freshly unlocked item is first due (0 = immediately)",
    )

    # ========================================
    # Storage
    # ========================================
    db_path: Path = Field(
        default=Path.home() / ".srs_engine" / "state.db",
        description="SQLite database with item state and review log",
    )

    # ========================================
    # Sessions
    # ========================================
    session_limit: int = Field(
        default=50,
        ge=1,
        description="Maximum review tasks per session",
    )
    new_items_per_session: int = Field(
        default=20,
        ge=0,
        description="Maximum never-reviewed items introduced per session",
    )
    queue_seed: int | None = Field(
        default=None,
        description="Seed for queue shuffling (unset = random order every session)",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Console log level",
    )
    log_file: Path | None = Field(
        default=None,
        description="Optional log file (rotated at 10 MB)",
    )

    def get_unlock_delay(self) -> timedelta | None:
        """Unlock delay as a timedelta, None when items are due at once."""
        if self.unlock_delay_minutes <= 0:
            return None
        return timedelta(minutes=self.unlock_delay_minutes)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
