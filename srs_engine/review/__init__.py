"""
Due queues, study sessions and review forecasts.
"""

from .builder import DueQueueBuilder, ReviewTask, StudySession
from .forecast import (
    ForecastSlot,
    LevelProgress,
    difficult_items,
    level_progress,
    review_forecast,
    slot_label,
    stage_breakdown,
)

__all__ = [
    "DueQueueBuilder",
    "ReviewTask",
    "StudySession",
    "ForecastSlot",
    "LevelProgress",
    "review_forecast",
    "level_progress",
    "stage_breakdown",
    "difficult_items",
    "slot_label",
]
