"""
Dependency graph and unlock resolution.
"""

from .graph import PrerequisiteGraph
from .resolver import BlockingReason, UnlockReport, UnlockResolver, unlockable

__all__ = [
    "PrerequisiteGraph",
    "UnlockResolver",
    "UnlockReport",
    "BlockingReason",
    "unlockable",
]
