"""
Scheduling policies and the policy selector.

Each policy is a pure state machine over LearnableItem values:
- BackoffPolicy: exponential backoff on an srs level
- MasteryPolicy: fixed five stages driven by a mastery percentage
- SM2Policy: SuperMemo-2 with ease factors
- DualTrackPolicy: meaning + reading stages with a terminal Retired stage
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from srs_engine.core.stages import (
    BackoffTable,
    DualTrackTable,
    MasteryTable,
    PolicyKind,
    SM2Config,
    StageTable,
    load_stage_table,
)

from .backoff import BackoffPolicy
from .base import SchedulingPolicy
from .dual_track import DualTrackPolicy
from .mastery import MasteryPolicy
from .sm2 import SM2Policy, grade_from_response

if TYPE_CHECKING:
    from config import Settings

POLICIES: dict[PolicyKind, type[SchedulingPolicy]] = {
    PolicyKind.BACKOFF: BackoffPolicy,
    PolicyKind.MASTERY: MasteryPolicy,
    PolicyKind.SM2: SM2Policy,
    PolicyKind.DUAL_TRACK: DualTrackPolicy,
}

_TABLE_TYPES: dict[PolicyKind, type] = {
    PolicyKind.BACKOFF: BackoffTable,
    PolicyKind.MASTERY: MasteryTable,
    PolicyKind.SM2: SM2Config,
    PolicyKind.DUAL_TRACK: DualTrackTable,
}


def get_policy(
    kind: PolicyKind | str,
    table: StageTable | None = None,
) -> SchedulingPolicy:
    """
    Build the policy for a configuration choice.

    Args:
        kind: Policy kind or its string value
        table: Optional stage table (defaults to the policy's built-in table)

    Returns:
        SchedulingPolicy instance

    Raises:
        ValueError: Unknown kind, or a table that does not fit the policy
    """
    try:
        kind = PolicyKind(kind)
    except ValueError:
        valid = ", ".join(k.value for k in PolicyKind)
        raise ValueError(f"Unknown scheduling policy {kind!r} (expected one of: {valid})") from None

    if table is not None and not isinstance(table, _TABLE_TYPES[kind]):
        raise ValueError(
            f"{type(table).__name__} cannot configure the {kind.value} policy"
        )

    policy = POLICIES[kind](table)
    logger.debug(f"Selected scheduling policy: {policy!r}")
    return policy


def policy_from_settings(settings: Settings | None = None) -> SchedulingPolicy:
    """Build the policy named in settings, with its custom table if configured."""
    if settings is None:
        from config import get_settings

        settings = get_settings()

    table = None
    if settings.stage_table_path is not None:
        table = load_stage_table(settings.stage_table_path)
    return get_policy(settings.policy, table)


__all__ = [
    "SchedulingPolicy",
    "BackoffPolicy",
    "MasteryPolicy",
    "SM2Policy",
    "DualTrackPolicy",
    "POLICIES",
    "get_policy",
    "policy_from_settings",
    "grade_from_response",
]
