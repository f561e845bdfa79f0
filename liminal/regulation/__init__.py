"""Regulation layer: hysteresis stabilizer, neural sync and soft guard."""

from liminal.regulation.guard import GuardAction, GuardConfig, GuardKind, check_and_rephrase
from liminal.regulation.stabilizer import (
    Advice,
    Stabilizer,
    StabilizerConfig,
    StabilizerState,
    format_status,
)
from liminal.regulation.sync import (
    Baselines,
    SyncConfig,
    SyncCorrection,
    SyncSeeds,
    SyncState,
    merge_seeds,
)

__all__ = [
    # Stabilizer
    "Advice",
    "Stabilizer",
    "StabilizerConfig",
    "StabilizerState",
    "format_status",
    # Neural sync
    "Baselines",
    "SyncConfig",
    "SyncCorrection",
    "SyncSeeds",
    "SyncState",
    "merge_seeds",
    # Soft guard
    "GuardAction",
    "GuardConfig",
    "GuardKind",
    "check_and_rephrase",
]
