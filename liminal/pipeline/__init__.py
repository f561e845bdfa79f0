"""Turn pipeline: stages, merged adjustments and session driver."""

from liminal.pipeline.health import HealthMonitor
from liminal.pipeline.runner import STAGE_ORDER, Pipeline, build_pipeline
from liminal.pipeline.session import Session
from liminal.pipeline.stages import (
    CompassionStage,
    GuardStage,
    MetaCognitionStage,
    SilenceStage,
    Stage,
    StabilizerStage,
    SyncStage,
)
from liminal.pipeline.turn import Adjustments, TurnContext, TurnRecord, TurnResult

__all__ = [
    "Adjustments",
    "CompassionStage",
    "GuardStage",
    "HealthMonitor",
    "MetaCognitionStage",
    "Pipeline",
    "STAGE_ORDER",
    "Session",
    "SilenceStage",
    "Stage",
    "StabilizerStage",
    "SyncStage",
    "TurnContext",
    "TurnRecord",
    "TurnResult",
    "build_pipeline",
]
