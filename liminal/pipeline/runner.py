"""Ordered turn-processing pipeline.

The pipeline is built once at startup from the settings: each enabled layer
contributes one stage, in the fixed order

    stabilizer -> sync -> meta -> guard -> compassion -> silence

Later stages read what earlier stages wrote for the same turn; nothing flows
backwards within a turn.
"""

import logging
from typing import Optional, Sequence

from liminal.config import LiminalSettings
from liminal.pipeline.stages import (
    CompassionStage,
    GuardStage,
    MetaCognitionStage,
    SilenceStage,
    Stage,
    StabilizerStage,
    SyncStage,
)
from liminal.pipeline.turn import TurnContext, TurnResult
from liminal.regulation.sync import SyncSeeds
from liminal.signal import Signal

logger = logging.getLogger(__name__)

STAGE_ORDER = ("stabilizer", "sync", "meta", "guard", "compassion", "silence")


class Pipeline:
    """Runs one turn at a time through the enabled stages.

    Attributes:
        stages: Enabled stages in processing order
        base_pace: Pace factor before any adjustment
        base_pause_ms: Pause before any adjustment
        turns: Number of turns processed
    """

    def __init__(self, stages: Sequence[Stage], base_pace: float = 1.0, base_pause_ms: int = 60):
        names = [stage.name for stage in stages]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate stages in pipeline: {names}")
        positions = [STAGE_ORDER.index(name) for name in names if name in STAGE_ORDER]
        if positions != sorted(positions):
            raise ValueError(f"Stages out of order: {names}. Expected order: {list(STAGE_ORDER)}")
        self.stages = list(stages)
        self.base_pace = base_pace
        self.base_pause_ms = base_pause_ms
        self.turns = 0

    @property
    def stage_names(self) -> list[str]:
        return [stage.name for stage in self.stages]

    def get_stage(self, name: str) -> Optional[Stage]:
        """Return the enabled stage with this name, or None."""
        for stage in self.stages:
            if stage.name == name:
                return stage
        return None

    def run_turn(self, signal: Signal) -> TurnResult:
        """Process one turn and return its merged result."""
        ctx = TurnContext(signal=signal, pace=self.base_pace, pause_ms=self.base_pause_ms)
        for stage in self.stages:
            stage.process(ctx)

        result = TurnResult.from_context(self.turns, ctx)
        self.turns += 1
        logger.debug(
            "Turn %d: drift=%.2f res=%.2f pace=%.2f pause=%dms",
            result.index,
            result.adjustments.drift,
            result.adjustments.resonance,
            result.adjustments.pace,
            result.adjustments.pause_ms,
        )
        return result


def build_pipeline(settings: Optional[LiminalSettings] = None, seeds: Optional[SyncSeeds] = None) -> Pipeline:
    """Construct the pipeline for a run from its settings.

    Args:
        settings: Run settings (defaults when omitted)
        seeds: Warm-start seeds for neural sync

    Returns:
        Pipeline with one stage per enabled layer
    """
    settings = settings or LiminalSettings()
    stages: list[Stage] = []

    if settings.stabilizer:
        stages.append(StabilizerStage(settings.stabilizer_config()))
    if settings.sync:
        stages.append(SyncStage(settings.sync_config(), settings.baselines(), seeds))
    if settings.awareness:
        stages.append(MetaCognitionStage(settings.meta_stab_alpha))
    if settings.guard:
        stages.append(GuardStage(settings.guard_config()))
    if settings.compassion:
        stages.append(CompassionStage())
    if settings.silence:
        stages.append(SilenceStage(settings.silence_min_s))

    pipeline = Pipeline(stages, base_pace=settings.base_pace, base_pause_ms=settings.base_pause_ms)
    logger.info("Pipeline built: %s", " -> ".join(pipeline.stage_names) or "(empty)")
    return pipeline
