"""Pipeline stages wrapping each regulation and observation layer.

A stage owns its layer's state object, reads the turn context written by the
stages before it, and writes its own slot. Disabled layers simply have no
stage in the pipeline.
"""

import copy
import logging
from typing import Optional

from liminal.awareness.compassion import CompassionAdjustments, CompassionState
from liminal.awareness.metacognition import MetaCognitionState, MetaStabilizer
from liminal.awareness.silence import DEFAULT_MIN_SILENCE_S, SilenceState
from liminal.pipeline.turn import TurnContext
from liminal.regulation.guard import GuardConfig, GuardKind, check_and_rephrase
from liminal.regulation.stabilizer import Stabilizer, StabilizerConfig, StabilizerState
from liminal.regulation.sync import Baselines, SyncConfig, SyncSeeds, SyncState
from liminal.signal import Signal, clamp01

logger = logging.getLogger(__name__)


class Stage:
    """Base class for a pipeline stage."""

    name: str = "stage"

    def process(self, ctx: TurnContext) -> None:
        raise NotImplementedError


class StabilizerStage(Stage):
    name = "stabilizer"

    def __init__(self, config: Optional[StabilizerConfig] = None):
        self.stabilizer = Stabilizer(config)

    def process(self, ctx: TurnContext) -> None:
        state = self.stabilizer.push(ctx.drift, ctx.resonance)
        advice = self.stabilizer.advice()
        ctx.stabilizer_state = state
        ctx.stab_ema_drift = self.stabilizer.ema_drift
        ctx.stab_ema_res = self.stabilizer.ema_res
        ctx.stab_steps_in_state = self.stabilizer.steps_in_state
        ctx.pace += advice.pace_delta
        ctx.pause_ms += advice.pause_delta_ms
        ctx.articulation_hint += advice.articulation_hint
        ctx.statuses[self.name] = self.stabilizer.format_status()


class SyncStage(Stage):
    """Residual correction; applies warm-start seeds on its first turn."""

    name = "sync"

    def __init__(
        self,
        config: Optional[SyncConfig] = None,
        baselines: Optional[Baselines] = None,
        seeds: Optional[SyncSeeds] = None,
    ):
        self.state = SyncState(config, baselines)
        if seeds is not None:
            self.state.warm_start(seeds)
        self._seeds_applied = False

    def process(self, ctx: TurnContext) -> None:
        if not self._seeds_applied:
            seeds = self.state.seeds
            ctx.pace += seeds.pace_bias
            ctx.pause_ms += seeds.pause_bias_ms
            ctx.resonance = clamp01(ctx.resonance + seeds.res_warm)
            ctx.drift = clamp01(ctx.drift - seeds.drift_soft)
            self._seeds_applied = True

        correction = self.state.step(
            ctx.drift,
            ctx.resonance,
            ctx.stabilizer_state or StabilizerState.NORMAL,
        )
        ctx.sync = correction
        ctx.pace += correction.pace_delta
        ctx.pause_ms += correction.pause_delta_ms
        ctx.resonance = clamp01(ctx.resonance + correction.resonance_boost)
        ctx.drift = clamp01(ctx.drift - correction.drift_reduction)
        ctx.statuses[self.name] = (
            f"[sync] pace={correction.pace_delta:+.3f} pause={correction.pause_delta_ms:+d}ms "
            f"res_boost={correction.resonance_boost:.3f} drift_relief={correction.drift_reduction:.3f}"
        )


class MetaCognitionStage(Stage):
    name = "meta"

    def __init__(self, stabilizer_alpha: float = 0.3):
        self.meta = MetaCognitionState()
        self.meta_stabilizer = MetaStabilizer(stabilizer_alpha)

    def process(self, ctx: TurnContext) -> None:
        correction = ctx.sync.magnitude if ctx.sync is not None else 0.0
        self.meta.observe(ctx.measured_drift, ctx.measured_res, ctx.stabilizer_state, correction)
        self.meta_stabilizer.update(self.meta)

        ctx.meta = copy.copy(self.meta)
        ctx.needs_more_awareness = self.meta_stabilizer.needs_more_awareness()
        ctx.statuses[self.name] = f"[meta] {self.meta.self_assess()}"
        if self.meta.should_express_doubt():
            logger.info("System is uncertain about its measurements (doubt=%.2f)", self.meta.doubt)


class GuardStage(Stage):
    name = "guard"

    def __init__(self, config: Optional[GuardConfig] = None):
        self.config = config or GuardConfig()

    def process(self, ctx: TurnContext) -> None:
        action = check_and_rephrase(ctx.signal.text, ctx.drift, ctx.resonance, self.config)
        ctx.guard = action
        if action.kind == GuardKind.WARN:
            ctx.statuses[self.name] = action.message
        elif action.kind == GuardKind.REPHRASED:
            ctx.statuses[self.name] = f"[soft-guard] {action.message}"


class CompassionStage(Stage):
    name = "compassion"

    def __init__(self):
        self.compassion = CompassionState()

    def process(self, ctx: TurnContext) -> None:
        signal = ctx.signal
        comp = self.compassion
        comp.detect_suffering(
            ctx.measured_drift,
            ctx.measured_res,
            signal.tone,
            signal.tempo,
            ctx.stabilizer_state,
            signal.repeated_theme,
        )

        sync = ctx.sync
        comp.calculate_kindness(
            was_rephrased=ctx.guard is not None and ctx.guard.rephrased,
            pace_delta=sync.pace_delta if sync else 0.0,
            pause_delta_ms=sync.pause_delta_ms if sync else 0,
            resonance_boost=sync.resonance_boost if sync else 0.0,
        )
        comp.update_compassion_level()

        ctx.compassion_active = comp.should_activate_compassion()
        if ctx.compassion_active:
            adj = CompassionAdjustments.from_compassion(comp)
            ctx.resonance = clamp01(ctx.resonance + adj.resonance_boost)
            ctx.drift = clamp01(ctx.drift - adj.drift_reduction)
            ctx.pace += adj.pace_adjustment
            ctx.pause_ms += adj.pause_adjustment_ms

        ctx.compassion = copy.copy(comp)
        status = f"[compassion] {comp.status_message()}"
        if comp.should_offer_support():
            status += " - offering support"
        ctx.statuses[self.name] = status


class SilenceStage(Stage):
    """Classifies the silence that preceded this turn.

    The pre-silence reading is the previous turn's signal; on the first turn
    the current signal stands in for it.
    """

    name = "silence"

    def __init__(self, min_duration_s: float = DEFAULT_MIN_SILENCE_S):
        self.silence = SilenceState(min_duration_s=min_duration_s)
        self._previous: Optional[Signal] = None

    def process(self, ctx: TurnContext) -> None:
        signal = ctx.signal
        before = self._previous or signal
        suffering = ctx.compassion.user_suffering if ctx.compassion is not None else 0.0

        self.silence.detect(
            signal.pause_seconds,
            before.drift,
            before.resonance,
            before.tone,
            suffering,
            ctx.stabilizer_state,
        )
        ctx.silence = copy.copy(self.silence)
        ctx.statuses[self.name] = f"[silence] {self.silence.status_message()}"

        if signal.new_input:
            self.silence.reset()
            self._previous = signal
