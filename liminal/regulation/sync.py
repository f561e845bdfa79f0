"""Neural sync: fast residual correction against configured baselines.

Each turn the residual between the baseline and the measured drift/resonance
drives four small corrections. ``lr_fast`` scales the within-session
correction; ``sync_step`` caps the pace correction so that one outlier turn
cannot destabilise tempo. The residuals are also accumulated so that an
external consolidation store can bias the next session's baseline at the
slower ``lr_slow`` rate (see ``SyncState.slow_increments``).
"""

import logging
from dataclasses import dataclass
from typing import Optional

from liminal.regulation.stabilizer import StabilizerState
from liminal.signal import clamp, clamp01

logger = logging.getLogger(__name__)

# Pause correction scale and bounds (ms)
PAUSE_SCALE_MS = 80.0
PAUSE_MIN_MS = -20
PAUSE_MAX_MS = 40

# Fraction of the scaled residual turned into resonance boost / drift relief
BOOST_SCALE = 0.05

# Extra calming applied while the stabilizer is in OVERHEAT
OVERHEAT_PACE_NUDGE = -0.01
OVERHEAT_PAUSE_NUDGE_MS = 10

# Cap on the per-session slow bias handed to consolidation
SLOW_BIAS_LIMIT = 0.03


@dataclass
class SyncConfig:
    """Learning rates and step bound for neural sync.

    Attributes:
        lr_fast: Within-session correction rate
        lr_slow: Cross-session bias rate (consumed by consolidation)
        sync_step: Maximum absolute pace correction per turn
    """

    lr_fast: float = 0.15
    lr_slow: float = 0.05
    sync_step: float = 0.02

    def __post_init__(self):
        self.lr_fast = clamp01(self.lr_fast)
        self.lr_slow = clamp01(self.lr_slow)
        self.sync_step = max(0.0, self.sync_step)


@dataclass(frozen=True)
class Baselines:
    """Target drift/resonance for the session."""

    drift: float = 0.35
    resonance: float = 0.65


@dataclass(frozen=True)
class SyncSeeds:
    """Warm-start biases merged from the persistence collaborators.

    Attributes:
        pace_bias: Pace offset from the device profile
        pause_bias_ms: Pause offset from the device profile
        res_warm: Resonance warmth carried over from earlier sessions
        drift_soft: Drift softening carried over from earlier sessions
    """

    pace_bias: float = 0.0
    pause_bias_ms: int = 0
    res_warm: float = 0.0
    drift_soft: float = 0.0


@dataclass(frozen=True)
class SyncCorrection:
    """One turn of sync output."""

    pace_delta: float = 0.0
    pause_delta_ms: int = 0
    resonance_boost: float = 0.0
    drift_reduction: float = 0.0

    @property
    def magnitude(self) -> float:
        """Total correction as observed by meta-cognition."""
        return abs(self.pace_delta) + self.pause_delta_ms / 100.0


def merge_seeds(
    emote_res: float,
    emote_drift: float,
    device_pace: float,
    device_pause_ms: int,
    trace_res: float,
    trace_drift: float,
) -> SyncSeeds:
    """Combine emotive, device and trace-store seeds into one SyncSeeds."""
    return SyncSeeds(
        pace_bias=device_pace,
        pause_bias_ms=device_pause_ms,
        res_warm=(emote_res + trace_res) * 0.5,
        drift_soft=(emote_drift + trace_drift) * 0.5,
    )


class SyncState:
    """Residual correction state for one session.

    Attributes:
        config: Sync learning rates
        baselines: Target drift/resonance
        seeds: Warm-start biases
        accum_drift: Sum of drift residuals this session
        accum_res: Sum of resonance residuals this session
        steps: Turns processed this session
    """

    def __init__(self, config: Optional[SyncConfig] = None, baselines: Optional[Baselines] = None):
        self.config = config or SyncConfig()
        self.baselines = baselines or Baselines()
        self.seeds = SyncSeeds()
        self.accum_drift = 0.0
        self.accum_res = 0.0
        self.steps = 0

    def warm_start(self, seeds: SyncSeeds, baselines: Optional[Baselines] = None) -> None:
        """Install seeds (and optionally new baselines) and clear accumulators."""
        self.seeds = seeds
        if baselines is not None:
            self.baselines = baselines
        self.accum_drift = 0.0
        self.accum_res = 0.0
        self.steps = 0

    def step(
        self,
        drift: float,
        resonance: float,
        state: StabilizerState = StabilizerState.NORMAL,
    ) -> SyncCorrection:
        """Compute this turn's correction from the residual error.

        Args:
            drift: Measured drift
            resonance: Measured resonance
            state: Current stabilizer state

        Returns:
            SyncCorrection with |pace_delta| <= sync_step
        """
        cfg = self.config
        residual_drift = clamp(self.baselines.drift - clamp01(drift), -1.0, 1.0)
        residual_res = clamp(self.baselines.resonance - clamp01(resonance), -1.0, 1.0)

        self.accum_drift += residual_drift
        self.accum_res += residual_res
        self.steps += 1

        step = cfg.sync_step
        pace = clamp(residual_res * cfg.lr_fast, -step, step)
        pause = int(clamp(round(-residual_drift * cfg.lr_fast * PAUSE_SCALE_MS), PAUSE_MIN_MS, PAUSE_MAX_MS))
        res_boost = clamp(cfg.lr_fast * max(residual_res, 0.0) * BOOST_SCALE, 0.0, step)
        drift_reduction = clamp(cfg.lr_fast * max(residual_drift, 0.0) * BOOST_SCALE, 0.0, step)

        if state == StabilizerState.OVERHEAT:
            pace = clamp(pace + OVERHEAT_PACE_NUDGE, -step, step)
            pause += OVERHEAT_PAUSE_NUDGE_MS

        return SyncCorrection(
            pace_delta=pace,
            pause_delta_ms=pause,
            resonance_boost=res_boost,
            drift_reduction=drift_reduction,
        )

    def slow_increments(self) -> tuple[float, float]:
        """Turn-averaged residuals scaled by lr_slow, for consolidation.

        Returns:
            (drift_bias, res_bias), each within +/-SLOW_BIAS_LIMIT
        """
        if self.steps == 0:
            return 0.0, 0.0
        mean_drift = self.accum_drift / self.steps
        mean_res = self.accum_res / self.steps
        drift_bias = clamp(mean_drift * self.config.lr_slow, -SLOW_BIAS_LIMIT, SLOW_BIAS_LIMIT)
        res_bias = clamp(mean_res * self.config.lr_slow, -SLOW_BIAS_LIMIT, SLOW_BIAS_LIMIT)
        logger.debug("Sync slow increments drift=%.4f res=%.4f over %d steps", drift_bias, res_bias, self.steps)
        return drift_bias, res_bias
