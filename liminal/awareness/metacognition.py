"""Meta-cognitive self-observation.

Tracks how the regulation layer itself is behaving: how much sync is
correcting (self-drift), how present the system is given the stabilizer
state (self-resonance), and how confident it can be in its own measurements.
A MetaStabilizer smooths the self-observation so that a single noisy turn
does not flip the system into heightened self-monitoring.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from liminal.regulation.stabilizer import StabilizerState
from liminal.signal import clamp01

logger = logging.getLogger(__name__)

# Self-drift gain applied to the sync correction magnitude
SELF_DRIFT_GAIN = 5.0

# Self-resonance offset per stabilizer state
STATE_RESONANCE_OFFSET: dict[StabilizerState, float] = {
    StabilizerState.NORMAL: 0.1,
    StabilizerState.WARMING: 0.0,
    StabilizerState.OVERHEAT: -0.2,
    StabilizerState.COOLDOWN: -0.1,
}

# Familiarity bonus: clarity grows with observations, capped
CLARITY_BONUS_PER_OBSERVATION = 0.05
CLARITY_BONUS_CAP = 0.3

# Doubt is never fully extinguished
DOUBT_FLOOR = 0.1

# Predicate thresholds
DOUBT_EXPRESS_THRESHOLD = 0.6
DOUBT_CONFIDENCE_CEILING = 0.4
CLEAR_CLARITY_THRESHOLD = 0.7
STABLE_SELF_DRIFT_CEILING = 0.3
SELF_ADJUSTING_THRESHOLD = 0.5

# MetaStabilizer awareness triggers
AWARENESS_SELF_DRIFT_THRESHOLD = 0.4
AWARENESS_CONFIDENCE_FLOOR = 0.5


@dataclass
class MetaCognitionState:
    """
    Meta-cognitive state of the system.

    Attributes:
        self_drift: How unstable the system itself is (0=stable, 1=chaotic)
        self_resonance: How present the system is (0=absent, 1=fully aware)
        confidence: Confidence in current measurements
        clarity: Understanding of the situation
        doubt: Doubt about actions (floored at 0.1)
        observation_count: Number of observations made
    """

    self_drift: float = 0.0
    self_resonance: float = 1.0
    confidence: float = 0.5
    clarity: float = 0.5
    doubt: float = 0.5
    observation_count: int = 0

    def observe(
        self,
        measured_drift: float,
        measured_res: float,
        stabilizer_state: Optional[StabilizerState],
        sync_correction: float,
    ) -> None:
        """Observe the system's own state from this turn's metrics.

        Args:
            measured_drift: Drift measured this turn
            measured_res: Resonance measured this turn
            stabilizer_state: Current stabilizer state, None if the stabilizer is disabled
            sync_correction: Total sync correction magnitude for the turn
        """
        measured_drift = clamp01(measured_drift)
        measured_res = clamp01(measured_res)
        self.observation_count += 1

        # High sync corrections = high self-drift
        self.self_drift = clamp01(abs(sync_correction) * SELF_DRIFT_GAIN)

        offset = STATE_RESONANCE_OFFSET.get(stabilizer_state, 0.0) if stabilizer_state else 0.0
        self.self_resonance = clamp01(measured_res + offset)

        # Low drift + high resonance = high confidence
        self.confidence = clamp01((1.0 - measured_drift) * measured_res)

        bonus = min(self.observation_count * CLARITY_BONUS_PER_OBSERVATION, CLARITY_BONUS_CAP)
        self.clarity = clamp01(self.confidence + bonus)

        self.doubt = max(clamp01(1.0 - self.confidence), DOUBT_FLOOR)

    def should_express_doubt(self) -> bool:
        """Should the system voice uncertainty?"""
        return self.doubt > DOUBT_EXPRESS_THRESHOLD and self.confidence < DOUBT_CONFIDENCE_CEILING

    def is_clear_and_stable(self) -> bool:
        return self.clarity > CLEAR_CLARITY_THRESHOLD and self.self_drift < STABLE_SELF_DRIFT_CEILING

    def self_assess(self) -> str:
        """Short self-assessment line for status output."""
        if self.is_clear_and_stable():
            label = "Clear & Stable"
        elif self.should_express_doubt():
            label = "Uncertain"
        elif self.self_drift > SELF_ADJUSTING_THRESHOLD:
            label = "Self-Adjusting"
        else:
            label = "Observing"
        return (
            f"self_state={label} conf={self.confidence:.2f} "
            f"clarity={self.clarity:.2f} doubt={self.doubt:.2f}"
        )


class MetaStabilizer:
    """Stabilizes the meta-cognition layer itself with EMAs.

    Attributes:
        alpha: EMA smoothing factor
        ema_self_drift: Smoothed self-drift
        ema_confidence: Smoothed confidence
    """

    def __init__(self, alpha: float = 0.3):
        self.alpha = clamp01(alpha)
        self.ema_self_drift = 0.0
        self.ema_confidence = 0.5

    def update(self, meta: MetaCognitionState) -> None:
        a = self.alpha
        self.ema_self_drift = clamp01(a * meta.self_drift + (1.0 - a) * self.ema_self_drift)
        self.ema_confidence = clamp01(a * meta.confidence + (1.0 - a) * self.ema_confidence)

    def stable_metrics(self) -> tuple[float, float]:
        """Return (ema_self_drift, ema_confidence)."""
        return self.ema_self_drift, self.ema_confidence

    def needs_more_awareness(self) -> bool:
        """Should monitoring be heightened?"""
        return (
            self.ema_self_drift > AWARENESS_SELF_DRIFT_THRESHOLD
            or self.ema_confidence < AWARENESS_CONFIDENCE_FLOOR
        )
