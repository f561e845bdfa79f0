"""Compassion detector: user suffering estimation and kindness response.

Suffering is a composite score built from independent, additive signals:

1. Chaos: high drift with low resonance
2. Overload: the stabilizer is in OVERHEAT
3. Anxious tempo: energetic tone above 180 wpm
4. Stuck: the theme collaborator reports a repeated theme (builds a streak)
5. Extended streak: more than two consecutive stuck turns

The score is clamped to [0, 1] and typed into None/Mild/Moderate/Severe.
Kindness is measured separately from the actions the system actually took
this turn, and the two combine with healing intent into a compassion level
that scales the compassion adjustments.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from liminal.regulation.stabilizer import StabilizerState
from liminal.signal import ToneTag, clamp01

logger = logging.getLogger(__name__)


class SufferingType(Enum):
    """Graded suffering classification."""

    NONE = "None"
    MILD = "Mild"
    MODERATE = "Moderate"
    SEVERE = "Severe"


# ─────────────────────────────────────────────────────────────────────────────
# Suffering signals
# ─────────────────────────────────────────────────────────────────────────────

CHAOS_DRIFT_THRESHOLD = 0.5
CHAOS_RES_THRESHOLD = 0.6
CHAOS_DRIFT_GAIN = 2.0
CHAOS_RES_GAIN = 1.5

OVERLOAD_SCORE = 0.3

ANXIOUS_TEMPO_WPM = 180.0
ANXIOUS_TEMPO_SCORE = 0.2

STUCK_SCORE = 0.25
STREAK_THRESHOLD = 2
STREAK_SCORE = 0.3

# Suffering type boundaries (upper bounds, exclusive)
MILD_THRESHOLD = 0.2
MODERATE_THRESHOLD = 0.4
SEVERE_THRESHOLD = 0.7

# healing_intent = base + suffering * gain
HEALING_BASE = 0.3
HEALING_GAIN = 0.7

# ─────────────────────────────────────────────────────────────────────────────
# Kindness terms (each bounded)
# ─────────────────────────────────────────────────────────────────────────────

KINDNESS_BASE = 0.5
REPHRASE_KINDNESS = 0.2
PACE_KINDNESS_GAIN = 0.5
PACE_KINDNESS_CAP = 0.1
PAUSE_KINDNESS_DIVISOR_MS = 100.0
PAUSE_KINDNESS_CAP = 0.2
RESONANCE_KINDNESS_GAIN = 2.0
RESONANCE_KINDNESS_CAP = 0.2

# compassion_level weights
SUFFERING_WEIGHT = 0.5
HEALING_WEIGHT = 0.3
KINDNESS_WEIGHT = 0.2
ACTIVATION_THRESHOLD = 0.5

# Adjustment gains per unit of compassion_level
ADJ_RESONANCE_GAIN = 0.1
ADJ_PACE_GAIN = -0.05
ADJ_PAUSE_GAIN_MS = 30.0
ADJ_DRIFT_GAIN = 0.08


def classify_suffering(score: float) -> SufferingType:
    if score < MILD_THRESHOLD:
        return SufferingType.NONE
    if score < MODERATE_THRESHOLD:
        return SufferingType.MILD
    if score < SEVERE_THRESHOLD:
        return SufferingType.MODERATE
    return SufferingType.SEVERE


@dataclass
class CompassionState:
    """
    Compassion metrics for the system.

    Attributes:
        user_suffering: Detected level of user suffering (0=none, 1=severe)
        suffering_type: Graded classification of user_suffering
        response_kindness: How gentle the system's response is
        healing_intent: Desire to help, scaled from suffering
        compassion_level: Compassion activation level
        suffering_count: Distinct suffering episodes (rising edges across 0.2)
        suffering_streak: Consecutive turns with a repeated theme
    """

    user_suffering: float = 0.0
    suffering_type: SufferingType = SufferingType.NONE
    response_kindness: float = 0.5
    healing_intent: float = 0.3
    compassion_level: float = 0.0
    suffering_count: int = 0
    suffering_streak: int = 0

    def detect_suffering(
        self,
        drift: float,
        resonance: float,
        tone: ToneTag,
        tempo: float,
        stabilizer_state: Optional[StabilizerState],
        repeated_theme: bool,
    ) -> float:
        """Score user suffering from this turn's conversational signals.

        Args:
            drift: Measured drift
            resonance: Measured resonance
            tone: Tone tag of the turn
            tempo: Speaking tempo (wpm)
            stabilizer_state: Current stabilizer state, None if disabled
            repeated_theme: Theme collaborator reports a repeated theme

        Returns:
            The clamped suffering score
        """
        drift = clamp01(drift)
        resonance = clamp01(resonance)
        was_suffering = self.user_suffering > MILD_THRESHOLD
        score = 0.0

        if drift > CHAOS_DRIFT_THRESHOLD and resonance < CHAOS_RES_THRESHOLD:
            score += (drift - CHAOS_DRIFT_THRESHOLD) * CHAOS_DRIFT_GAIN
            score += (CHAOS_RES_THRESHOLD - resonance) * CHAOS_RES_GAIN

        if stabilizer_state == StabilizerState.OVERHEAT:
            score += OVERLOAD_SCORE

        if tone == ToneTag.ENERGETIC and tempo > ANXIOUS_TEMPO_WPM:
            score += ANXIOUS_TEMPO_SCORE

        if repeated_theme:
            score += STUCK_SCORE
            self.suffering_streak += 1
        else:
            self.suffering_streak = 0

        if self.suffering_streak > STREAK_THRESHOLD:
            score += STREAK_SCORE

        self.user_suffering = clamp01(score)
        self.suffering_type = classify_suffering(self.user_suffering)

        if self.user_suffering > MILD_THRESHOLD and not was_suffering:
            self.suffering_count += 1
            logger.info(
                "Suffering episode %d started (score=%.2f type=%s)",
                self.suffering_count,
                self.user_suffering,
                self.suffering_type.value,
            )

        self.healing_intent = clamp01(HEALING_BASE + self.user_suffering * HEALING_GAIN)
        return self.user_suffering

    def calculate_kindness(
        self,
        was_rephrased: bool,
        pace_delta: float,
        pause_delta_ms: int,
        resonance_boost: float,
    ) -> float:
        """Rate the kindness of the actions taken this turn."""
        kindness = KINDNESS_BASE

        if was_rephrased:
            kindness += REPHRASE_KINDNESS

        # Slowing down is gentle
        if pace_delta < 0.0:
            kindness += min(abs(pace_delta) * PACE_KINDNESS_GAIN, PACE_KINDNESS_CAP)

        # Pauses give space
        if pause_delta_ms > 0:
            kindness += min(pause_delta_ms / PAUSE_KINDNESS_DIVISOR_MS, PAUSE_KINDNESS_CAP)

        if resonance_boost > 0.0:
            kindness += min(resonance_boost * RESONANCE_KINDNESS_GAIN, RESONANCE_KINDNESS_CAP)

        self.response_kindness = clamp01(kindness)
        return self.response_kindness

    def update_compassion_level(self) -> float:
        activation = (
            self.user_suffering * SUFFERING_WEIGHT
            + self.healing_intent * HEALING_WEIGHT
            + self.response_kindness * KINDNESS_WEIGHT
        )
        self.compassion_level = clamp01(activation)
        return self.compassion_level

    def should_activate_compassion(self) -> bool:
        return self.compassion_level > ACTIVATION_THRESHOLD

    def should_offer_support(self) -> bool:
        """Explicit support is offered for moderate or severe suffering."""
        return self.suffering_type in (SufferingType.MODERATE, SufferingType.SEVERE)

    def status_message(self) -> str:
        if self.suffering_type == SufferingType.MILD:
            return (
                f"Compassion: Gentle Care (suffering={self.user_suffering:.2f}, "
                f"healing={self.healing_intent:.2f})"
            )
        if self.suffering_type == SufferingType.MODERATE:
            return (
                f"Compassion: Active Support (suffering={self.user_suffering:.2f}, "
                f"kindness={self.response_kindness:.2f})"
            )
        if self.suffering_type == SufferingType.SEVERE:
            return (
                f"Compassion: Deep Care (suffering={self.user_suffering:.2f}, "
                f"streak={self.suffering_streak})"
            )
        return f"Compassion: Observing (suffering={self.user_suffering:.2f})"


@dataclass(frozen=True)
class CompassionAdjustments:
    """Adjustments applied while compassion is active.

    Attributes:
        resonance_boost: Extra resonance
        pace_adjustment: Pace change (negative = slower, gentler)
        pause_adjustment_ms: Extra pause time
        drift_reduction: Calming drift reduction
    """

    resonance_boost: float = 0.0
    pace_adjustment: float = 0.0
    pause_adjustment_ms: int = 0
    drift_reduction: float = 0.0

    @classmethod
    def from_compassion(cls, state: CompassionState) -> "CompassionAdjustments":
        """Scale adjustments linearly with the compassion level."""
        level = state.compassion_level
        return cls(
            resonance_boost=level * ADJ_RESONANCE_GAIN,
            pace_adjustment=level * ADJ_PACE_GAIN,
            pause_adjustment_ms=int(level * ADJ_PAUSE_GAIN_MS),
            drift_reduction=level * ADJ_DRIFT_GAIN,
        )
