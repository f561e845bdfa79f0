"""Silence classification and intervention policy.

Not every pause is a problem. A silence after a calm, resonant turn is
usually peace or contemplation and should be left alone; the same silence
after a chaotic turn from a suffering user may be fear or disconnection and
deserves a gentle check-in much sooner.

Classification is a strict first-match rule list evaluated against the
pre-silence turn's drift/resonance/tone, the current suffering level and the
stabilizer state:

1. Peace: drift < 0.3, resonance > 0.7, calm tone
2. Contemplation: under 5 s, drift < 0.5, resonance > 0.5, neutral/calm tone
3. Fear: suffering > 0.6 and over 3 s
4. Disconnect: drift > 0.6 and resonance < 0.4
5. Uncertainty: stabilizer WARMING or OVERHEAT
6. Contemplation otherwise

Silences shorter than the minimum duration are not classified at all.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from liminal.regulation.stabilizer import StabilizerState
from liminal.signal import ToneTag, clamp01

logger = logging.getLogger(__name__)


class SilenceType(Enum):
    """Types of silence."""

    NONE = "None"
    CONTEMPLATION = "Contemplation"
    PEACE = "Peace"
    UNCERTAINTY = "Uncertainty"
    FEAR = "Fear"
    DISCONNECT = "Disconnect"


# Silences below this are not classified
DEFAULT_MIN_SILENCE_S = 1.5

# Rule thresholds
PEACE_MAX_DRIFT = 0.3
PEACE_MIN_RES = 0.7
CONTEMPLATION_MAX_DURATION_S = 5.0
CONTEMPLATION_MAX_DRIFT = 0.5
CONTEMPLATION_MIN_RES = 0.5
FEAR_MIN_SUFFERING = 0.6
FEAR_MIN_DURATION_S = 3.0
DISCONNECT_MIN_DRIFT = 0.6
DISCONNECT_MAX_RES = 0.4

# Quality weights
QUALITY_BASE = 0.5
QUALITY_RES_WEIGHT = 0.4
QUALITY_DRIFT_WEIGHT = 0.3
QUALITY_SUFFERING_WEIGHT = 0.3
GENERATIVE_QUALITY_THRESHOLD = 0.6

# Interrupt thresholds (seconds of silence that must be exceeded)
GENERATIVE_PATIENCE_S = 12.0
RESTLESS_PATIENCE_S = 6.0
DISTRESS_PATIENCE_S = 4.0
UNCERTAINTY_PATIENCE_S = 5.0

GENERATIVE_TYPES = (SilenceType.PEACE, SilenceType.CONTEMPLATION)


def classify_silence(
    duration_s: float,
    drift: float,
    resonance: float,
    tone: ToneTag,
    suffering: float,
    stabilizer_state: Optional[StabilizerState],
) -> SilenceType:
    """First-match classification of a silence of at least the minimum duration."""
    if drift < PEACE_MAX_DRIFT and resonance > PEACE_MIN_RES and tone == ToneTag.CALM:
        return SilenceType.PEACE

    if (
        duration_s < CONTEMPLATION_MAX_DURATION_S
        and drift < CONTEMPLATION_MAX_DRIFT
        and resonance > CONTEMPLATION_MIN_RES
        and tone in (ToneTag.NEUTRAL, ToneTag.CALM)
    ):
        return SilenceType.CONTEMPLATION

    if suffering > FEAR_MIN_SUFFERING and duration_s > FEAR_MIN_DURATION_S:
        return SilenceType.FEAR

    if drift > DISCONNECT_MIN_DRIFT and resonance < DISCONNECT_MAX_RES:
        return SilenceType.DISCONNECT

    if stabilizer_state in (StabilizerState.OVERHEAT, StabilizerState.WARMING):
        return SilenceType.UNCERTAINTY

    return SilenceType.CONTEMPLATION


def silence_quality(drift: float, resonance: float, suffering: float) -> float:
    return clamp01(
        QUALITY_BASE
        + QUALITY_RES_WEIGHT * (resonance - 0.5)
        + QUALITY_DRIFT_WEIGHT * (0.5 - drift)
        + QUALITY_SUFFERING_WEIGHT * (1.0 - suffering)
    )


def interrupt_threshold(silence_type: SilenceType, quality: float) -> Optional[float]:
    """Seconds of silence after which to check in; None means never."""
    if silence_type in GENERATIVE_TYPES:
        if quality > GENERATIVE_QUALITY_THRESHOLD:
            return GENERATIVE_PATIENCE_S
        return RESTLESS_PATIENCE_S
    if silence_type in (SilenceType.FEAR, SilenceType.DISCONNECT):
        return DISTRESS_PATIENCE_S
    if silence_type == SilenceType.UNCERTAINTY:
        return UNCERTAINTY_PATIENCE_S
    return None


@dataclass
class SilenceState:
    """
    Silence tracking for the current period and the session.

    Attributes:
        min_duration_s: Silences shorter than this are not classified
        current_silence_duration: Elapsed seconds of the current silence
        silence_type: Classification of the current silence
        silence_quality: Quality of the current silence
        is_generative: Current silence is peaceful/contemplative and of good quality
        should_interrupt: The policy recommends checking in now
        silence_count: Distinct qualifying silence periods this session
        total_silence_time: Seconds of qualifying silence this session
        max_silence_duration: Longest qualifying silence this session
        avg_silence_quality: Mean quality over closed silence periods
    """

    min_duration_s: float = DEFAULT_MIN_SILENCE_S
    current_silence_duration: float = 0.0
    silence_type: SilenceType = SilenceType.NONE
    silence_quality: float = 0.0
    is_generative: bool = False
    should_interrupt: bool = False
    silence_count: int = 0
    total_silence_time: float = 0.0
    max_silence_duration: float = 0.0
    avg_silence_quality: float = 0.0
    _episode_active: bool = field(default=False, repr=False)
    _closed_periods: int = field(default=0, repr=False)
    _episode_quality: float = field(default=0.0, repr=False)

    def detect(
        self,
        duration_s: float,
        drift: float,
        resonance: float,
        tone: ToneTag,
        suffering: float = 0.0,
        stabilizer_state: Optional[StabilizerState] = None,
    ) -> SilenceType:
        """Classify the silence elapsed so far.

        May be called repeatedly as the same silence grows; only newly
        elapsed time is added to the session total.

        Args:
            duration_s: Elapsed silence in seconds
            drift: Drift of the turn before the silence
            resonance: Resonance of the turn before the silence
            tone: Tone of the turn before the silence
            suffering: Current user suffering
            stabilizer_state: Current stabilizer state, None if disabled

        Returns:
            The silence type
        """
        duration_s = max(0.0, duration_s)
        drift = clamp01(drift)
        resonance = clamp01(resonance)
        suffering = clamp01(suffering)

        if duration_s < self.min_duration_s:
            if not self._episode_active:
                self.current_silence_duration = duration_s
            self.silence_type = SilenceType.NONE
            self.silence_quality = 0.0
            self.is_generative = False
            self.should_interrupt = False
            return self.silence_type

        if self._episode_active:
            newly_elapsed = max(0.0, duration_s - self.current_silence_duration)
        else:
            self._episode_active = True
            self.silence_count += 1
            newly_elapsed = duration_s

        self.total_silence_time += newly_elapsed
        self.current_silence_duration = max(self.current_silence_duration, duration_s)
        self.max_silence_duration = max(self.max_silence_duration, self.current_silence_duration)

        duration = self.current_silence_duration
        self.silence_type = classify_silence(duration, drift, resonance, tone, suffering, stabilizer_state)
        self.silence_quality = silence_quality(drift, resonance, suffering)
        self._episode_quality = self.silence_quality
        self.is_generative = (
            self.silence_type in GENERATIVE_TYPES
            and self.silence_quality > GENERATIVE_QUALITY_THRESHOLD
        )

        threshold = interrupt_threshold(self.silence_type, self.silence_quality)
        self.should_interrupt = threshold is not None and duration > threshold
        if self.should_interrupt:
            logger.info(
                "Silence check-in advised: %s for %.1fs (quality=%.2f)",
                self.silence_type.value,
                duration,
                self.silence_quality,
            )
        return self.silence_type

    def reset(self) -> None:
        """Close the current silence period on new user input.

        Folds the closed period's quality into the session average and
        clears the per-period fields; session counters are kept.
        """
        if self._episode_active:
            n = self._closed_periods
            self.avg_silence_quality = clamp01(
                (self.avg_silence_quality * n + self._episode_quality) / (n + 1)
            )
            self._closed_periods = n + 1

        self._episode_active = False
        self._episode_quality = 0.0
        self.current_silence_duration = 0.0
        self.silence_type = SilenceType.NONE
        self.silence_quality = 0.0
        self.is_generative = False
        self.should_interrupt = False

    def status_message(self) -> str:
        if self.silence_type == SilenceType.NONE:
            return f"Silence: none (count={self.silence_count})"
        flag = "generative" if self.is_generative else "watchful"
        advice = ", check in" if self.should_interrupt else ""
        return (
            f"Silence: {self.silence_type.value} {self.current_silence_duration:.1f}s "
            f"(quality={self.silence_quality:.2f}, {flag}{advice})"
        )
