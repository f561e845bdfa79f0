"""Per-turn prosody signal consumed by the regulation pipeline.

A Signal is produced once per conversational turn by the prosody collaborator
(see liminal.simulate for the scripted stand-in). Values arriving out of range
are clamped on construction so that no downstream stage ever observes a
drift or resonance outside [0, 1].
"""

from dataclasses import dataclass
from enum import Enum


class ToneTag(Enum):
    """Coarse tone label derived from speaking tempo."""

    NEUTRAL = "Neutral"
    CALM = "Calm"
    ENERGETIC = "Energetic"


# Tempo floor in words per minute (tempo must stay positive)
MIN_TEMPO_WPM = 1.0


def clamp01(value: float) -> float:
    """Clamp a value to the unit interval."""
    return max(0.0, min(1.0, value))


def clamp(value: float, low: float, high: float) -> float:
    """Clamp a value to [low, high]."""
    return max(low, min(high, value))


@dataclass(frozen=True)
class Signal:
    """Immutable per-turn reading.

    Attributes:
        drift: Semantic/emotional instability (0=stable, 1=chaotic)
        resonance: Perceived presence/connection (0=absent, 1=fully present)
        tone: Tone tag of the turn
        tempo: Speaking tempo in words per minute
        pause_ms: Silence that preceded this turn, in milliseconds
        text: Utterance text, used by the soft guard
        repeated_theme: Theme collaborator reports the user is circling a topic
        new_input: The user spoke this turn, closing the preceding silence
    """

    drift: float
    resonance: float
    tone: ToneTag = ToneTag.NEUTRAL
    tempo: float = 150.0
    pause_ms: float = 0.0
    text: str = ""
    repeated_theme: bool = False
    new_input: bool = True

    def __post_init__(self):
        """Clamp all values to valid range."""
        # frozen dataclass: bypass __setattr__ for normalisation
        object.__setattr__(self, "drift", clamp01(float(self.drift)))
        object.__setattr__(self, "resonance", clamp01(float(self.resonance)))
        object.__setattr__(self, "tempo", max(MIN_TEMPO_WPM, float(self.tempo)))
        object.__setattr__(self, "pause_ms", max(0.0, float(self.pause_ms)))

    @property
    def pause_seconds(self) -> float:
        """Preceding silence in seconds."""
        return self.pause_ms / 1000.0
