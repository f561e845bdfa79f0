"""Scripted prosody source.

Stands in for the speech-recognition and prosody collaborators: each
utterance maps deterministically to a Signal so that runs are reproducible.
Drift, resonance, tempo and the preceding pause are read from slices of a
64-bit FNV-1a hash of the normalised utterance; the tone follows from the
tempo and nudges drift/resonance the way a calm or energetic delivery would.
"""

import logging
from pathlib import Path
from typing import Iterator, Optional

from liminal.signal import Signal, ToneTag, clamp01

logger = logging.getLogger(__name__)

DEFAULT_UTTERANCE = "hello liminal"

FNV_OFFSET_BASIS = 0xCBF29CE484222325
FNV_PRIME = 0x100000001B3
MASK_64 = 0xFFFFFFFFFFFFFFFF

# Tempo band (wpm) and tone boundaries
TEMPO_MIN = 100.0
TEMPO_SPAN = 120.0
CALM_BELOW_WPM = 120.0
ENERGETIC_ABOVE_WPM = 180.0

# Longest simulated pause before an utterance
MAX_PAUSE_MS = 8000.0


def normalize_text(text: str) -> str:
    return text.strip().lower()


def fnv1a_64(text: str) -> int:
    h = FNV_OFFSET_BASIS
    for byte in text.encode("utf-8"):
        h ^= byte
        h = (h * FNV_PRIME) & MASK_64
    return h


def hash_slices(text: str) -> tuple[float, float, float, float]:
    """Four independent [0, 1] values derived from the utterance."""
    h = fnv1a_64(text)
    drift = ((h >> 11) & 0xFFFF) / 65535.0
    resonance = ((h >> 27) & 0xFFFF) / 65535.0
    tempo = ((h >> 43) & 0xFFFF) / 65535.0
    pause = (h & 0x7FF) / 2047.0
    return drift, resonance, tempo, pause


def tone_for_tempo(tempo: float) -> ToneTag:
    if tempo < CALM_BELOW_WPM:
        return ToneTag.CALM
    if tempo > ENERGETIC_ABOVE_WPM:
        return ToneTag.ENERGETIC
    return ToneTag.NEUTRAL


def apply_tone_bias(drift: float, resonance: float, tone: ToneTag) -> tuple[float, float]:
    if tone == ToneTag.CALM:
        resonance += 0.02
    elif tone == ToneTag.ENERGETIC:
        resonance -= 0.01
        drift += 0.02
    return clamp01(drift), clamp01(resonance)


def signal_for(utterance: str, repeated_theme: bool = False) -> Signal:
    """Deterministic Signal for one utterance."""
    text = normalize_text(utterance)
    drift, resonance, tempo_slice, pause_slice = hash_slices(text)
    tempo = TEMPO_MIN + tempo_slice * TEMPO_SPAN
    tone = tone_for_tempo(tempo)
    drift, resonance = apply_tone_bias(drift, resonance, tone)
    return Signal(
        drift=drift,
        resonance=resonance,
        tone=tone,
        tempo=tempo,
        pause_ms=round(pause_slice * MAX_PAUSE_MS),
        text=utterance.strip(),
        repeated_theme=repeated_theme,
    )


def load_utterances(
    script: Optional[str] = None,
    inputs_path: Optional[Path] = None,
    cycles: int = 1,
) -> list[str]:
    """Utterances from an inputs file, else a ';'-separated script, else defaults.

    The list is padded with the default utterance up to ``cycles`` turns.
    """
    utterances: list[str] = []

    if inputs_path is not None:
        try:
            lines = Path(inputs_path).read_text(encoding="utf-8").splitlines()
            utterances = [line.strip() for line in lines if line.strip()]
        except OSError as e:
            logger.error(f"Failed to read inputs file '{inputs_path}': {e}")

    if not utterances and script:
        utterances = [part.strip() for part in script.split(";") if part.strip()]

    while len(utterances) < max(1, cycles):
        utterances.append(DEFAULT_UTTERANCE)
    return utterances


class ScriptedSignalSource:
    """Yields one Signal per utterance, flagging repeated themes.

    A theme counts as repeated when the normalised utterance was already
    heard earlier in the session.
    """

    def __init__(self, utterances: list[str]):
        self.utterances = list(utterances)

    def __len__(self) -> int:
        return len(self.utterances)

    def __iter__(self) -> Iterator[Signal]:
        seen: set[str] = set()
        for utterance in self.utterances:
            key = normalize_text(utterance)
            yield signal_for(utterance, repeated_theme=key in seen)
            seen.add(key)
