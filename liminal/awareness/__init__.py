"""Observation layers: meta-cognition, compassion and silence."""

from liminal.awareness.compassion import (
    CompassionAdjustments,
    CompassionState,
    SufferingType,
    classify_suffering,
)
from liminal.awareness.metacognition import MetaCognitionState, MetaStabilizer
from liminal.awareness.silence import (
    SilenceState,
    SilenceType,
    classify_silence,
    interrupt_threshold,
    silence_quality,
)

__all__ = [
    # Meta-cognition
    "MetaCognitionState",
    "MetaStabilizer",
    # Compassion
    "CompassionAdjustments",
    "CompassionState",
    "SufferingType",
    "classify_suffering",
    # Silence
    "SilenceState",
    "SilenceType",
    "classify_silence",
    "interrupt_threshold",
    "silence_quality",
]
