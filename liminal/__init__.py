"""Liminal: layered conversational self-regulation.

Per-turn prosody signals flow through a hysteresis stabilizer, neural sync
and three observation layers (meta-cognition, compassion, silence) to
produce merged delivery adjustments.
"""

from liminal.signal import Signal, ToneTag, clamp01

__version__ = "0.1.0"

__all__ = ["Signal", "ToneTag", "clamp01", "__version__"]
