"""Hysteresis stabilizer for drift/resonance.

The stabilizer smooths the raw per-turn drift and resonance with an
exponential moving average and runs a four-state machine over the smoothed
values:

    NORMAL -> WARMING -> OVERHEAT -> COOLDOWN -> NORMAL

OVERHEAT is a one-turn latch: the next turn always lands in COOLDOWN, which
then holds for ``cool_steps`` turns. This prevents noise from bouncing the
system straight back into WARMING after an overheat. A re-entrant check runs
before the transitions above and returns any state to NORMAL once both
averages are back inside the normal band.

Each state maps to an Advice: small pace/pause/articulation nudges that are
largest in OVERHEAT and absent in NORMAL.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from liminal.signal import clamp, clamp01

logger = logging.getLogger(__name__)


class StabilizerState(Enum):
    """States of the stabilizer hysteresis loop."""

    NORMAL = "Normal"
    WARMING = "Warming"
    OVERHEAT = "Overheat"
    COOLDOWN = "Cooldown"


# Valid state transitions (from_state -> allowed_to_states)
VALID_TRANSITIONS: dict[StabilizerState, set[StabilizerState]] = {
    StabilizerState.NORMAL: {StabilizerState.NORMAL, StabilizerState.WARMING},
    StabilizerState.WARMING: {
        StabilizerState.NORMAL,
        StabilizerState.WARMING,
        StabilizerState.OVERHEAT,
    },
    StabilizerState.OVERHEAT: {StabilizerState.NORMAL, StabilizerState.COOLDOWN},
    StabilizerState.COOLDOWN: {StabilizerState.NORMAL, StabilizerState.COOLDOWN},
}

# Upper bound on the extra calming applied in OVERHEAT
MAX_CALM_BOOST = 0.2


@dataclass
class StabilizerConfig:
    """Thresholds and smoothing for the stabilizer.

    Attributes:
        ema_alpha: EMA smoothing factor (weight of the newest sample)
        warm_drift: EMA(drift) at or above which NORMAL becomes WARMING
        hot_drift: EMA(drift) at or above which WARMING may become OVERHEAT
        low_res: EMA(resonance) at or below which WARMING may become OVERHEAT
        cool_steps: Turns held in COOLDOWN before returning to NORMAL
        calm_boost: Extra pace/pause calming applied in OVERHEAT
    """

    ema_alpha: float = 0.4
    warm_drift: float = 0.32
    hot_drift: float = 0.42
    low_res: float = 0.58
    cool_steps: int = 3
    calm_boost: float = 0.08

    def __post_init__(self):
        self.ema_alpha = clamp01(self.ema_alpha)
        self.warm_drift = clamp01(self.warm_drift)
        self.hot_drift = clamp01(self.hot_drift)
        self.low_res = clamp01(self.low_res)
        self.cool_steps = max(1, int(self.cool_steps))
        self.calm_boost = clamp(self.calm_boost, 0.0, MAX_CALM_BOOST)


@dataclass(frozen=True)
class Advice:
    """Per-state delivery nudges."""

    pace_delta: float = 0.0
    pause_delta_ms: int = 0
    articulation_hint: float = 0.0


class Stabilizer:
    """EMA smoothing plus hysteresis state machine.

    Attributes:
        config: Stabilizer thresholds
        state: Current hysteresis state
        steps_in_state: Turns spent in the current state (hold counter)
        ema_drift: Smoothed drift
        ema_res: Smoothed resonance
    """

    def __init__(self, config: Optional[StabilizerConfig] = None):
        self.config = config or StabilizerConfig()
        self.state = StabilizerState.NORMAL
        self.steps_in_state = 0
        self.ema_drift = 0.0
        self.ema_res = 0.0
        self._initialized = False

    def push(self, drift: float, resonance: float) -> StabilizerState:
        """Feed one turn of drift/resonance and advance the state machine.

        Args:
            drift: Raw drift for the turn (clamped to [0, 1])
            resonance: Raw resonance for the turn (clamped to [0, 1])

        Returns:
            The state after this turn
        """
        drift = clamp01(drift)
        resonance = clamp01(resonance)

        if not self._initialized:
            self.ema_drift = drift
            self.ema_res = resonance
            self._initialized = True
        else:
            alpha = self.config.ema_alpha
            self.ema_drift = clamp01(alpha * drift + (1.0 - alpha) * self.ema_drift)
            self.ema_res = clamp01(alpha * resonance + (1.0 - alpha) * self.ema_res)

        next_state = self._next_state()
        if next_state != self.state and not self.can_transition_to(next_state):
            raise ValueError(
                f"Invalid transition: {self.state.value} -> {next_state.value}. "
                f"Valid targets: {[s.value for s in VALID_TRANSITIONS.get(self.state, set())]}"
            )
        if next_state != self.state:
            logger.debug(
                "Stabilizer %s -> %s (ema_drift=%.3f ema_res=%.3f)",
                self.state.value,
                next_state.value,
                self.ema_drift,
                self.ema_res,
            )
            self.state = next_state
            self.steps_in_state = 0
        else:
            self.steps_in_state = min(self.steps_in_state + 1, self.config.cool_steps * 2)

        return self.state

    def can_transition_to(self, target: StabilizerState) -> bool:
        """Check whether the hysteresis loop allows moving to target."""
        return target in VALID_TRANSITIONS.get(self.state, set())

    def _next_state(self) -> StabilizerState:
        cfg = self.config

        # Re-entrant check: both averages back inside the normal band
        if self.ema_drift < cfg.warm_drift and self.ema_res > cfg.low_res:
            return StabilizerState.NORMAL

        if self.state == StabilizerState.NORMAL:
            if self.ema_drift >= cfg.warm_drift:
                return StabilizerState.WARMING
            return StabilizerState.NORMAL

        if self.state == StabilizerState.WARMING:
            if self.ema_drift >= cfg.hot_drift and self.ema_res <= cfg.low_res:
                return StabilizerState.OVERHEAT
            return StabilizerState.WARMING

        if self.state == StabilizerState.OVERHEAT:
            return StabilizerState.COOLDOWN

        # COOLDOWN: the counter was reset on entry, so this turn is hold step + 1
        if self.steps_in_state + 1 >= cfg.cool_steps:
            return StabilizerState.NORMAL
        return StabilizerState.COOLDOWN

    def advice(self) -> Advice:
        """Delivery nudges for the current state."""
        if self.state == StabilizerState.WARMING:
            return Advice(pace_delta=-0.03, pause_delta_ms=10, articulation_hint=0.02)
        if self.state == StabilizerState.OVERHEAT:
            calm = self.config.calm_boost
            return Advice(
                pace_delta=-0.07 - calm,
                pause_delta_ms=30 + round(calm * 100),
                articulation_hint=0.05,
            )
        if self.state == StabilizerState.COOLDOWN:
            return Advice(pace_delta=-0.04, pause_delta_ms=20, articulation_hint=0.03)
        return Advice()

    def format_status(self) -> str:
        return format_status(self.state, self.ema_drift, self.ema_res)


def format_status(state: StabilizerState, ema_drift: float, ema_res: float) -> str:
    """One-line stabilizer status for logs and dashboards."""
    return (
        f"[stabilizer] state={state.value} "
        f"ema_drift={clamp01(ema_drift):.2f} ema_res={clamp01(ema_res):.2f}"
    )
