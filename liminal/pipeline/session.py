"""Session driver: runs a bounded sequence of turns through the pipeline."""

import logging
from typing import Iterable, Optional

import numpy as np

from liminal.config import LiminalSettings
from liminal.pipeline.health import HealthMonitor
from liminal.pipeline.runner import Pipeline, build_pipeline
from liminal.pipeline.stages import SyncStage
from liminal.pipeline.turn import TurnResult
from liminal.regulation.sync import SyncSeeds
from liminal.signal import Signal

logger = logging.getLogger(__name__)


class Session:
    """One conversational session.

    Owns the pipeline (and through it every layer's state), the health
    monitor and the per-turn results.

    Attributes:
        settings: Run settings
        pipeline: The turn pipeline
        health: Breach monitor, None when alarms are off
        results: TurnResults in turn order
    """

    def __init__(
        self,
        settings: Optional[LiminalSettings] = None,
        seeds: Optional[SyncSeeds] = None,
        pipeline: Optional[Pipeline] = None,
    ):
        self.settings = settings or LiminalSettings()
        self.pipeline = pipeline or build_pipeline(self.settings, seeds)
        self.health: Optional[HealthMonitor] = None
        if self.settings.alarm:
            self.health = HealthMonitor(
                baseline_drift=self.settings.baseline_drift,
                baseline_res=self.settings.baseline_res,
            )
        self.results: list[TurnResult] = []

    def step(self, signal: Signal) -> TurnResult:
        result = self.pipeline.run_turn(signal)
        self.results.append(result)
        if self.health is not None:
            self.health.update(result.adjustments.drift, result.adjustments.resonance)
        return result

    def run(self, signals: Iterable[Signal]) -> list[TurnResult]:
        """Process every signal in order and return this run's results."""
        start = len(self.results)
        for signal in signals:
            self.step(signal)
        logger.info("Session processed %d turns", len(self.results) - start)
        return self.results[start:]

    def history(self) -> tuple[np.ndarray, np.ndarray]:
        """Adjusted (drift, resonance) per turn."""
        drift = np.array([r.adjustments.drift for r in self.results], dtype=float)
        resonance = np.array([r.adjustments.resonance for r in self.results], dtype=float)
        return drift, resonance

    def slow_increments(self) -> tuple[float, float]:
        """Turn-averaged sync residuals for consolidation; zeros without sync."""
        stage = self.pipeline.get_stage(SyncStage.name)
        if not isinstance(stage, SyncStage):
            return 0.0, 0.0
        return stage.state.slow_increments()

    @property
    def strict_failed(self) -> bool:
        """Strict mode is on and the session breached a baseline."""
        return self.settings.strict and self.health is not None and not self.health.ok

    def summary(self) -> dict:
        """Aggregate statistics for the finished session."""
        drift, resonance = self.history()
        drift_bias, res_bias = self.slow_increments()
        summary = {
            "turns": len(self.results),
            "mean_drift": float(drift.mean()) if drift.size else 0.0,
            "mean_resonance": float(resonance.mean()) if resonance.size else 0.0,
            "slow_drift_bias": drift_bias,
            "slow_res_bias": res_bias,
        }
        if self.results and self.results[-1].stabilizer_state is not None:
            summary["final_state"] = self.results[-1].stabilizer_state.value
        return summary
