"""Session health monitor: baseline breach counting."""

from dataclasses import dataclass, field

import numpy as np


@dataclass
class HealthMonitor:
    """Counts turns whose output drifted above / resonated below baseline.

    Attributes:
        baseline_drift: Drift above this is a breach
        baseline_res: Resonance below this is a breach
        drift_breaches: Turns with drift above baseline
        res_breaches: Turns with resonance below baseline
        total: Turns observed
    """

    baseline_drift: float = 0.35
    baseline_res: float = 0.65
    drift_breaches: int = 0
    res_breaches: int = 0
    total: int = 0
    _drift: list[float] = field(default_factory=list, repr=False)
    _res: list[float] = field(default_factory=list, repr=False)

    def update(self, drift: float, resonance: float) -> None:
        self.total += 1
        if drift > self.baseline_drift:
            self.drift_breaches += 1
        if resonance < self.baseline_res:
            self.res_breaches += 1
        self._drift.append(drift)
        self._res.append(resonance)

    @property
    def max_drift(self) -> float:
        return float(np.max(self._drift)) if self._drift else 0.0

    @property
    def min_res(self) -> float:
        return float(np.min(self._res)) if self._res else 0.0

    @property
    def ok(self) -> bool:
        return self.drift_breaches == 0 and self.res_breaches == 0

    def summary_lines(self) -> list[str]:
        status = "OK" if self.ok else "ATTENTION"
        return [
            f"[health] baseline_drift>{self.baseline_drift:.2f}, baseline_res<{self.baseline_res:.2f}",
            f"[health] breaches: drift={self.drift_breaches}, res={self.res_breaches}, total={self.total}",
            f"[health] worst: drift_max={self.max_drift:.2f}, res_min={self.min_res:.2f}",
            f"[health] status: {status}",
        ]
