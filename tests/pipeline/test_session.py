"""Tests for the session driver and health monitor."""

import numpy as np
import pytest

from liminal.config import LiminalSettings
from liminal.pipeline import HealthMonitor, Session
from liminal.regulation.sync import SyncSeeds
from liminal.signal import Signal


class TestSession:
    """Tests for Session."""

    def test_run_returns_only_this_runs_results(self, settings, calm_signal):
        session = Session(settings)
        session.run([calm_signal, calm_signal])
        later = session.run([calm_signal])
        assert len(later) == 1
        assert later[0].index == 2
        assert len(session.results) == 3

    def test_history_arrays(self, settings, calm_signal, chaotic_signal):
        session = Session(settings)
        session.run([calm_signal, chaotic_signal])
        drift, resonance = session.history()
        assert isinstance(drift, np.ndarray)
        assert drift.shape == (2,)
        assert resonance.shape == (2,)
        assert drift[1] > drift[0]

    def test_summary(self, settings, calm_signal):
        session = Session(settings)
        session.run([calm_signal] * 3)
        summary = session.summary()
        assert summary["turns"] == 3
        assert 0.0 <= summary["mean_drift"] <= 1.0
        assert summary["final_state"] == "Normal"

    def test_empty_summary(self, settings):
        summary = Session(settings).summary()
        assert summary["turns"] == 0
        assert summary["mean_drift"] == 0.0
        assert "final_state" not in summary

    def test_slow_increments_zero_without_sync(self, calm_signal):
        session = Session(LiminalSettings(sync=False))
        session.run([calm_signal])
        assert session.slow_increments() == (0.0, 0.0)

    def test_slow_increments_follow_residuals(self, only_layers):
        session = Session(only_layers("sync"))
        session.run([Signal(drift=0.9, resonance=0.1)])
        drift_bias, res_bias = session.slow_increments()
        assert drift_bias < 0.0
        assert res_bias > 0.0

    def test_seeds_apply_on_first_turn_only(self, only_layers):
        session = Session(only_layers("sync"), seeds=SyncSeeds(pace_bias=0.05, pause_bias_ms=10))
        at_baseline = Signal(drift=0.35, resonance=0.65)
        first, second = session.run([at_baseline, at_baseline])
        assert first.adjustments.pace == pytest.approx(1.05)
        assert first.adjustments.pause_ms == 70
        assert second.adjustments.pace == pytest.approx(1.0)
        assert second.adjustments.pause_ms == 60


class TestStrictMode:
    """Tests for strict breach handling."""

    def test_breach_fails_strict_session(self, chaotic_signal):
        session = Session(LiminalSettings(strict=True))
        session.run([chaotic_signal])
        assert session.strict_failed

    def test_non_strict_never_fails(self, chaotic_signal):
        session = Session(LiminalSettings(strict=False))
        session.run([chaotic_signal])
        assert not session.health.ok
        assert not session.strict_failed

    def test_no_alarm_means_no_monitor(self, chaotic_signal):
        session = Session(LiminalSettings(alarm=False, strict=True))
        session.run([chaotic_signal])
        assert session.health is None
        assert not session.strict_failed

    def test_calm_session_passes(self, calm_signal):
        session = Session(LiminalSettings(strict=True))
        session.run([calm_signal] * 3)
        assert session.health.ok
        assert not session.strict_failed


class TestHealthMonitor:
    """Tests for breach counting."""

    def test_empty_monitor(self):
        monitor = HealthMonitor()
        assert monitor.ok
        assert monitor.max_drift == 0.0
        assert monitor.min_res == 0.0

    def test_counts_breaches(self):
        monitor = HealthMonitor(baseline_drift=0.35, baseline_res=0.65)
        monitor.update(0.2, 0.8)
        monitor.update(0.5, 0.8)
        monitor.update(0.5, 0.4)
        assert monitor.total == 3
        assert monitor.drift_breaches == 2
        assert monitor.res_breaches == 1
        assert monitor.max_drift == pytest.approx(0.5)
        assert monitor.min_res == pytest.approx(0.4)
        assert not monitor.ok

    def test_baseline_values_are_not_breaches(self):
        monitor = HealthMonitor(baseline_drift=0.35, baseline_res=0.65)
        monitor.update(0.35, 0.65)
        assert monitor.ok

    def test_summary_lines(self):
        monitor = HealthMonitor()
        monitor.update(0.5, 0.4)
        lines = monitor.summary_lines()
        assert len(lines) == 4
        assert lines[1] == "[health] breaches: drift=1, res=1, total=1"
        assert lines[2] == "[health] worst: drift_max=0.50, res_min=0.40"
        assert lines[-1] == "[health] status: ATTENTION"
