# tests/pipeline/test_pipeline.py
"""Tests for pipeline construction and per-turn processing."""

import pytest

from liminal.awareness.silence import SilenceType
from liminal.config import LiminalSettings
from liminal.pipeline import (
    STAGE_ORDER,
    Pipeline,
    SilenceStage,
    StabilizerStage,
    SyncStage,
    build_pipeline,
)
from liminal.regulation.guard import GuardKind
from liminal.regulation.stabilizer import StabilizerState
from liminal.signal import Signal, ToneTag


class TestBuildPipeline:
    """Tests for build_pipeline."""

    def test_default_has_every_stage_in_order(self):
        pipeline = build_pipeline()
        assert pipeline.stage_names == list(STAGE_ORDER)

    def test_disabled_layers_have_no_stage(self):
        pipeline = build_pipeline(LiminalSettings(sync=False, silence=False))
        assert pipeline.stage_names == ["stabilizer", "meta", "guard", "compassion"]
        assert pipeline.get_stage("sync") is None

    def test_all_layers_off_is_empty(self, bare_settings):
        assert build_pipeline(bare_settings).stage_names == []

    def test_settings_reach_the_stages(self):
        pipeline = build_pipeline(LiminalSettings(stab_cool=5, sync_step=0.05, silence_min_s=2.0))
        assert pipeline.get_stage("stabilizer").stabilizer.config.cool_steps == 5
        assert pipeline.get_stage("sync").state.config.sync_step == 0.05
        assert pipeline.get_stage("silence").silence.min_duration_s == 2.0

    def test_rejects_out_of_order_stages(self):
        with pytest.raises(ValueError, match="out of order"):
            Pipeline([SyncStage(), StabilizerStage()])

    def test_rejects_duplicate_stages(self):
        with pytest.raises(ValueError, match="Duplicate"):
            Pipeline([StabilizerStage(), StabilizerStage()])


class TestRunTurn:
    """Tests for processing single turns."""

    def test_empty_pipeline_passes_signal_through(self, bare_settings):
        pipeline = build_pipeline(bare_settings)
        result = pipeline.run_turn(Signal(drift=0.2, resonance=0.8))
        assert result.index == 0
        assert result.adjustments.pace == 1.0
        assert result.adjustments.pause_ms == 60
        assert result.adjustments.drift == pytest.approx(0.2)
        assert result.adjustments.resonance == pytest.approx(0.8)
        assert result.stabilizer_state is None
        assert result.sync is None
        assert result.statuses == {}

    def test_turn_indices_increase(self, settings, calm_signal):
        pipeline = build_pipeline(settings)
        indices = [pipeline.run_turn(calm_signal).index for _ in range(3)]
        assert indices == [0, 1, 2]
        assert pipeline.turns == 3

    def test_adversarial_signal_is_clamped_before_stages(self, settings):
        pipeline = build_pipeline(settings)
        result = pipeline.run_turn(Signal(drift=2.0, resonance=-1.0))
        assert result.signal.drift == 1.0
        assert result.signal.resonance == 0.0
        assert result.stabilizer_state == StabilizerState.WARMING

    def test_every_enabled_stage_reports_status(self, settings, calm_signal):
        result = build_pipeline(settings).run_turn(calm_signal)
        assert set(result.statuses) == {"stabilizer", "sync", "meta", "compassion", "silence"}
        assert result.statuses["stabilizer"].startswith("[stabilizer] state=Normal")

    @pytest.mark.parametrize(
        "drift,resonance,tone,tempo",
        [
            (1.0, 0.0, ToneTag.ENERGETIC, 400.0),
            (0.0, 1.0, ToneTag.CALM, 40.0),
            (0.9, 0.1, ToneTag.NEUTRAL, 150.0),
            (5.0, -5.0, ToneTag.ENERGETIC, 250.0),
        ],
    )
    def test_outputs_stay_within_delivery_bounds(self, settings, drift, resonance, tone, tempo):
        """Pace and pause stay inside their bounds over a sustained run."""
        pipeline = build_pipeline(settings)
        for _ in range(12):
            signal = Signal(drift=drift, resonance=resonance, tone=tone, tempo=tempo, pause_ms=6000.0)
            adj = pipeline.run_turn(signal).adjustments
            assert 0.7 <= adj.pace <= 1.3
            assert 20 <= adj.pause_ms <= 250
            assert 0.0 <= adj.drift <= 1.0
            assert 0.0 <= adj.resonance <= 1.0


class TestLayerInteractions:
    """Tests for what later stages see from earlier ones."""

    def test_stabilizer_advice_applied(self, only_layers):
        pipeline = build_pipeline(only_layers("stabilizer"))
        result = pipeline.run_turn(Signal(drift=0.5, resonance=0.7))
        assert result.stabilizer_state == StabilizerState.WARMING
        assert result.adjustments.pace == pytest.approx(0.97)
        assert result.adjustments.pause_ms == 70
        assert result.articulation_hint == pytest.approx(0.02)

    def test_guard_rephrases_chaotic_turn(self, only_layers, chaotic_signal):
        pipeline = build_pipeline(only_layers("guard"))
        result = pipeline.run_turn(chaotic_signal)
        assert result.guard.kind == GuardKind.REPHRASED
        assert result.statuses["guard"] == "[soft-guard] I don't know. Nothing works. [recentered]"

    def test_compassion_activates_on_chaotic_turn(self, settings, chaotic_signal):
        result = build_pipeline(settings).run_turn(chaotic_signal)
        assert result.compassion.user_suffering == 1.0
        assert result.compassion_active
        assert result.statuses["compassion"].endswith(" - offering support")

    def test_compassion_softens_output(self, only_layers, chaotic_signal):
        compassion_only = only_layers("compassion")
        result = build_pipeline(compassion_only).run_turn(chaotic_signal)
        assert result.adjustments.pace < 1.0
        assert result.adjustments.pause_ms > 60
        assert result.adjustments.drift < chaotic_signal.drift
        assert result.adjustments.resonance > chaotic_signal.resonance

    def test_calm_turn_leaves_compassion_inactive(self, settings, calm_signal):
        result = build_pipeline(settings).run_turn(calm_signal)
        assert result.compassion.user_suffering == 0.0
        assert not result.compassion_active

    def test_meta_observes_each_turn(self, settings, calm_signal):
        pipeline = build_pipeline(settings)
        pipeline.run_turn(calm_signal)
        result = pipeline.run_turn(calm_signal)
        assert result.meta.observation_count == 2
        assert isinstance(result.needs_more_awareness, bool)

    def test_meta_snapshot_is_independent(self, settings, calm_signal):
        """Each result keeps the meta state as it was on that turn."""
        pipeline = build_pipeline(settings)
        first = pipeline.run_turn(calm_signal)
        pipeline.run_turn(calm_signal)
        assert first.meta.observation_count == 1


class TestSilenceStage:
    """Tests for silence handling across turns."""

    def test_peaceful_pause_before_first_turn(self, settings):
        signal = Signal(drift=0.1, resonance=0.9, tone=ToneTag.CALM, tempo=100.0, pause_ms=3000.0)
        result = build_pipeline(settings).run_turn(signal)
        assert result.silence.silence_type == SilenceType.PEACE
        assert result.silence.silence_count == 1

    def test_short_pause_is_not_classified(self, settings, calm_signal):
        result = build_pipeline(settings).run_turn(calm_signal)
        assert result.silence.silence_type == SilenceType.NONE
        assert result.silence.silence_count == 0

    def test_new_input_closes_the_silence(self, settings):
        pipeline = build_pipeline(settings)
        pipeline.run_turn(Signal(drift=0.1, resonance=0.9, tone=ToneTag.CALM, tempo=100.0, pause_ms=3000.0))
        stage = pipeline.get_stage("silence")
        assert isinstance(stage, SilenceStage)
        assert stage.silence.silence_type == SilenceType.NONE
        assert stage.silence.avg_silence_quality == pytest.approx(1.0)

    def test_growing_silence_without_input(self, only_layers):
        settings = only_layers("silence")
        pipeline = build_pipeline(settings)
        quiet = dict(drift=0.1, resonance=0.9, tone=ToneTag.CALM, tempo=100.0)
        pipeline.run_turn(Signal(pause_ms=2000.0, new_input=False, **quiet))
        growing = pipeline.run_turn(Signal(pause_ms=5000.0, new_input=False, **quiet))
        assert growing.silence.silence_count == 1
        assert growing.silence.total_silence_time == pytest.approx(5.0)

        pipeline.run_turn(Signal(pause_ms=5000.0, new_input=True, **quiet))
        stage = pipeline.get_stage("silence")
        assert stage.silence.silence_count == 1
        assert stage.silence.avg_silence_quality == pytest.approx(1.0)
