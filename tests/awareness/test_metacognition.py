"""Tests for meta-cognitive self-observation."""

import pytest

from liminal.awareness.metacognition import (
    DOUBT_FLOOR,
    MetaCognitionState,
    MetaStabilizer,
)
from liminal.regulation.stabilizer import StabilizerState


class TestMetaCognitionState:
    """Tests for observe and the derived predicates."""

    def test_defaults(self):
        meta = MetaCognitionState()
        assert meta.self_drift == 0.0
        assert meta.self_resonance == 1.0
        assert meta.confidence == 0.5
        assert meta.observation_count == 0

    def test_clear_and_stable_after_calm_turns(self):
        """Five calm observations with no correction read as clear and stable."""
        meta = MetaCognitionState()
        for _ in range(5):
            meta.observe(0.15, 0.9, StabilizerState.NORMAL, 0.0)

        assert meta.observation_count == 5
        assert meta.confidence == pytest.approx(0.85 * 0.9)
        assert meta.clarity == 1.0
        assert meta.self_resonance == 1.0
        assert meta.is_clear_and_stable()
        assert "Clear & Stable" in meta.self_assess()

    def test_doubt_never_below_floor(self):
        """Perfect readings still leave the doubt floor."""
        meta = MetaCognitionState()
        meta.observe(0.0, 1.0, None, 0.0)
        assert meta.confidence == 1.0
        assert meta.doubt == DOUBT_FLOOR

    def test_chaotic_reading_expresses_doubt(self):
        meta = MetaCognitionState()
        meta.observe(0.9, 0.2, StabilizerState.OVERHEAT, 0.0)
        assert meta.confidence == pytest.approx(0.02)
        assert meta.self_resonance == pytest.approx(0.0)
        assert meta.should_express_doubt()
        assert "Uncertain" in meta.self_assess()

    def test_overheated_chaos_with_heavy_correction(self):
        """A chaotic overheated turn with a large correction is low-confidence and doubtful."""
        meta = MetaCognitionState()
        meta.observe(0.9, 0.2, StabilizerState.OVERHEAT, 0.5)
        assert meta.confidence < 0.5
        assert meta.doubt > 0.5
        assert meta.self_drift == 1.0
        assert meta.should_express_doubt()

    def test_large_corrections_read_as_self_adjusting(self):
        meta = MetaCognitionState()
        meta.observe(0.2, 0.6, StabilizerState.WARMING, 0.2)
        assert meta.self_drift == 1.0
        assert not meta.should_express_doubt()
        assert "Self-Adjusting" in meta.self_assess()

    def test_state_offsets_self_resonance(self):
        """COOLDOWN lowers self-resonance; no stabilizer means no offset."""
        meta = MetaCognitionState()
        meta.observe(0.3, 0.6, StabilizerState.COOLDOWN, 0.0)
        assert meta.self_resonance == pytest.approx(0.5)
        meta.observe(0.3, 0.6, None, 0.0)
        assert meta.self_resonance == pytest.approx(0.6)

    def test_clarity_bonus_is_capped(self):
        meta = MetaCognitionState()
        for _ in range(20):
            meta.observe(0.5, 0.5, StabilizerState.NORMAL, 0.0)
        assert meta.clarity == pytest.approx(0.25 + 0.3)

    def test_values_stay_in_range(self):
        meta = MetaCognitionState()
        meta.observe(3.0, -2.0, StabilizerState.OVERHEAT, -10.0)
        for value in (meta.self_drift, meta.self_resonance, meta.confidence, meta.clarity, meta.doubt):
            assert 0.0 <= value <= 1.0


class TestMetaStabilizer:
    """Tests for the meta-layer EMA."""

    def test_initial_metrics(self):
        assert MetaStabilizer().stable_metrics() == (0.0, 0.5)

    def test_low_confidence_needs_awareness(self):
        stab = MetaStabilizer(alpha=0.3)
        stab.update(MetaCognitionState(self_drift=1.0, confidence=0.0))
        ema_drift, ema_conf = stab.stable_metrics()
        assert ema_drift == pytest.approx(0.3)
        assert ema_conf == pytest.approx(0.35)
        assert stab.needs_more_awareness()

    def test_confident_and_steady_needs_nothing(self):
        stab = MetaStabilizer(alpha=0.3)
        stab.update(MetaCognitionState(self_drift=0.0, confidence=1.0))
        assert stab.stable_metrics()[1] == pytest.approx(0.65)
        assert not stab.needs_more_awareness()

    def test_single_noisy_turn_is_smoothed(self):
        """One high self-drift reading does not cross the awareness threshold."""
        stab = MetaStabilizer(alpha=0.3)
        stab.update(MetaCognitionState(self_drift=1.0, confidence=0.9))
        assert stab.ema_self_drift < 0.4
        assert not stab.needs_more_awareness()
