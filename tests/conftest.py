"""Pytest configuration and fixtures."""

import os

import pytest

from liminal.config import LiminalSettings
from liminal.signal import Signal, ToneTag

LAYERS_OFF = dict(
    stabilizer=False,
    sync=False,
    awareness=False,
    guard=False,
    compassion=False,
    silence=False,
)


@pytest.fixture(autouse=True)
def _clear_liminal_env(monkeypatch):
    """Keep LIMINAL_* variables from the developer shell out of tests."""
    for key in list(os.environ):
        if key.startswith("LIMINAL_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def settings():
    return LiminalSettings()


@pytest.fixture
def bare_settings():
    """Settings with every layer switched off."""
    return LiminalSettings(**LAYERS_OFF)


@pytest.fixture
def calm_signal():
    return Signal(drift=0.1, resonance=0.9, tone=ToneTag.CALM, tempo=100.0, text="thank you, that helps")


@pytest.fixture
def chaotic_signal():
    return Signal(
        drift=0.9,
        resonance=0.1,
        tone=ToneTag.ENERGETIC,
        tempo=200.0,
        text="I don't know!  Nothing works!",
    )


@pytest.fixture
def only_layers():
    """Factory for settings with just the named layers enabled."""

    def _build(*layers, **overrides):
        values = {**LAYERS_OFF, **{name: True for name in layers}, **overrides}
        return LiminalSettings(**values)

    return _build
