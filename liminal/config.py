"""Runtime settings for the regulation pipeline.

Every tunable lives on LiminalSettings with its documented default and
bounds. Settings can be built directly (invalid values raise pydantic's
ValidationError) or read from ``LIMINAL_*`` environment variables, where a
malformed value is logged and replaced by its default instead of failing
the run.
"""

import logging
import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from liminal.regulation.guard import GuardConfig
from liminal.regulation.stabilizer import StabilizerConfig
from liminal.regulation.sync import Baselines, SyncConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "LIMINAL_"


class LiminalSettings(BaseModel):
    """Pipeline configuration.

    Layer switches (stabilizer, sync, awareness, compassion, silence, guard)
    remove the corresponding stage from the pipeline for the whole run.
    """

    cycles: int = Field(5, description="Turns to run when no script is given", ge=1)
    baseline_drift: float = Field(0.35, description="Target drift", ge=0.0, le=1.0)
    baseline_res: float = Field(0.65, description="Target resonance", ge=0.0, le=1.0)
    base_pace: float = Field(1.0, description="Device pace factor before adjustments", ge=0.7, le=1.3)
    base_pause_ms: int = Field(60, description="Device pause before adjustments (ms)", ge=20, le=250)

    # Health monitor
    alarm: bool = Field(True, description="Track baseline breaches")
    strict: bool = Field(False, description="Exit non-zero when any breach occurred")

    # Soft guard
    guard: bool = Field(True, description="Enable the soft guard")
    guard_drift: float = Field(0.40, description="Guard drift limit", ge=0.0, le=1.0)
    guard_res: float = Field(0.60, description="Guard resonance limit", ge=0.0, le=1.0)

    # Stabilizer
    stabilizer: bool = Field(True, description="Enable the stabilizer")
    stab_alpha: float = Field(0.4, description="EMA smoothing factor", ge=0.0, le=1.0)
    stab_warm: float = Field(0.32, description="Warming drift threshold", ge=0.0, le=1.0)
    stab_hot: float = Field(0.42, description="Overheat drift threshold", ge=0.0, le=1.0)
    stab_low_res: float = Field(0.58, description="Overheat resonance ceiling", ge=0.0, le=1.0)
    stab_cool: int = Field(3, description="Cooldown hold in turns", ge=1)
    stab_calm: float = Field(0.08, description="Extra calming in overheat", ge=0.0, le=0.2)

    # Neural sync
    sync: bool = Field(True, description="Enable neural sync")
    sync_lr_fast: float = Field(0.15, description="Within-session correction rate", ge=0.0, le=1.0)
    sync_lr_slow: float = Field(0.05, description="Cross-session bias rate", ge=0.0, le=1.0)
    sync_step: float = Field(0.02, description="Max pace correction per turn", ge=0.0, le=0.3)

    # Observation layers
    awareness: bool = Field(True, description="Enable meta-cognition")
    meta_stab_alpha: float = Field(0.3, description="Meta-stabilizer EMA factor", ge=0.0, le=1.0)
    compassion: bool = Field(True, description="Enable the compassion detector")
    silence: bool = Field(True, description="Enable silence classification")
    silence_min_s: float = Field(1.5, description="Minimum silence to classify (s)", ge=0.0)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LiminalSettings":
        """Build settings from LIMINAL_* variables, defaulting malformed values.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            Validated settings
        """
        environ = os.environ if environ is None else environ
        accepted: dict[str, str] = {}

        for name in cls.model_fields:
            key = f"{ENV_PREFIX}{name.upper()}"
            raw = environ.get(key)
            if raw is None or not raw.strip():
                continue
            try:
                cls.model_validate({name: raw.strip()})
            except ValidationError:
                logger.warning(
                    "Ignoring %s=%r; using default %r",
                    key,
                    raw,
                    cls.model_fields[name].default,
                )
                continue
            accepted[name] = raw.strip()

        return cls.model_validate(accepted)

    def stabilizer_config(self) -> StabilizerConfig:
        return StabilizerConfig(
            ema_alpha=self.stab_alpha,
            warm_drift=self.stab_warm,
            hot_drift=self.stab_hot,
            low_res=self.stab_low_res,
            cool_steps=self.stab_cool,
            calm_boost=self.stab_calm,
        )

    def sync_config(self) -> SyncConfig:
        return SyncConfig(
            lr_fast=self.sync_lr_fast,
            lr_slow=self.sync_lr_slow,
            sync_step=self.sync_step,
        )

    def baselines(self) -> Baselines:
        return Baselines(drift=self.baseline_drift, resonance=self.baseline_res)

    def guard_config(self) -> GuardConfig:
        return GuardConfig(drift_limit=self.guard_drift, res_limit=self.guard_res)
