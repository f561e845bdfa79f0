"""Per-turn context, merged adjustments and serialisable turn records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel, Field

from liminal.awareness.compassion import CompassionState
from liminal.awareness.metacognition import MetaCognitionState
from liminal.awareness.silence import SilenceState
from liminal.regulation.guard import GuardAction, GuardKind
from liminal.regulation.stabilizer import StabilizerState
from liminal.regulation.sync import SyncCorrection
from liminal.signal import Signal, clamp, clamp01

# Delivery bounds for the merged output
PACE_MIN = 0.7
PACE_MAX = 1.3
PAUSE_MIN_MS = 20
PAUSE_MAX_MS = 250


@dataclass(frozen=True)
class Adjustments:
    """Merged delivery output for one turn.

    Attributes:
        pace: Pace factor (1.0 = device default)
        pause_ms: Inter-phrase pause in milliseconds
        resonance: Adjusted resonance
        drift: Adjusted drift
    """

    pace: float
    pause_ms: int
    resonance: float
    drift: float

    def __post_init__(self):
        object.__setattr__(self, "pace", clamp(self.pace, PACE_MIN, PACE_MAX))
        object.__setattr__(self, "pause_ms", int(clamp(self.pause_ms, PAUSE_MIN_MS, PAUSE_MAX_MS)))
        object.__setattr__(self, "resonance", clamp01(self.resonance))
        object.__setattr__(self, "drift", clamp01(self.drift))


@dataclass
class TurnContext:
    """Working values threaded through the stages of one turn.

    Each stage reads the signal and what earlier stages wrote, then writes
    its own slot. ``drift``/``resonance``/``pace``/``pause_ms`` accumulate
    the adjustments; ``measured_*`` keep the raw reading.
    """

    signal: Signal
    pace: float
    pause_ms: int
    drift: float = 0.0
    resonance: float = 0.0
    articulation_hint: float = 0.0
    stabilizer_state: Optional[StabilizerState] = None
    stab_ema_drift: Optional[float] = None
    stab_ema_res: Optional[float] = None
    stab_steps_in_state: Optional[int] = None
    sync: Optional[SyncCorrection] = None
    meta: Optional[MetaCognitionState] = None
    needs_more_awareness: Optional[bool] = None
    guard: Optional[GuardAction] = None
    compassion: Optional[CompassionState] = None
    compassion_active: bool = False
    silence: Optional[SilenceState] = None
    statuses: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        self.drift = self.signal.drift
        self.resonance = self.signal.resonance

    @property
    def measured_drift(self) -> float:
        return self.signal.drift

    @property
    def measured_res(self) -> float:
        return self.signal.resonance


@dataclass(frozen=True)
class TurnResult:
    """Everything the core produced for one turn.

    Layer slots are None when the layer is disabled.
    """

    index: int
    signal: Signal
    adjustments: Adjustments
    articulation_hint: float = 0.0
    stabilizer_state: Optional[StabilizerState] = None
    stab_ema_drift: Optional[float] = None
    stab_ema_res: Optional[float] = None
    stab_steps_in_state: Optional[int] = None
    sync: Optional[SyncCorrection] = None
    meta: Optional[MetaCognitionState] = None
    needs_more_awareness: Optional[bool] = None
    guard: Optional[GuardAction] = None
    compassion: Optional[CompassionState] = None
    compassion_active: bool = False
    silence: Optional[SilenceState] = None
    statuses: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_context(cls, index: int, ctx: TurnContext) -> TurnResult:
        return cls(
            index=index,
            signal=ctx.signal,
            adjustments=Adjustments(
                pace=ctx.pace,
                pause_ms=ctx.pause_ms,
                resonance=ctx.resonance,
                drift=ctx.drift,
            ),
            articulation_hint=ctx.articulation_hint,
            stabilizer_state=ctx.stabilizer_state,
            stab_ema_drift=ctx.stab_ema_drift,
            stab_ema_res=ctx.stab_ema_res,
            stab_steps_in_state=ctx.stab_steps_in_state,
            sync=ctx.sync,
            meta=ctx.meta,
            needs_more_awareness=ctx.needs_more_awareness,
            guard=ctx.guard,
            compassion=ctx.compassion,
            compassion_active=ctx.compassion_active,
            silence=ctx.silence,
            statuses=dict(ctx.statuses),
        )

    def to_record(self) -> TurnRecord:
        """Flatten into a TurnRecord; disabled layers stay unset."""
        data: dict = {
            "idx": self.index,
            "measured_drift": self.signal.drift,
            "measured_resonance": self.signal.resonance,
            "tone": self.signal.tone.value,
            "tempo": self.signal.tempo,
            "pause_ms": self.signal.pause_ms,
            "drift": self.adjustments.drift,
            "resonance": self.adjustments.resonance,
            "pace": self.adjustments.pace,
            "pause_out_ms": self.adjustments.pause_ms,
        }
        if self.stabilizer_state is not None:
            data["state"] = self.stabilizer_state.value
            data["articulation_hint"] = self.articulation_hint
            data.update(
                stab_ema_drift=self.stab_ema_drift,
                stab_ema_res=self.stab_ema_res,
                stab_steps_in_state=self.stab_steps_in_state,
            )
        if self.sync is not None:
            data.update(
                sync_pace_delta=self.sync.pace_delta,
                sync_pause_delta_ms=self.sync.pause_delta_ms,
                sync_resonance_boost=self.sync.resonance_boost,
                sync_drift_reduction=self.sync.drift_reduction,
            )
        if self.guard is not None and self.guard.kind != GuardKind.NONE:
            data["guard"] = self.guard.kind.value
        if self.meta is not None:
            data.update(
                meta_self_drift=self.meta.self_drift,
                meta_self_resonance=self.meta.self_resonance,
                meta_confidence=self.meta.confidence,
                meta_clarity=self.meta.clarity,
                meta_doubt=self.meta.doubt,
                meta_observation_count=self.meta.observation_count,
            )
        if self.compassion is not None:
            data.update(
                compassion_suffering=self.compassion.user_suffering,
                compassion_type=self.compassion.suffering_type.value,
                compassion_kindness=self.compassion.response_kindness,
                compassion_healing=self.compassion.healing_intent,
                compassion_level=self.compassion.compassion_level,
                compassion_count=self.compassion.suffering_count,
                compassion_streak=self.compassion.suffering_streak,
            )
        if self.silence is not None:
            data.update(
                silence_duration=self.silence.current_silence_duration,
                silence_type=self.silence.silence_type.value,
                silence_quality=self.silence.silence_quality,
                silence_generative=self.silence.is_generative,
                silence_interrupt=self.silence.should_interrupt,
                silence_count=self.silence.silence_count,
                silence_total_time=self.silence.total_silence_time,
                silence_max_duration=self.silence.max_silence_duration,
                silence_avg_quality=self.silence.avg_silence_quality,
            )
        return TurnRecord(**data)


class TurnRecord(BaseModel):
    """Serialised per-turn row handed to logging collaborators.

    Dump with ``model_dump(exclude_none=True)`` so that fields of disabled
    layers are omitted rather than null-padded.
    """

    idx: int = Field(..., ge=0)
    measured_drift: float = Field(..., ge=0.0, le=1.0)
    measured_resonance: float = Field(..., ge=0.0, le=1.0)
    tone: str
    tempo: float = Field(..., gt=0.0)
    pause_ms: float = Field(..., ge=0.0)
    drift: float = Field(..., ge=0.0, le=1.0)
    resonance: float = Field(..., ge=0.0, le=1.0)
    pace: float = Field(..., ge=PACE_MIN, le=PACE_MAX)
    pause_out_ms: int = Field(..., ge=PAUSE_MIN_MS, le=PAUSE_MAX_MS)

    state: Optional[str] = None
    articulation_hint: Optional[float] = None
    stab_ema_drift: Optional[float] = Field(None, ge=0.0, le=1.0)
    stab_ema_res: Optional[float] = Field(None, ge=0.0, le=1.0)
    stab_steps_in_state: Optional[int] = Field(None, ge=0)
    guard: Optional[str] = None

    sync_pace_delta: Optional[float] = None
    sync_pause_delta_ms: Optional[int] = None
    sync_resonance_boost: Optional[float] = None
    sync_drift_reduction: Optional[float] = None

    meta_self_drift: Optional[float] = Field(None, ge=0.0, le=1.0)
    meta_self_resonance: Optional[float] = Field(None, ge=0.0, le=1.0)
    meta_confidence: Optional[float] = Field(None, ge=0.0, le=1.0)
    meta_clarity: Optional[float] = Field(None, ge=0.0, le=1.0)
    meta_doubt: Optional[float] = Field(None, ge=0.0, le=1.0)
    meta_observation_count: Optional[int] = Field(None, ge=0)

    compassion_suffering: Optional[float] = Field(None, ge=0.0, le=1.0)
    compassion_type: Optional[str] = None
    compassion_kindness: Optional[float] = Field(None, ge=0.0, le=1.0)
    compassion_healing: Optional[float] = Field(None, ge=0.0, le=1.0)
    compassion_level: Optional[float] = Field(None, ge=0.0, le=1.0)
    compassion_count: Optional[int] = Field(None, ge=0)
    compassion_streak: Optional[int] = Field(None, ge=0)

    silence_duration: Optional[float] = Field(None, ge=0.0)
    silence_type: Optional[str] = None
    silence_quality: Optional[float] = Field(None, ge=0.0, le=1.0)
    silence_generative: Optional[bool] = None
    silence_interrupt: Optional[bool] = None
    silence_count: Optional[int] = Field(None, ge=0)
    silence_total_time: Optional[float] = Field(None, ge=0.0)
    silence_max_duration: Optional[float] = Field(None, ge=0.0)
    silence_avg_quality: Optional[float] = Field(None, ge=0.0, le=1.0)
