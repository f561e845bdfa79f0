"""Soft guard heuristics for high-drift responses."""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class GuardKind(Enum):
    NONE = "none"
    WARN = "warn"
    REPHRASED = "rephrased"


@dataclass(frozen=True)
class GuardConfig:
    drift_limit: float = 0.40
    res_limit: float = 0.60


@dataclass(frozen=True)
class GuardAction:
    """Outcome of a guard check.

    ``message`` carries the warning for WARN and the rewritten text for
    REPHRASED.
    """

    kind: GuardKind = GuardKind.NONE
    message: str = ""

    @property
    def rephrased(self) -> bool:
        return self.kind == GuardKind.REPHRASED


def check_and_rephrase(
    text: str,
    drift: float,
    resonance: float,
    config: Optional[GuardConfig] = None,
) -> GuardAction:
    """Warn on high drift, rephrase when drift is high and resonance low."""
    cfg = config or GuardConfig()

    if drift <= cfg.drift_limit and resonance >= cfg.res_limit:
        return GuardAction()

    if drift > cfg.drift_limit and resonance >= cfg.res_limit:
        return GuardAction(GuardKind.WARN, f"[soft-guard] high drift {drift:.2f} → adjusting tone")

    if drift > cfg.drift_limit:
        calmed = re.sub(r" {2,}", " ", text.strip().replace("!", "."))
        logger.info("Soft guard recentered response (drift=%.2f res=%.2f)", drift, resonance)
        return GuardAction(GuardKind.REPHRASED, f"{calmed} [recentered]".strip())

    # Low resonance alone is left to sync and compassion
    return GuardAction()
