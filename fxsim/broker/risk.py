from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from loguru import logger as log

from fxsim.core.errors import RiskLimitError


@dataclass(frozen=True)
class RiskProfile:
    name: str
    description: str
    warn_threshold: float
    block_threshold: float
    max_lots: float


RISK_PROFILES: Dict[str, RiskProfile] = {
    "GUARDIAN": RiskProfile(
        name="Guardian",
        description="Conservative approach with strict limits",
        warn_threshold=30,
        block_threshold=50,
        max_lots=0.2,
    ),
    "COPILOT": RiskProfile(
        name="Copilot",
        description="Balanced risk management (default)",
        warn_threshold=50,
        block_threshold=70,
        max_lots=0.5,
    ),
    "MAVERICK": RiskProfile(
        name="Maverick",
        description="Aggressive trading with higher limits",
        warn_threshold=70,
        block_threshold=85,
        max_lots=10,
    ),
}

DEFAULT_PROFILE = "COPILOT"


class RiskGate:
    """Pre-trade checks run by callers before ``TradingLedger.open_trade``.

    ``emotion_score`` is the 0-100 behavioural score supplied by the caller;
    scores at the warn threshold produce warnings, at the block threshold
    the order is refused.
    """

    def __init__(self, profile: str = DEFAULT_PROFILE) -> None:
        key = str(profile).upper()
        if key not in RISK_PROFILES:
            raise ValueError(f"unknown risk profile {profile!r}")
        self.key = key
        self.profile = RISK_PROFILES[key]

    def check_order(self, lots: float, emotion_score: Optional[float] = None) -> List[str]:
        p = self.profile
        if lots > p.max_lots:
            log.warning(f"Risk gate {p.name}: {lots} lots above max {p.max_lots}")
            raise RiskLimitError(f"{p.name} profile allows at most {p.max_lots} lots, got {lots}")
        warnings: List[str] = []
        if emotion_score is not None:
            if emotion_score >= p.block_threshold:
                log.warning(f"Risk gate {p.name}: emotion score {emotion_score} blocked")
                raise RiskLimitError(
                    f"emotion score {emotion_score:.0f} is at or above the {p.name} block threshold {p.block_threshold:.0f}"
                )
            if emotion_score >= p.warn_threshold:
                warnings.append(
                    f"emotion score {emotion_score:.0f} is at or above the {p.name} warning threshold {p.warn_threshold:.0f}"
                )
        return warnings
