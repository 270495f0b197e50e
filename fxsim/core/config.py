from __future__ import annotations

from pathlib import Path
from typing import Dict, Literal

import yaml
from pydantic import BaseModel, Field, PositiveFloat, PositiveInt, field_validator

from fxsim.core.pricing import DEFAULT_KEY, PIP_VALUES


class LedgerConfig(BaseModel):
    initial_balance: PositiveFloat = 10000.0
    # Substring -> pip value; "default" applies when no key matches
    pip_values: Dict[str, PositiveFloat] = Field(default_factory=lambda: dict(PIP_VALUES))
    raise_on_persist_error: bool = True

    @field_validator("pip_values")
    @classmethod
    def _needs_default(cls, v: Dict[str, float]) -> Dict[str, float]:
        if DEFAULT_KEY not in v:
            v = {**v, DEFAULT_KEY: PIP_VALUES[DEFAULT_KEY]}
        return v


class StorageConfig(BaseModel):
    type: Literal["sqlite", "json", "memory"] = "sqlite"
    path: str = "~/.fxsim/ledger.db"


class FeedConfig(BaseModel):
    # symbol -> starting mid price
    symbols: Dict[str, PositiveFloat] = Field(
        default_factory=lambda: {
            "EURUSD": 1.0850,
            "GBPUSD": 1.2650,
            "USDJPY": 149.50,
            "BTCUSD": 43000.0,
        }
    )
    volatility: Dict[str, PositiveFloat] = Field(default_factory=dict)
    interval_sec: PositiveFloat = 2.0
    seed: int = 42
    ticks: PositiveInt = 100


class RiskConfig(BaseModel):
    profile: Literal["GUARDIAN", "COPILOT", "MAVERICK"] = "COPILOT"


class WebConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8000


class AppConfig(BaseModel):
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    feed: FeedConfig = Field(default_factory=FeedConfig)
    risk: RiskConfig = Field(default_factory=RiskConfig)
    web: WebConfig = Field(default_factory=WebConfig)

    @staticmethod
    def load(path: str | Path) -> "AppConfig":
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return AppConfig(**data)
