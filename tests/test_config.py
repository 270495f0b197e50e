from __future__ import annotations

import os
import tempfile
from pathlib import Path

import pytest
from pydantic import ValidationError as ConfigError

from fxsim.core.config import AppConfig


def test_default_yaml_loads() -> None:
    cfg = AppConfig.load(Path(__file__).resolve().parents[1] / "configs" / "default.yaml")
    assert cfg.ledger.initial_balance == 10000.0
    assert cfg.ledger.pip_values["JPY"] == 1000.0
    assert cfg.storage.type == "sqlite"
    assert "USDJPY" in cfg.feed.symbols
    assert cfg.risk.profile == "COPILOT"


def test_partial_yaml_and_default_pip_value() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "c.yaml")
        with open(path, "w", encoding="utf-8") as f:
            f.write("ledger:\n  pip_values:\n    JPY: 500\nstorage:\n  type: memory\n")
        cfg = AppConfig.load(path)
    assert cfg.ledger.pip_values == {"JPY": 500.0, "default": 10.0}
    assert cfg.storage.type == "memory"
    assert cfg.web.port == 8000


def test_rejects_bad_values() -> None:
    with pytest.raises(ConfigError):
        AppConfig(ledger={"initial_balance": -1})
    with pytest.raises(ConfigError):
        AppConfig(storage={"type": "redis"})
