from __future__ import annotations

import pytest

from fxsim.broker.ledger import TradingLedger
from fxsim.storage.kv import MemoryStore


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def ledger(store: MemoryStore) -> TradingLedger:
    return TradingLedger(store=store)
