from __future__ import annotations

import pytest

from fxsim.broker.ledger import TradingLedger
from fxsim.monitor.performance import summarize
from fxsim.storage.kv import MemoryStore


def test_empty_history() -> None:
    stats = summarize([])
    assert stats["total_trades"] == 0
    assert stats["win_rate"] == 0.0


def test_summary_from_ledger() -> None:
    ledger = TradingLedger(store=MemoryStore())
    for exit_price in (1.0900, 1.0850, 1.0750):
        t = ledger.open_trade("EURUSD", "BUY", 1.0, 1.0800, 1.0700, 1.1000).trade
        ledger.close_trade(t.id, exit_price)
    ledger.open_trade("EURUSD", "BUY", 1.0, 1.0800, 1.0700, 1.1000)

    stats = summarize(ledger.get_all_trades())
    assert stats["total_trades"] == 3
    assert (stats["wins"], stats["losses"]) == (2, 1)
    assert stats["win_rate"] == pytest.approx(200.0 / 3)
    assert stats["total_pnl"] == pytest.approx(0.1)
    assert stats["avg_win"] == pytest.approx(0.075)
    assert stats["avg_loss"] == pytest.approx(-0.05)
