from __future__ import annotations

from datetime import datetime, timezone

import pytest

from fxsim.broker.settlement import evaluate, finalize
from fxsim.core.types import Trade


def _trade(direction: str = "BUY", sl: float = 100.0, tp: float = 110.0, symbol: str = "EURUSD") -> Trade:
    return Trade(
        id="SIM-1",
        symbol=symbol,
        direction=direction,
        lots=1.0,
        entry_price=105.0,
        current_price=105.0,
        stop_loss=sl,
        take_profit=tp,
        open_time=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


def test_no_trigger_marks_to_market() -> None:
    t = _trade()
    s = evaluate(t, 106.0)
    assert not s.triggered and s.exit_price is None
    assert s.trade.current_price == 106.0
    assert s.trade.pnl == pytest.approx(10.0)
    # input untouched
    assert t.current_price == 105.0 and t.pnl == 0.0


@pytest.mark.parametrize(
    "direction,price,trigger,exit_price",
    [
        ("BUY", 99.0, "stop_loss", 100.0),
        ("BUY", 100.0, "stop_loss", 100.0),
        ("BUY", 111.0, "take_profit", 110.0),
        ("SELL", 111.0, "stop_loss", 110.0),
        ("SELL", 99.0, "take_profit", 100.0),
    ],
)
def test_triggers_fill_at_threshold(direction: str, price: float, trigger: str, exit_price: float) -> None:
    if direction == "SELL":
        t = _trade("SELL", sl=110.0, tp=100.0)
    else:
        t = _trade("BUY", sl=100.0, tp=110.0)
    s = evaluate(t, price)
    assert s.triggered
    assert s.trigger == trigger
    assert s.exit_price == exit_price


def test_gap_through_stop_loss() -> None:
    s = evaluate(_trade("BUY", sl=100.0, tp=110.0), 95.0)
    assert s.trigger == "stop_loss"
    assert s.exit_price == 100.0


def test_stop_loss_wins_when_both_levels_breached() -> None:
    # Levels crossed so that one price satisfies both conditions
    buy = evaluate(_trade("BUY", sl=106.0, tp=104.0), 105.0)
    assert buy.trigger == "stop_loss" and buy.exit_price == 106.0
    sell = evaluate(_trade("SELL", sl=104.0, tp=106.0), 105.0)
    assert sell.trigger == "stop_loss" and sell.exit_price == 104.0


def test_finalize_closes_at_exit_price() -> None:
    when = datetime(2024, 1, 2, tzinfo=timezone.utc)
    closed = finalize(_trade(), 110.0, when)
    assert closed.status == "CLOSED"
    assert closed.exit_price == 110.0
    assert closed.close_time == when
    assert closed.pnl == pytest.approx(50.0)
