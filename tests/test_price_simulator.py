from __future__ import annotations

import threading

from fxsim.broker.ledger import TradingLedger
from fxsim.data.price_simulator import MIN_PRICE, PriceSimulator
from fxsim.storage.kv import MemoryStore


def test_seeded_walk_is_reproducible() -> None:
    a = [t.price for t in PriceSimulator({"EURUSD": 1.08}, seed=7).ticks(20)]
    b = [t.price for t in PriceSimulator({"EURUSD": 1.08}, seed=7).ticks(20)]
    assert a == b
    assert all(abs(x - 1.08) < 20 * 0.0002 for x in a)


def test_step_covers_every_symbol_in_order() -> None:
    sim = PriceSimulator({"eurusd": 1.08, "USDJPY": 150.0}, seed=1)
    ticks = list(sim.ticks(3))
    assert [t.symbol for t in ticks] == ["EURUSD", "USDJPY"] * 3
    assert sim.volatility_for("USDJPY") == 0.05
    assert sim.volatility_for("XYZ") == 0.0001


def test_price_floor() -> None:
    sim = PriceSimulator({"ABC": 0.0002}, volatility={"ABC": 10.0}, seed=3)
    assert all(t.price >= MIN_PRICE for t in sim.ticks(50))


def test_run_feeds_ledger_until_stopped() -> None:
    ledger = TradingLedger(store=MemoryStore())
    trade = ledger.open_trade("EURUSD", "BUY", 1.0, 1.08, 1.0, 2.0).trade
    sim = PriceSimulator({"EURUSD": 1.08}, seed=5)
    stop = threading.Event()
    seen = []

    def callback(symbol: str, price: float) -> None:
        seen.append((symbol, price))
        ledger.on_price(symbol, price)
        if len(seen) >= 3:
            stop.set()

    sim.run(callback, interval_sec=0.0, stop_event=stop)
    assert len(seen) == 3
    assert ledger.get_trade(trade.id).current_price == seen[-1][1]
