from __future__ import annotations

import threading
from typing import Callable, Dict, Iterator, List, Mapping, Optional

import numpy as np
from loguru import logger as log

from fxsim.core.types import PriceTick


# Max absolute move per tick (uniform step in [-vol/2, +vol/2])
DEFAULT_VOLATILITY: Dict[str, float] = {
    "USDJPY": 0.05,
    "EURUSD": 0.0002,
    "GBPUSD": 0.0003,
    "BTCUSD": 50.0,
}
FALLBACK_VOLATILITY = 0.0001
MIN_PRICE = 0.0001


class PriceSimulator:
    """Random-walk mid prices for a fixed set of symbols.

    Symbols are stepped in a fixed order, so each symbol's ticks come out in
    sequence, which the ledger relies on.
    """

    def __init__(
        self,
        prices: Mapping[str, float],
        volatility: Optional[Mapping[str, float]] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.prices: Dict[str, float] = {str(s).upper(): float(p) for s, p in prices.items()}
        self.volatility: Dict[str, float] = {**DEFAULT_VOLATILITY, **{str(s).upper(): float(v) for s, v in (volatility or {}).items()}}
        self._rng = np.random.default_rng(seed)

    def volatility_for(self, symbol: str) -> float:
        return self.volatility.get(symbol, FALLBACK_VOLATILITY)

    def step(self) -> List[PriceTick]:
        ticks: List[PriceTick] = []
        for symbol, price in self.prices.items():
            change = (float(self._rng.random()) - 0.5) * self.volatility_for(symbol)
            new_price = max(MIN_PRICE, price + change)
            self.prices[symbol] = new_price
            ticks.append(PriceTick(symbol=symbol, price=new_price))
        return ticks

    def ticks(self, steps: int) -> Iterator[PriceTick]:
        for _ in range(int(steps)):
            yield from self.step()

    def run(
        self,
        callback: Callable[[str, float], object],
        interval_sec: float = 2.0,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        """Feed ``callback(symbol, price)`` every ``interval_sec`` until ``stop_event`` is set."""
        stop_event = stop_event or threading.Event()
        while not stop_event.is_set():
            for tick in self.step():
                try:
                    callback(tick.symbol, tick.price)
                except Exception as e:
                    log.exception(f"Price callback failed for {tick.symbol}: {e}")
            stop_event.wait(interval_sec)
