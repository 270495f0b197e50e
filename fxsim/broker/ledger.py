from __future__ import annotations

import math
import random
import string
import threading
import time
from typing import Dict, List, Mapping, Optional, Tuple

from loguru import logger as log

from fxsim.broker.settlement import evaluate, finalize
from fxsim.core.errors import PersistenceError, ValidationError
from fxsim.core.pricing import PIP_VALUES
from fxsim.core.types import AccountSnapshot, Direction, Trade, TradeResult, Trigger, utcnow
from fxsim.storage.codec import (
    BALANCE_KEY,
    TRADES_KEY,
    dump_balance,
    dump_trades,
    load_balance,
    load_trades,
)
from fxsim.storage.kv import KeyValueStore


INITIAL_BALANCE = 10000.0

_ID_ALPHABET = string.ascii_lowercase + string.digits


def _finite(name: str, value: float) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(v):
        raise ValidationError(f"{name} must be finite, got {value!r}")
    return v


def _positive(name: str, value: float) -> float:
    v = _finite(name, value)
    if v <= 0:
        raise ValidationError(f"{name} must be > 0, got {value!r}")
    return v


class TradingLedger:
    """Simulated account: cash balance plus the book of open and closed trades.

    Every mutation is applied in memory first and then written to ``store``
    (trade list and balance under two keys). A failed write leaves the
    in-memory state as is; it is reported through ``PersistenceError`` or,
    with ``raise_on_persist_error=False``, through ``TradeResult.persisted``.
    All public methods hold one lock for their whole duration.
    """

    def __init__(
        self,
        store: KeyValueStore,
        initial_balance: float = INITIAL_BALANCE,
        pip_values: Optional[Mapping[str, float]] = None,
        raise_on_persist_error: bool = True,
    ) -> None:
        self.store = store
        self.initial_balance = float(initial_balance)
        self.pip_values: Dict[str, float] = dict(pip_values or PIP_VALUES)
        self.raise_on_persist_error = raise_on_persist_error
        self._lock = threading.RLock()
        self._trades: List[Trade] = []
        self._index: Dict[str, int] = {}
        self._balance = self.initial_balance
        self._rng = random.SystemRandom()
        self._load()

    # --- persistence ---
    def _load(self) -> None:
        try:
            trades = load_trades(self.store.get(TRADES_KEY))
            balance = load_balance(self.store.get(BALANCE_KEY))
        except PersistenceError as e:
            log.error(f"Ledger load failed, starting empty: {e}")
            self._reset_memory()
            return
        except (ValueError, KeyError, TypeError) as e:
            log.warning(f"Corrupt ledger state, starting empty: {e}")
            self._reset_memory()
            return

        self._trades = trades
        self._reindex()
        if balance is None:
            self._balance = self.initial_balance
            try:
                self.store.set_many({BALANCE_KEY: dump_balance(self._balance)})
            except PersistenceError as e:
                log.error(f"Could not seed balance: {e}")
        else:
            self._balance = balance
        log.info(f"Ledger loaded: {len(self._trades)} trades, balance={self._balance:.2f}")

    def _reset_memory(self) -> None:
        self._trades = []
        self._index = {}
        self._balance = self.initial_balance

    def _reindex(self) -> None:
        self._index = {t.id: i for i, t in enumerate(self._trades)}

    def _persist(self, trade: Optional[Trade] = None) -> bool:
        # Trade list and balance are always written together
        items = {TRADES_KEY: dump_trades(self._trades), BALANCE_KEY: dump_balance(self._balance)}
        try:
            self.store.set_many(items)
        except PersistenceError as e:
            log.error(f"Ledger write failed ({', '.join(items)}): {e}")
            if self.raise_on_persist_error:
                raise PersistenceError(str(e), trade=trade.copy() if trade else None) from e
            return False
        return True

    def flush(self) -> bool:
        """Write the full in-memory state again; use after a failed write."""
        with self._lock:
            return self._persist()

    # --- helpers ---
    def _new_id(self) -> str:
        while True:
            suffix = "".join(self._rng.choice(_ID_ALPHABET) for _ in range(9))
            trade_id = f"SIM-{int(time.time() * 1000)}-{suffix}"
            if trade_id not in self._index:
                return trade_id

    def _find_open(self, trade_id: str) -> Optional[Trade]:
        idx = self._index.get(trade_id)
        if idx is None:
            return None
        trade = self._trades[idx]
        return trade if trade.is_open else None

    def _replace(self, trade: Trade) -> None:
        self._trades[self._index[trade.id]] = trade

    def _close_in_memory(self, trade: Trade, exit_price: float, trigger: Optional[Trigger] = None) -> Trade:
        closed = finalize(trade, exit_price, utcnow(), self.pip_values)
        self._replace(closed)
        self._balance += closed.pnl
        log.info(
            f"Closed {closed.id} {closed.direction} {closed.lots} {closed.symbol} "
            f"@ {exit_price} ({trigger or 'manual'}) pnl={closed.pnl:.2f} balance={self._balance:.2f}"
        )
        return closed

    def _settle(self, trade: Trade, exit_price: float, trigger: Optional[Trigger] = None) -> TradeResult:
        closed = self._close_in_memory(trade, exit_price, trigger)
        persisted = self._persist(trade=closed)
        return TradeResult(trade=closed.copy(), persisted=persisted, trigger=trigger)

    def _apply_price(self, trade: Trade, price: float) -> Tuple[Trade, Optional[Trigger]]:
        """Mark ``trade`` at ``price`` in memory, closing it if a level fired. No write."""
        settlement = evaluate(trade, price, self.pip_values)
        self._replace(settlement.trade)
        if settlement.triggered:
            return self._close_in_memory(settlement.trade, settlement.exit_price, settlement.trigger), settlement.trigger
        log.debug(f"Marked {trade.id} @ {price} pnl={settlement.trade.pnl:.2f}")
        return settlement.trade, None

    # --- mutations ---
    def open_trade(
        self,
        symbol: str,
        direction: Direction,
        lots: float,
        entry_price: float,
        stop_loss: float,
        take_profit: float,
    ) -> TradeResult:
        if direction not in ("BUY", "SELL"):
            raise ValidationError(f"direction must be BUY or SELL, got {direction!r}")
        if not symbol:
            raise ValidationError("symbol is required")
        lots = _positive("lots", lots)
        entry_price = _positive("entry_price", entry_price)
        stop_loss = _finite("stop_loss", stop_loss)
        take_profit = _finite("take_profit", take_profit)

        with self._lock:
            trade = Trade(
                id=self._new_id(),
                symbol=str(symbol).upper(),
                direction=direction,
                lots=lots,
                entry_price=entry_price,
                current_price=entry_price,
                stop_loss=stop_loss,
                take_profit=take_profit,
                open_time=utcnow(),
            )
            self._trades.append(trade)
            self._index[trade.id] = len(self._trades) - 1
            log.info(
                f"Opened {trade.id} {direction} {lots} {trade.symbol} @ {entry_price} "
                f"sl={stop_loss} tp={take_profit}"
            )
            persisted = self._persist(trade=trade)
            return TradeResult(trade=trade.copy(), persisted=persisted)

    def update_trade_price(self, trade_id: str, price: float) -> TradeResult:
        price = _positive("price", price)
        with self._lock:
            trade = self._find_open(trade_id)
            if trade is None:
                return TradeResult.not_found()
            updated, trigger = self._apply_price(trade, price)
            persisted = self._persist(trade=updated)
            return TradeResult(trade=updated.copy(), persisted=persisted, trigger=trigger)

    def close_trade(self, trade_id: str, exit_price: Optional[float] = None) -> TradeResult:
        with self._lock:
            trade = self._find_open(trade_id)
            if trade is None:
                return TradeResult.not_found()
            close_price = trade.current_price if exit_price is None else _positive("exit_price", exit_price)
            return self._settle(trade, close_price)

    def on_price(self, symbol: str, price: float) -> List[TradeResult]:
        """Price-feed callback: apply ``price`` to every open trade on ``symbol``, in book order.

        All matching trades are marked and settled in memory before the single
        write for the tick, so a storage failure cannot skip a trigger.
        """
        sym = str(symbol).upper()
        price = _positive("price", price)
        with self._lock:
            applied = [
                self._apply_price(t, price) for t in list(self._trades) if t.is_open and t.symbol == sym
            ]
            if not applied:
                return []
            persisted = self._persist(trade=applied[0][0])
            return [TradeResult(trade=t.copy(), persisted=persisted, trigger=trigger) for t, trigger in applied]

    def modify_protection(
        self,
        trade_id: str,
        stop_loss: Optional[float] = None,
        take_profit: Optional[float] = None,
    ) -> TradeResult:
        """Move the stop-loss and/or take-profit of an open trade.

        Closed trades are reported as not found. The new levels take effect on
        the next price update.
        """
        changes: Dict[str, float] = {}
        if stop_loss is not None:
            changes["stop_loss"] = _positive("stop_loss", stop_loss)
        if take_profit is not None:
            changes["take_profit"] = _positive("take_profit", take_profit)
        with self._lock:
            trade = self._find_open(trade_id)
            if trade is None:
                return TradeResult.not_found()
            if not changes:
                return TradeResult(trade=trade.copy())
            updated = trade.copy(**changes)
            self._replace(updated)
            log.info(f"Protection {trade_id} sl={updated.stop_loss} tp={updated.take_profit}")
            persisted = self._persist(trade=updated)
            return TradeResult(trade=updated.copy(), persisted=persisted)

    def reset(self) -> bool:
        """Drop every trade and restore the initial balance. Demo/test use only."""
        with self._lock:
            self._reset_memory()
            log.warning(f"Ledger reset, balance={self._balance:.2f}")
            return self._persist()

    # --- queries ---
    def get_trade(self, trade_id: str) -> Optional[Trade]:
        with self._lock:
            idx = self._index.get(trade_id)
            return self._trades[idx].copy() if idx is not None else None

    def get_open_trades(self) -> List[Trade]:
        with self._lock:
            return [t.copy() for t in self._trades if t.is_open]

    def get_closed_trades(self) -> List[Trade]:
        with self._lock:
            return [t.copy() for t in self._trades if not t.is_open]

    def get_all_trades(self) -> List[Trade]:
        with self._lock:
            return [t.copy() for t in self._trades]

    def get_balance(self) -> float:
        with self._lock:
            return self._balance

    def get_equity(self) -> float:
        with self._lock:
            return self._balance + sum(t.pnl for t in self._trades if t.is_open)

    def snapshot(self) -> AccountSnapshot:
        with self._lock:
            open_trades = self.get_open_trades()
            unrealized = sum(t.pnl for t in open_trades)
            return AccountSnapshot(
                timestamp=utcnow(),
                balance=self._balance,
                equity=self._balance + unrealized,
                unrealized_pnl=unrealized,
                open_trades=open_trades,
            )
