from __future__ import annotations

import json
import math
from typing import List, Optional

from fxsim.core.types import Trade


TRADES_KEY = "simulated_trades"
BALANCE_KEY = "simulated_balance"


def dump_trades(trades: List[Trade]) -> str:
    return json.dumps([t.to_dict() for t in trades])


def _check_trade(trade: Trade) -> Trade:
    if trade.direction not in ("BUY", "SELL"):
        raise ValueError(f"{trade.id}: bad direction {trade.direction!r}")
    if trade.status not in ("OPEN", "CLOSED"):
        raise ValueError(f"{trade.id}: bad status {trade.status!r}")
    numbers = (trade.lots, trade.entry_price, trade.current_price, trade.stop_loss,
               trade.take_profit, trade.pnl, trade.pnl_percent)
    if not all(math.isfinite(n) for n in numbers):
        raise ValueError(f"{trade.id}: non-finite number")
    if trade.lots <= 0 or trade.entry_price <= 0:
        raise ValueError(f"{trade.id}: lots and entry_price must be > 0")
    closed_fields = (trade.close_time is not None, trade.exit_price is not None)
    if trade.status == "CLOSED" and closed_fields != (True, True):
        raise ValueError(f"{trade.id}: closed trade without close_time/exit_price")
    if trade.status == "OPEN" and closed_fields != (False, False):
        raise ValueError(f"{trade.id}: open trade with close_time/exit_price")
    if trade.exit_price is not None and not math.isfinite(trade.exit_price):
        raise ValueError(f"{trade.id}: non-finite exit_price")
    return trade


def load_trades(raw: Optional[str]) -> List[Trade]:
    """Parse the persisted trade list. Raises ValueError/KeyError/TypeError on malformed input."""
    if not raw:
        return []
    rows = json.loads(raw)
    if not isinstance(rows, list):
        raise ValueError("trade list must be a JSON array")
    trades = [_check_trade(Trade.from_dict(row)) for row in rows]
    if len({t.id for t in trades}) != len(trades):
        raise ValueError("duplicate trade ids")
    return trades


def dump_balance(balance: float) -> str:
    return repr(float(balance))


def load_balance(raw: Optional[str]) -> Optional[float]:
    if raw is None or raw == "":
        return None
    balance = float(raw)
    if not math.isfinite(balance):
        raise ValueError(f"balance must be finite, got {raw!r}")
    return balance
