from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional

from fxsim.core.pricing import compute_pnl
from fxsim.core.types import Trade, Trigger, utcnow


@dataclass(frozen=True)
class Settlement:
    trade: Trade
    triggered: bool = False
    trigger: Optional[Trigger] = None
    exit_price: Optional[float] = None


def mark_to_market(trade: Trade, price: float, pip_values: Optional[Mapping[str, float]] = None) -> Trade:
    pnl, pnl_percent = compute_pnl(trade.direction, trade.entry_price, price, trade.lots, trade.symbol, pip_values)
    return trade.copy(current_price=price, pnl=pnl, pnl_percent=pnl_percent)


def finalize(
    trade: Trade,
    exit_price: float,
    when: Optional[datetime] = None,
    pip_values: Optional[Mapping[str, float]] = None,
) -> Trade:
    """Return the CLOSED copy of ``trade`` with P/L fixed at ``exit_price``."""
    pnl, pnl_percent = compute_pnl(trade.direction, trade.entry_price, exit_price, trade.lots, trade.symbol, pip_values)
    return trade.copy(
        exit_price=exit_price,
        close_time=when or utcnow(),
        status="CLOSED",
        pnl=pnl,
        pnl_percent=pnl_percent,
    )


def _breach(trade: Trade, price: float) -> Optional[Trigger]:
    # Stop-loss is checked first: a gap through both levels fills at the stop
    if trade.direction == "BUY" and price <= trade.stop_loss:
        return "stop_loss"
    if trade.direction == "SELL" and price >= trade.stop_loss:
        return "stop_loss"
    if trade.direction == "BUY" and price >= trade.take_profit:
        return "take_profit"
    if trade.direction == "SELL" and price <= trade.take_profit:
        return "take_profit"
    return None


def evaluate(trade: Trade, price: float, pip_values: Optional[Mapping[str, float]] = None) -> Settlement:
    """Mark ``trade`` at ``price`` and decide whether a protective level fired.

    Pure: the input trade is never modified. When a level is breached the
    returned settlement carries the threshold as ``exit_price``; the caller
    closes the trade there rather than at the raw tick.
    """
    marked = mark_to_market(trade, price, pip_values)
    trigger = _breach(trade, price)
    if trigger is None:
        return Settlement(trade=marked)
    exit_price = trade.stop_loss if trigger == "stop_loss" else trade.take_profit
    return Settlement(trade=marked, triggered=True, trigger=trigger, exit_price=exit_price)
