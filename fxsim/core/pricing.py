"""Pip and P/L arithmetic for the simulated account.

The pip value table is a demo simplification: JPY-quoted pairs get a larger
flat multiplier than everything else and there is no contract-size or
account-currency conversion. Crypto tickers fall through to the default.
"""
from __future__ import annotations

from typing import Dict, Mapping, Optional, Tuple

from fxsim.core.types import Direction


DEFAULT_KEY = "default"

PIP_VALUES: Dict[str, float] = {
    "JPY": 1000.0,
    DEFAULT_KEY: 10.0,
}

_SL_DISTANCE_FIXED: Dict[str, float] = {
    "BTCUSD": 500.0,
}
_SL_DISTANCE_JPY = 0.5
_SL_DISTANCE_PCT = 0.005
_RISK_REWARD = 2.0


def pip_value(symbol: str, table: Optional[Mapping[str, float]] = None) -> float:
    table = table or PIP_VALUES
    sym = str(symbol).upper()
    for key, value in table.items():
        if key != DEFAULT_KEY and key.upper() in sym:
            return float(value)
    return float(table.get(DEFAULT_KEY, PIP_VALUES[DEFAULT_KEY]))


def price_diff(direction: Direction, entry_price: float, price: float) -> float:
    if direction == "BUY":
        return price - entry_price
    return entry_price - price


def compute_pnl(
    direction: Direction,
    entry_price: float,
    price: float,
    lots: float,
    symbol: str,
    table: Optional[Mapping[str, float]] = None,
) -> Tuple[float, float]:
    """Return ``(pnl, pnl_percent)`` for a position marked at ``price``."""
    diff = price_diff(direction, entry_price, price)
    pnl = diff * lots * pip_value(symbol, table)
    pnl_percent = (diff / entry_price) * 100.0
    return pnl, pnl_percent


def pip_factor(symbol: str) -> float:
    return 100.0 if "JPY" in symbol.upper() else 10000.0


def calculate_pips(entry_price: float, current_price: float, symbol: str) -> float:
    return abs(current_price - entry_price) * pip_factor(symbol)


def price_decimals(symbol: str) -> int:
    sym = symbol.upper()
    if sym == "BTCUSD":
        return 2
    if "JPY" in sym:
        return 3
    return 5


def format_price(price: float, symbol: str) -> str:
    return f"{price:.{price_decimals(symbol)}f}"


def auto_tp_sl(entry_price: float, direction: Direction, symbol: str) -> Tuple[float, float]:
    """Default protective levels: fixed or 0.5% stop distance, target at 1:2."""
    sym = symbol.upper()
    if sym in _SL_DISTANCE_FIXED:
        sl_distance = _SL_DISTANCE_FIXED[sym]
    elif "JPY" in sym:
        sl_distance = _SL_DISTANCE_JPY
    else:
        sl_distance = entry_price * _SL_DISTANCE_PCT
    tp_distance = sl_distance * _RISK_REWARD

    if direction == "BUY":
        stop_loss, take_profit = entry_price - sl_distance, entry_price + tp_distance
    else:
        stop_loss, take_profit = entry_price + sl_distance, entry_price - tp_distance

    decimals = price_decimals(sym)
    return round(stop_loss, decimals), round(take_profit, decimals)
