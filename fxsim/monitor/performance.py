from __future__ import annotations

from typing import Any, Dict, Iterable

from fxsim.core.types import Trade


def summarize(trades: Iterable[Trade]) -> Dict[str, Any]:
    """Trade history statistics for closed trades; open trades are ignored."""
    pnls = [float(t.pnl) for t in trades if not t.is_open]
    if not pnls:
        return {"total_trades": 0, "wins": 0, "losses": 0, "win_rate": 0.0, "total_pnl": 0.0, "avg_win": 0.0, "avg_loss": 0.0}
    wins = [p for p in pnls if p > 0]
    losses = [p for p in pnls if p < 0]
    return {
        "total_trades": len(pnls),
        "wins": len(wins),
        "losses": len(losses),
        "win_rate": 100.0 * len(wins) / float(len(pnls)),
        "total_pnl": sum(pnls),
        "avg_win": sum(wins) / float(len(wins)) if wins else 0.0,
        "avg_loss": sum(losses) / float(len(losses)) if losses else 0.0,
    }
