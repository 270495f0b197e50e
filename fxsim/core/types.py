from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional


Direction = Literal["BUY", "SELL"]
TradeStatus = Literal["OPEN", "CLOSED"]
Trigger = Literal["stop_loss", "take_profit"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Trade:
    id: str
    symbol: str
    direction: Direction
    lots: float
    entry_price: float
    current_price: float
    stop_loss: float
    take_profit: float
    open_time: datetime
    pnl: float = 0.0
    pnl_percent: float = 0.0
    status: TradeStatus = "OPEN"
    close_time: Optional[datetime] = None
    exit_price: Optional[float] = None

    @property
    def is_open(self) -> bool:
        return self.status == "OPEN"

    def copy(self, **changes: Any) -> "Trade":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "symbol": self.symbol,
            "direction": self.direction,
            "lots": self.lots,
            "entry_price": self.entry_price,
            "current_price": self.current_price,
            "stop_loss": self.stop_loss,
            "take_profit": self.take_profit,
            "open_time": self.open_time.isoformat(),
            "pnl": self.pnl,
            "pnl_percent": self.pnl_percent,
            "status": self.status,
            "close_time": self.close_time.isoformat() if self.close_time else None,
            "exit_price": self.exit_price,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Trade":
        close_time = data.get("close_time")
        exit_price = data.get("exit_price")
        return Trade(
            id=str(data["id"]),
            symbol=str(data["symbol"]),
            direction=data["direction"],
            lots=float(data["lots"]),
            entry_price=float(data["entry_price"]),
            current_price=float(data["current_price"]),
            stop_loss=float(data["stop_loss"]),
            take_profit=float(data["take_profit"]),
            open_time=datetime.fromisoformat(data["open_time"]),
            pnl=float(data.get("pnl", 0.0)),
            pnl_percent=float(data.get("pnl_percent", 0.0)),
            status=data.get("status", "OPEN"),
            close_time=datetime.fromisoformat(close_time) if close_time else None,
            exit_price=float(exit_price) if exit_price is not None else None,
        )


@dataclass(frozen=True)
class TradeResult:
    """Outcome of a mutating ledger call.

    ``trade`` is None when the id is unknown or the trade is already closed.
    ``persisted`` is False when the in-memory change could not be written.
    """

    trade: Optional[Trade]
    persisted: bool = True
    trigger: Optional[Trigger] = None

    @property
    def found(self) -> bool:
        return self.trade is not None

    @property
    def closed(self) -> bool:
        return self.trade is not None and self.trade.status == "CLOSED"

    @staticmethod
    def not_found() -> "TradeResult":
        return TradeResult(trade=None)


@dataclass
class PriceTick:
    symbol: str
    price: float
    timestamp: datetime = field(default_factory=utcnow)


@dataclass
class AccountSnapshot:
    timestamp: datetime
    balance: float
    equity: float
    unrealized_pnl: float
    open_trades: List[Trade] = field(default_factory=list)
