from __future__ import annotations

from typing import Optional

from fxsim.core.types import Trade


class FxSimError(Exception):
    pass


class ValidationError(FxSimError, ValueError):
    """Rejected input: non-positive lots or prices, unknown direction."""


class RiskLimitError(ValidationError):
    """Order refused by the active risk profile."""


class PersistenceError(FxSimError):
    """Durable storage failed.

    The ledger keeps its in-memory mutation; ``trade`` is the affected trade
    as it now stands in memory, so callers can still show it and retry the
    write with ``TradingLedger.flush()``.
    """

    def __init__(self, message: str, trade: Optional[Trade] = None) -> None:
        super().__init__(message)
        self.trade = trade
