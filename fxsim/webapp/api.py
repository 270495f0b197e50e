from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from loguru import logger as log
from pydantic import BaseModel, Field

from fxsim.broker.ledger import TradingLedger
from fxsim.broker.risk import RiskGate
from fxsim.core.errors import PersistenceError, ValidationError
from fxsim.core.pricing import auto_tp_sl
from fxsim.core.types import Trade, TradeResult
from fxsim.monitor.performance import summarize


class OpenTradeRequest(BaseModel):
    symbol: str
    direction: Literal["BUY", "SELL"]
    lots: float
    entry_price: float
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    emotion_score: Optional[float] = Field(default=None, ge=0, le=100)


class CloseTradeRequest(BaseModel):
    exit_price: Optional[float] = None


class ProtectionRequest(BaseModel):
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None


class PriceRequest(BaseModel):
    symbol: str
    price: float


def _trade_json(trade: Trade) -> Dict[str, Any]:
    return trade.to_dict()


def _result_json(result: TradeResult) -> Dict[str, Any]:
    return {
        "trade": _trade_json(result.trade) if result.trade else None,
        "persisted": result.persisted,
        "trigger": result.trigger,
    }


def _found(result: TradeResult, trade_id: str) -> Dict[str, Any]:
    if not result.found:
        raise HTTPException(status_code=404, detail=f"no open trade {trade_id}")
    return _result_json(result)


def create_app(ledger: TradingLedger, risk_gate: Optional[RiskGate] = None) -> FastAPI:
    app = FastAPI(title="FX Simulator")
    gate = risk_gate or RiskGate()

    @app.exception_handler(ValidationError)
    async def _validation_error(request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(PersistenceError)
    async def _persistence_error(request, exc: PersistenceError):
        log.error(f"{request.method} {request.url.path}: storage unavailable ({exc})")
        return JSONResponse(
            status_code=503,
            content={
                "detail": "storage unavailable",
                "trade": _trade_json(exc.trade) if exc.trade else None,
            },
        )

    @app.get("/api/account")
    def get_account():
        snap = ledger.snapshot()
        return {
            "timestamp": snap.timestamp.isoformat(),
            "balance": snap.balance,
            "equity": snap.equity,
            "unrealized_pnl": snap.unrealized_pnl,
            "open_trades": len(snap.open_trades),
            "risk_profile": gate.key,
        }

    @app.get("/api/trades/open")
    def get_open_trades() -> List[Dict[str, Any]]:
        return [_trade_json(t) for t in ledger.get_open_trades()]

    @app.get("/api/trades/closed")
    def get_closed_trades() -> List[Dict[str, Any]]:
        return [_trade_json(t) for t in ledger.get_closed_trades()]

    @app.get("/api/trades/{trade_id}")
    def get_trade(trade_id: str):
        trade = ledger.get_trade(trade_id)
        if trade is None:
            raise HTTPException(status_code=404, detail=f"no trade {trade_id}")
        return _trade_json(trade)

    @app.get("/api/stats")
    def get_stats():
        return summarize(ledger.get_closed_trades())

    @app.post("/api/trades", status_code=201)
    def open_trade(req: OpenTradeRequest):
        warnings = gate.check_order(req.lots, req.emotion_score)
        stop_loss, take_profit = req.stop_loss, req.take_profit
        if stop_loss is None or take_profit is None:
            auto_sl, auto_tp = auto_tp_sl(req.entry_price, req.direction, req.symbol)
            stop_loss = auto_sl if stop_loss is None else stop_loss
            take_profit = auto_tp if take_profit is None else take_profit
        result = ledger.open_trade(
            symbol=req.symbol,
            direction=req.direction,
            lots=req.lots,
            entry_price=req.entry_price,
            stop_loss=stop_loss,
            take_profit=take_profit,
        )
        return {**_result_json(result), "warnings": warnings}

    @app.post("/api/trades/{trade_id}/close")
    def close_trade(trade_id: str, req: Optional[CloseTradeRequest] = None):
        exit_price = req.exit_price if req else None
        return _found(ledger.close_trade(trade_id, exit_price), trade_id)

    @app.patch("/api/trades/{trade_id}/protection")
    def modify_protection(trade_id: str, req: ProtectionRequest):
        return _found(ledger.modify_protection(trade_id, req.stop_loss, req.take_profit), trade_id)

    @app.post("/api/prices")
    def push_price(req: PriceRequest):
        results = ledger.on_price(req.symbol, req.price)
        return {"updated": [_result_json(r) for r in results]}

    @app.post("/api/reset")
    def reset():
        persisted = ledger.reset()
        return {"balance": ledger.get_balance(), "persisted": persisted}

    return app
