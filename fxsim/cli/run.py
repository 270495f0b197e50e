from __future__ import annotations

import argparse

from rich.console import Console
from rich.table import Table

from fxsim.broker.ledger import TradingLedger
from fxsim.core.config import AppConfig
from fxsim.core.env import load_local_environment
from fxsim.core.logging import get_logger, setup_logging
from fxsim.core.pricing import auto_tp_sl, format_price
from fxsim.data.price_simulator import PriceSimulator
from fxsim.monitor.performance import summarize
from fxsim.storage.kv import build_store


console = Console()


def build_ledger(cfg: AppConfig) -> TradingLedger:
    return TradingLedger(
        store=build_store(cfg.storage),
        initial_balance=cfg.ledger.initial_balance,
        pip_values=cfg.ledger.pip_values,
        raise_on_persist_error=cfg.ledger.raise_on_persist_error,
    )


def render_account(ledger: TradingLedger) -> None:
    snap = ledger.snapshot()
    table = Table(title="Account")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Balance", f"${snap.balance:,.2f}")
    table.add_row("Equity", f"${snap.equity:,.2f}")
    table.add_row("Unrealized PnL", f"${snap.unrealized_pnl:,.2f}")
    console.print(table)

    trades = Table(title="Trades")
    for col in ("ID", "Symbol", "Side", "Lots", "Entry", "Last/Exit", "PnL", "Status"):
        trades.add_column(col)
    for t in ledger.get_all_trades():
        last = t.exit_price if t.exit_price is not None else t.current_price
        trades.add_row(
            t.id,
            t.symbol,
            t.direction,
            f"{t.lots:g}",
            format_price(t.entry_price, t.symbol),
            format_price(last, t.symbol),
            f"{t.pnl:+.2f}",
            t.status,
        )
    console.print(trades)

    stats = summarize(ledger.get_closed_trades())
    console.print(
        f"Closed: {stats['total_trades']}  Win rate: {stats['win_rate']:.1f}%  "
        f"Total PnL: ${stats['total_pnl']:+,.2f}"
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="FX simulator: stream simulated prices into the paper ledger")
    parser.add_argument("--config", type=str, required=True, help="Path to YAML config")
    parser.add_argument("--ticks", type=int, default=None, help="Override feed.ticks")
    parser.add_argument("--lots", type=float, default=0.1, help="Lots for the demo trades")
    parser.add_argument("--no-demo-trades", action="store_true", help="Do not open a demo trade per symbol")
    parser.add_argument("--reset", action="store_true", help="Reset the ledger before running")
    args = parser.parse_args()

    load_local_environment()
    cfg = AppConfig.load(args.config)
    setup_logging(level="INFO")
    log = get_logger()

    ledger = build_ledger(cfg)
    if args.reset:
        ledger.reset()

    sim = PriceSimulator(prices=cfg.feed.symbols, volatility=cfg.feed.volatility, seed=cfg.feed.seed)

    if not args.no_demo_trades:
        for i, (symbol, price) in enumerate(sim.prices.items()):
            direction = "BUY" if i % 2 == 0 else "SELL"
            sl, tp = auto_tp_sl(price, direction, symbol)
            ledger.open_trade(symbol, direction, args.lots, price, sl, tp)

    ticks = args.ticks or cfg.feed.ticks
    for tick in sim.ticks(ticks):
        for result in ledger.on_price(tick.symbol, tick.price):
            if result.closed:
                log.info(f"{result.trade.id} hit {result.trigger} at {result.trade.exit_price}")

    render_account(ledger)


if __name__ == "__main__":
    main()
