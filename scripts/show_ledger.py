#!/usr/bin/env python3
"""
Print the persisted paper account: balance, equity and trade history stats.

Usage:
    python scripts/show_ledger.py --config configs/default.yaml
    python scripts/show_ledger.py --config configs/default.yaml --reset   # wipe trades, restore balance
"""

import argparse
import sys
from pathlib import Path

# Make the package importable without installing it
sys.path.insert(0, str(Path(__file__).parent.parent))

from fxsim.cli.run import build_ledger
from fxsim.core.config import AppConfig
from fxsim.core.pricing import format_price
from fxsim.monitor.performance import summarize


def format_currency(amount: float) -> str:
    return f"${amount:,.2f}" if amount >= 0 else f"-${abs(amount):,.2f}"


def print_account(ledger) -> None:
    stats = summarize(ledger.get_closed_trades())
    open_trades = ledger.get_open_trades()

    print("\n" + "=" * 70)
    print("PAPER ACCOUNT")
    print("=" * 70)
    print(f"  Balance            : {format_currency(ledger.get_balance())}")
    print(f"  Equity             : {format_currency(ledger.get_equity())}")

    print(f"\nHistory:")
    print(f"  Closed trades      : {stats['total_trades']} ({stats['wins']}W / {stats['losses']}L)")
    print(f"  Win rate           : {stats['win_rate']:.1f}%")
    print(f"  Total PnL          : {format_currency(stats['total_pnl'])}")
    print(f"  Avg win / loss     : {format_currency(stats['avg_win'])} / {format_currency(stats['avg_loss'])}")

    if open_trades:
        print(f"\nOpen trades:")
        for t in open_trades:
            print(
                f"  {t.id:28s} {t.direction:4s} {t.lots:>6g} {t.symbol:8s} "
                f"{format_price(t.entry_price, t.symbol)} -> {format_price(t.current_price, t.symbol)} "
                f"{format_currency(t.pnl)}"
            )
    print("=" * 70 + "\n")


def main() -> None:
    parser = argparse.ArgumentParser(description="Show the persisted paper account")
    parser.add_argument("--config", type=str, default="configs/default.yaml", help="Path to YAML config")
    parser.add_argument("--reset", action="store_true", help="Clear all trades and restore the initial balance")
    args = parser.parse_args()

    ledger = build_ledger(AppConfig.load(args.config))

    if args.reset:
        ledger.reset()
        print(f"Ledger reset, balance {format_currency(ledger.get_balance())}")
        return

    if not ledger.get_all_trades():
        print("\nNo trades recorded yet. Run fxsim-run or fxsim-serve first.\n")
        return

    print_account(ledger)


if __name__ == "__main__":
    main()
