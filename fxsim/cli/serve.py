from __future__ import annotations

import argparse
import threading

import uvicorn

from fxsim.broker.risk import RiskGate
from fxsim.cli.run import build_ledger
from fxsim.core.config import AppConfig
from fxsim.core.env import load_local_environment
from fxsim.core.logging import get_logger, setup_logging
from fxsim.data.price_simulator import PriceSimulator
from fxsim.webapp.api import create_app


def main() -> None:
    parser = argparse.ArgumentParser(description="FX simulator API with a live simulated price feed")
    parser.add_argument("--config", type=str, required=True, help="Path to YAML config")
    parser.add_argument("--no-feed", action="store_true", help="Do not start the simulated price feed")
    args = parser.parse_args()

    load_local_environment()
    cfg = AppConfig.load(args.config)
    setup_logging(level="INFO")
    log = get_logger()

    ledger = build_ledger(cfg)
    app = create_app(ledger, RiskGate(cfg.risk.profile))

    stop = threading.Event()
    if not args.no_feed:
        sim = PriceSimulator(prices=cfg.feed.symbols, volatility=cfg.feed.volatility, seed=cfg.feed.seed)
        feed = threading.Thread(
            target=sim.run,
            kwargs={"callback": ledger.on_price, "interval_sec": cfg.feed.interval_sec, "stop_event": stop},
            name="price-feed",
            daemon=True,
        )
        feed.start()
        log.info(f"Price feed started for {', '.join(sim.prices)} every {cfg.feed.interval_sec}s")

    try:
        uvicorn.run(app, host=cfg.web.host, port=cfg.web.port, log_level="info")
    finally:
        stop.set()


if __name__ == "__main__":
    main()
