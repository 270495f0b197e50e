from __future__ import annotations

import os
from pathlib import Path

from loguru import logger as _logger


_TRUTHY = {"1", "true", "yes"}
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{line} | {message}"


def setup_logging(log_dir: str = "logs", level: str = "INFO") -> None:
    """Route ledger and feed logs to the console and ``<log_dir>/fxsim.log``.

    ``FXSIM_LOG_LEVEL`` replaces ``level``; ``FXSIM_DISABLE_CONSOLE_LOG=1``
    keeps only the file sink (useful under uvicorn, which prints its own access log).
    """
    level = os.getenv("FXSIM_LOG_LEVEL", level).upper()
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    _logger.remove()
    if os.getenv("FXSIM_DISABLE_CONSOLE_LOG", "0").lower() not in _TRUTHY:
        _logger.add(
            sink=lambda msg: print(msg, end=""),
            level=level,
            colorize=True,
            backtrace=False,
            diagnose=False,
        )
    # enqueue: the price-feed thread and API workers log concurrently
    _logger.add(
        log_path / "fxsim.log",
        rotation="10 MB",
        retention=10,
        level=level,
        enqueue=True,
        backtrace=False,
        diagnose=False,
        format=_FILE_FORMAT,
    )


def get_logger() -> _logger.__class__:
    return _logger
