"""
Logging setup: console plus optional log file.
"""

from __future__ import annotations
import logging
import sys
from pathlib import Path
from typing import Optional

LOGGER_NAME = "intraday_backtester"


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[Path] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the package logger. Child loggers (intraday_backtester.exits,
    intraday_backtester.backtest, ...) propagate into it.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(log_level)
    root.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_dir and log_file:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_dir / log_file, encoding="utf-8")
        fh.setFormatter(formatter)
        root.addHandler(fh)

    return root
