"""Core: config, types, errors, logging."""

from intraday_backtester.core.config import load_config, Config, ExitStrategiesConfig
from intraday_backtester.core.exceptions import BacktestError, ConfigurationError, DataError
from intraday_backtester.core.types import Bar, Direction, ExitReason, Signal, SignalKind, Trade, UnresolvedTrade
from intraday_backtester.core.logger import setup_logging

__all__ = [
    "load_config",
    "Config",
    "ExitStrategiesConfig",
    "BacktestError",
    "ConfigurationError",
    "DataError",
    "Bar",
    "Direction",
    "ExitReason",
    "Signal",
    "SignalKind",
    "Trade",
    "UnresolvedTrade",
    "setup_logging",
]
