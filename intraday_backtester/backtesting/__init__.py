"""Backtesting: slippage, exit resolution, and per-signal trade processing."""

from intraday_backtester.backtesting.engine import (
    BacktestEngine,
    BacktestResult,
    DirectionalTradeStats,
    OverallTradeStats,
    compute_return,
)
from intraday_backtester.backtesting.resolver import resolve_exit
from intraday_backtester.backtesting.slippage import apply_slippage

__all__ = [
    "BacktestEngine",
    "BacktestResult",
    "DirectionalTradeStats",
    "OverallTradeStats",
    "compute_return",
    "resolve_exit",
    "apply_slippage",
]
