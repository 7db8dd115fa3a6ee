"""Analytics: ATR and per-trade return metrics."""

from intraday_backtester.analytics.metrics import (
    PerformanceMetrics,
    compute_metrics,
    max_drawdown,
    portfolio_growth,
    profit_factor,
    sample_std,
    win_rate,
)
from intraday_backtester.analytics.volatility import average_true_range, calculate_entry_atr, true_range

__all__ = [
    "PerformanceMetrics",
    "compute_metrics",
    "max_drawdown",
    "portfolio_growth",
    "profit_factor",
    "sample_std",
    "win_rate",
    "average_true_range",
    "calculate_entry_atr",
    "true_range",
]
