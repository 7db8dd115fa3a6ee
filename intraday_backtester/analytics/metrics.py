"""
Per-trade return statistics: win rate, mean/median/std, profit factor,
compounded growth and drawdown. Returns are fractions (0.01 = 1%).
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List

import numpy as np


@dataclass
class PerformanceMetrics:
    """Aggregate performance metrics."""
    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    mean_return: float
    median_return: float
    std_dev_return: float
    min_return: float
    max_return: float
    profit_factor: float
    initial_capital: float
    final_capital: float
    total_return_pct: float
    max_drawdown_pct: float


def portfolio_growth(returns: List[float], initial_capital: float = 10000.0) -> List[float]:
    """Equity curve from compounding each return in order, starting at initial_capital."""
    curve = [initial_capital]
    for r in returns:
        curve.append(curve[-1] * (1.0 + r))
    return curve


def max_drawdown(equity: List[float]) -> float:
    """Max drawdown in percent (e.g. -15.0 = 15% below the running peak)."""
    if not equity:
        return 0.0
    arr = np.array(equity, dtype=float)
    peak = np.maximum.accumulate(arr)
    dd = (arr - peak) / np.where(peak != 0, peak, 1)
    return float(np.min(dd)) * 100.0


def win_rate(returns: List[float], zero_is_win: bool = False) -> float:
    """Fraction of winning trades. Long books count flat trades as wins."""
    if not returns:
        return 0.0
    wins = sum(1 for r in returns if r > 0 or (zero_is_win and r == 0))
    return wins / len(returns)


def profit_factor(returns: List[float]) -> float:
    """Gross gain / gross loss. inf when there are gains but no losses."""
    gains = sum(r for r in returns if r > 0)
    losses = sum(-r for r in returns if r < 0)
    if losses <= 0:
        return float("inf") if gains > 0 else 0.0
    return gains / losses


def sample_std(returns: List[float]) -> float:
    if len(returns) < 2:
        return 0.0
    return float(np.std(np.array(returns, dtype=float), ddof=1))


def compute_metrics(
    returns: List[float],
    zero_is_win: bool = False,
    initial_capital: float = 10000.0,
) -> PerformanceMetrics:
    """Compute full metrics from per-trade returns in trade order."""
    total = len(returns)
    if total == 0:
        return PerformanceMetrics(
            total_trades=0, winning_trades=0, losing_trades=0, win_rate=0.0,
            mean_return=0.0, median_return=0.0, std_dev_return=0.0, min_return=0.0, max_return=0.0,
            profit_factor=0.0, initial_capital=initial_capital, final_capital=initial_capital,
            total_return_pct=0.0, max_drawdown_pct=0.0,
        )
    arr = np.array(returns, dtype=float)
    winners = sum(1 for r in returns if r > 0 or (zero_is_win and r == 0))
    equity = portfolio_growth(returns, initial_capital)
    return PerformanceMetrics(
        total_trades=total,
        winning_trades=winners,
        losing_trades=total - winners,
        win_rate=winners / total,
        mean_return=float(arr.mean()),
        median_return=float(np.median(arr)),
        std_dev_return=sample_std(returns),
        min_return=float(arr.min()),
        max_return=float(arr.max()),
        profit_factor=profit_factor(returns),
        initial_capital=initial_capital,
        final_capital=equity[-1],
        total_return_pct=(equity[-1] / initial_capital - 1.0) * 100.0,
        max_drawdown_pct=max_drawdown(equity),
    )
