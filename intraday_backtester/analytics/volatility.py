"""
True Range and single-day Average True Range.
"""

from __future__ import annotations
import logging
from datetime import date
from typing import List, Optional, Sequence, TYPE_CHECKING

import pandas as pd

from intraday_backtester.core.types import Bar

if TYPE_CHECKING:
    from intraday_backtester.data.provider import BarProvider

logger = logging.getLogger("intraday_backtester.analytics")


def true_range(bar: Bar, prev_close: Optional[float] = None) -> float:
    if prev_close is None:
        return bar.high - bar.low
    return max(bar.high - bar.low, abs(bar.high - prev_close), abs(bar.low - prev_close))


def true_range_series(df: pd.DataFrame) -> pd.Series:
    """Per-row True Range; the first row has no previous close and falls back to high - low."""
    high_low = df["high"] - df["low"]
    high_close = (df["high"] - df["close"].shift()).abs()
    low_close = (df["low"] - df["close"].shift()).abs()
    return pd.concat([high_low, high_close, low_close], axis=1).max(axis=1)


def average_true_range(bars: Sequence[Bar]) -> Optional[float]:
    """Mean True Range over one trading day's bars. None when there are no bars."""
    if not bars:
        return None
    df = pd.DataFrame(
        {"high": [b.high for b in bars], "low": [b.low for b in bars], "close": [b.close for b in bars]}
    )
    return float(true_range_series(df).mean())


def calculate_entry_atr(
    provider: "BarProvider",
    symbol: str,
    timeframe: str,
    trade_date: date,
) -> Optional[float]:
    """ATR of the trading day before trade_date, or None if that day has no bars."""
    prior_bars: List[Bar] = provider.fetch_prior_trading_day_bars(symbol, timeframe, trade_date)
    if not prior_bars:
        logger.warning("No prior day bars found for %s %s before %s", symbol, timeframe, trade_date)
        return None
    atr = average_true_range(prior_bars)
    if atr is None:
        logger.warning("Could not calculate ATR for %s before %s", symbol, trade_date)
        return None
    logger.debug("Prior day ATR for %s on %s: %.4f (%d bars)", symbol, trade_date, atr, len(prior_bars))
    return atr
