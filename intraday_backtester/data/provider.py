"""
Bar providers: ordered minute bars per symbol, timeframe and trading day.
Timestamps are naive exchange-local times.
"""

from __future__ import annotations
import logging
import threading
from abc import ABC, abstractmethod
from datetime import date, time, timedelta
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from intraday_backtester.core.exceptions import DataNotFoundError
from intraday_backtester.core.types import Bar
from intraday_backtester.utils.market_hours import SESSION_CLOSE, SESSION_OPEN

logger = logging.getLogger("intraday_backtester.data")

BAR_COLUMNS = ["timestamp", "open", "high", "low", "close", "volume"]


class BarProvider(ABC):
    """Source of ordered bars. Implementations must return bars in ascending time."""

    @abstractmethod
    def fetch_bars(
        self,
        symbol: str,
        timeframe: str,
        trade_date: date,
        from_time: Optional[time] = None,
    ) -> List[Bar]:
        """Bars of trade_date stamped at or after from_time."""
        pass

    @abstractmethod
    def fetch_prior_trading_day_bars(self, symbol: str, timeframe: str, before_date: date) -> List[Bar]:
        """Regular-session bars of the latest day with data strictly before before_date."""
        pass

    @abstractmethod
    def trading_days(
        self,
        symbol: str,
        timeframe: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[date]:
        """Dates with data, ascending, within [start, end]."""
        pass


def bars_to_frame(bars: Sequence[Bar]) -> pd.DataFrame:
    return pd.DataFrame(
        [(b.time, b.open, b.high, b.low, b.close, b.volume) for b in bars],
        columns=BAR_COLUMNS,
    )


def frame_to_bars(df: pd.DataFrame) -> List[Bar]:
    bars = []
    for row in df.itertuples(index=False):
        volume = None if pd.isna(row.volume) else float(row.volume)
        bars.append(Bar(
            time=row.timestamp.to_pydatetime(),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=volume,
        ))
    return bars


class FrameBarProvider(BarProvider):
    """In-memory provider over one DataFrame per (symbol, timeframe)."""

    def __init__(self, max_lookback_days: int = 10):
        self.max_lookback_days = max_lookback_days
        self._days: Dict[Tuple[str, str], Dict[date, pd.DataFrame]] = {}
        self._lock = threading.RLock()

    def add_frame(self, symbol: str, timeframe: str, df: pd.DataFrame) -> None:
        """Register OHLCV rows (columns: timestamp, open, high, low, close[, volume])."""
        df = df.copy()
        if "volume" not in df.columns:
            df["volume"] = float("nan")
        df["timestamp"] = pd.to_datetime(df["timestamp"], errors="coerce")
        df = df.dropna(subset=["timestamp"])
        for col in ("open", "high", "low", "close", "volume"):
            df[col] = pd.to_numeric(df[col], errors="coerce")
        df = df.sort_values("timestamp", kind="stable").reset_index(drop=True)
        days = {d: group for d, group in df.groupby(df["timestamp"].dt.date)}
        with self._lock:
            self._days[(symbol.upper(), timeframe)] = days
        logger.debug("Registered %d bars over %d days for %s %s", len(df), len(days), symbol, timeframe)

    def _load(self, symbol: str, timeframe: str) -> Dict[date, pd.DataFrame]:
        try:
            return self._days[(symbol.upper(), timeframe)]
        except KeyError:
            raise DataNotFoundError(f"No bars registered for {symbol} {timeframe}") from None

    def fetch_bars(
        self,
        symbol: str,
        timeframe: str,
        trade_date: date,
        from_time: Optional[time] = None,
    ) -> List[Bar]:
        day = self._load(symbol, timeframe).get(trade_date)
        if day is None:
            return []
        if from_time is not None:
            day = day[day["timestamp"].dt.time >= from_time]
        return frame_to_bars(day)

    def fetch_prior_trading_day_bars(self, symbol: str, timeframe: str, before_date: date) -> List[Bar]:
        days = self._load(symbol, timeframe)
        for offset in range(1, self.max_lookback_days + 1):
            day = days.get(before_date - timedelta(days=offset))
            if day is None:
                continue
            clock = day["timestamp"].dt.time
            session = day[(clock >= SESSION_OPEN) & (clock <= SESSION_CLOSE)]
            if not session.empty:
                return frame_to_bars(session)
        return []

    def trading_days(
        self,
        symbol: str,
        timeframe: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[date]:
        return sorted(
            d for d in self._load(symbol, timeframe)
            if (start is None or d >= start) and (end is None or d <= end)
        )


class CsvBarProvider(FrameBarProvider):
    """Reads {data_dir}/{symbol}/{timeframe}.csv lazily, headerless OHLCV rows."""

    def __init__(self, data_dir: Path, max_lookback_days: int = 10):
        super().__init__(max_lookback_days=max_lookback_days)
        self.data_dir = Path(data_dir)

    def csv_path(self, symbol: str, timeframe: str) -> Path:
        return self.data_dir / symbol.upper() / f"{timeframe}.csv"

    def _load(self, symbol: str, timeframe: str) -> Dict[date, pd.DataFrame]:
        key = (symbol.upper(), timeframe)
        with self._lock:
            if key in self._days:
                return self._days[key]
            path = self.csv_path(symbol, timeframe)
            if not path.exists():
                raise DataNotFoundError(f"Bar file not found: {path}")
            df = pd.read_csv(path, header=None, names=BAR_COLUMNS)
            if not df.empty and str(df.iloc[0]["timestamp"]).strip().lower() == "timestamp":
                df = df.iloc[1:]
            logger.info("Loaded %d rows from %s", len(df), path)
            self.add_frame(symbol, timeframe, df)
        return self._days[key]
