"""
Scheduled exits: max hold time and end of day. Both fill at the close of the
bar that reaches the cutoff, with no next-bar delay.
"""

from __future__ import annotations
import logging
from datetime import datetime, timedelta
from typing import Optional, Sequence

from intraday_backtester.core.config import EndOfDayConfig, MaxHoldTimeConfig
from intraday_backtester.core.types import Bar, ExitReason, Signal
from intraday_backtester.exits.base import ExitStrategy, ReactiveExitStrategy
from intraday_backtester.utils.market_hours import parse_hhmm

logger = logging.getLogger("intraday_backtester.exits")


class MaxHoldTimeStrategy(ExitStrategy):
    reason = ExitReason.MAX_HOLD_TIME

    def __init__(self, options: MaxHoldTimeConfig):
        self.options = options

    def evaluate(
        self,
        entry_price: float,
        entry_time: datetime,
        bars: Sequence[Bar],
        is_long: bool,
        atr: Optional[float] = None,
        test_mode: bool = False,
        level_override: Optional[float] = None,
    ) -> Optional[Signal]:
        cutoff = entry_time + timedelta(minutes=self.options.minutes)
        for bar in ReactiveExitStrategy.bars_after_entry(bars, entry_time, test_mode):
            if bar.time >= cutoff:
                return Signal.exit(bar.time, bar.close, self.reason)
        # Short session: leave it to a later fallback
        return None

    def __repr__(self) -> str:
        return f"MaxHoldTimeStrategy(minutes={self.options.minutes})"


class EndOfDayStrategy(ExitStrategy):
    """Sees every bar after entry, including those at or past the nominal close."""

    reason = ExitReason.END_OF_DAY

    def __init__(self, options: EndOfDayConfig):
        self.options = options
        self.close_time = parse_hhmm(options.time)

    def evaluate(
        self,
        entry_price: float,
        entry_time: datetime,
        bars: Sequence[Bar],
        is_long: bool,
        atr: Optional[float] = None,
        test_mode: bool = False,
        level_override: Optional[float] = None,
    ) -> Optional[Signal]:
        after = [b for b in bars if b.time > entry_time]
        if not after:
            return None
        end_ts = datetime.combine(entry_time.date(), self.close_time, tzinfo=entry_time.tzinfo)
        # Entry on the last bar of its day falls through to the next day's first bar
        for bar in after:
            if bar.time >= end_ts:
                return Signal.exit(bar.time, bar.close, self.reason)
        last = after[-1]
        if last.time.date() == entry_time.date():
            return Signal.exit(last.time, last.close, self.reason)
        return None

    def __repr__(self) -> str:
        return f"EndOfDayStrategy(time={self.options.time!r})"
