"""Fixed time entry: enter at the close of the bar stamped at a given minute."""

from __future__ import annotations
from typing import Optional, Sequence

from intraday_backtester.core.exceptions import InvalidConfigValueError
from intraday_backtester.core.types import Bar, Direction, Signal
from intraday_backtester.patterns.base import EntryPattern
from intraday_backtester.utils.market_hours import parse_hhmm


class FixedTimeEntryPattern(EntryPattern):
    name = "fixed-time-entry"

    def __init__(self, entry_time: str = "12:30"):
        try:
            self.entry_time = parse_hhmm(entry_time)
        except ValueError as e:
            raise InvalidConfigValueError(f"{self.name}: {e}") from e

    def detect(self, day_bars: Sequence[Bar], direction: Direction = Direction.LONG) -> Optional[Signal]:
        for bar in day_bars:
            stamp = bar.time.time()
            if stamp.hour == self.entry_time.hour and stamp.minute == self.entry_time.minute:
                return Signal(
                    timestamp=bar.time,
                    price=bar.close,
                    direction=direction,
                    metadata={"pattern": self.name},
                )
        return None
