"""Abstract exit strategy: decide when and at what price a position closes."""

from __future__ import annotations
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence

from intraday_backtester.core.types import Bar, ExitReason, Signal
from intraday_backtester.utils.market_hours import filter_regular_session


class ExitStrategy(ABC):
    """
    One exit policy. Instances hold configuration only; any per-trade state
    lives inside a single evaluate() call so one pipeline can serve every trade.
    """

    reason: ExitReason

    @abstractmethod
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
        """Return an exit Signal for the first triggering bar, or None."""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class ReactiveExitStrategy(ExitStrategy):
    """Price-driven exits: session-filtered scan and delayed fills."""

    @staticmethod
    def bars_after_entry(bars: Sequence[Bar], entry_time: datetime, test_mode: bool) -> List[Bar]:
        after = [b for b in bars if b.time > entry_time]
        return after if test_mode else filter_regular_session(after)

    def fill(self, bars: Sequence[Bar], index: int, level: float, test_mode: bool) -> Signal:
        """
        Test mode fills at the exact level on the triggering bar. Otherwise the
        fill is the next bar's open, or the triggering bar's close when it is last.
        """
        trigger = bars[index]
        if test_mode:
            return Signal.exit(trigger.time, level, self.reason)
        if index + 1 < len(bars):
            nxt = bars[index + 1]
            return Signal.exit(nxt.time, nxt.open, self.reason)
        return Signal.exit(trigger.time, trigger.close, self.reason)
