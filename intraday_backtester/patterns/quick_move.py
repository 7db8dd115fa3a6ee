"""
Opening-range moves: enter when price moves a minimum percent away from the
09:30 open within the first few minutes of the session.
"""

from __future__ import annotations
import logging
from abc import abstractmethod
from datetime import timedelta
from typing import Optional, Sequence

from intraday_backtester.core.exceptions import InvalidConfigValueError
from intraday_backtester.core.types import Bar, Direction, Signal
from intraday_backtester.patterns.base import EntryPattern
from intraday_backtester.utils.market_hours import SESSION_OPEN

logger = logging.getLogger("intraday_backtester.patterns")


class QuickMovePattern(EntryPattern):
    """Shared scan; subclasses define how far a bar moved from the open."""

    def __init__(self, move_pct: float = 0.3, within_minutes: int = 5):
        if isinstance(move_pct, bool) or not isinstance(move_pct, (int, float)) or move_pct < 0:
            raise InvalidConfigValueError(f"{self.name}: move percent must be a non-negative number")
        if isinstance(within_minutes, bool) or not isinstance(within_minutes, int) or within_minutes <= 0:
            raise InvalidConfigValueError(f"{self.name}: within_minutes must be a positive integer")
        self.move_pct = float(move_pct)
        self.within_minutes = within_minutes

    @abstractmethod
    def move_from_open(self, bar: Bar, market_open: float) -> float:
        """Percent move of this bar away from the open, positive in the pattern's direction."""
        pass

    def detect(self, day_bars: Sequence[Bar], direction: Direction = Direction.LONG) -> Optional[Signal]:
        open_bar = next((b for b in day_bars if b.time.time() == SESSION_OPEN), None)
        if open_bar is None or open_bar.open <= 0:
            return None
        market_open = open_bar.open
        cutoff = open_bar.time + timedelta(minutes=self.within_minutes)
        for bar in day_bars:
            if bar.time < open_bar.time or bar.time > cutoff:
                continue
            move = self.move_from_open(bar, market_open)
            if move >= self.move_pct:
                logger.debug("%s on %s: %.3f%% at %s", self.name, bar.time.date(), move, bar.time)
                return Signal(
                    timestamp=bar.time,
                    price=bar.close,
                    direction=direction,
                    metadata={"pattern": self.name, "market_open": market_open, "move_pct": move},
                )
        return None


class QuickRisePattern(QuickMovePattern):
    name = "quick-rise"

    def __init__(self, rise_pct: float = 0.3, within_minutes: int = 5):
        super().__init__(rise_pct, within_minutes)

    def move_from_open(self, bar: Bar, market_open: float) -> float:
        return (bar.high - market_open) / market_open * 100.0


class QuickFallPattern(QuickMovePattern):
    name = "quick-fall"

    def __init__(self, fall_pct: float = 0.3, within_minutes: int = 5):
        super().__init__(fall_pct, within_minutes)

    def move_from_open(self, bar: Bar, market_open: float) -> float:
        return (market_open - bar.low) / market_open * 100.0
