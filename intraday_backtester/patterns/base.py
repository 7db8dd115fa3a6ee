"""Abstract entry pattern: scans one trading day and emits at most one entry."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from intraday_backtester.core.types import Bar, Direction, Signal


class EntryPattern(ABC):
    """Pattern sees a whole day's bars but must only use bars up to the entry it returns."""

    name: str

    @abstractmethod
    def detect(self, day_bars: Sequence[Bar], direction: Direction = Direction.LONG) -> Optional[Signal]:
        """Return the entry Signal for this day, or None."""
        pass
