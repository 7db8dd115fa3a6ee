"""Regular trading session window and HH:MM helpers."""

from __future__ import annotations
import re
from datetime import datetime, time
from typing import Iterable, List, TYPE_CHECKING

if TYPE_CHECKING:
    from intraday_backtester.core.types import Bar

SESSION_OPEN = time(9, 30)
SESSION_CLOSE = time(16, 0)

HHMM_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")


def is_valid_hhmm(value: str) -> bool:
    return isinstance(value, str) and HHMM_PATTERN.match(value) is not None


def parse_hhmm(value: str) -> time:
    """Parse 'HH:MM' (hour may be a single digit). Raises ValueError on bad input."""
    if not is_valid_hhmm(value):
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def in_regular_session(ts: datetime) -> bool:
    """True for 09:30 through 16:00 inclusive, compared at minute resolution."""
    minute_of_day = ts.hour * 60 + ts.minute
    return SESSION_OPEN.hour * 60 + SESSION_OPEN.minute <= minute_of_day <= SESSION_CLOSE.hour * 60 + SESSION_CLOSE.minute


def filter_regular_session(bars: Iterable["Bar"]) -> List["Bar"]:
    return [b for b in bars if in_regular_session(b.time)]
