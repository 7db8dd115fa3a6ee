"""Shared pytest fixtures: compact minute-bar construction."""

from datetime import date, datetime, time

import pytest

from intraday_backtester.core.types import Bar

TRADE_DAY = date(2024, 1, 3)


def stamp(hhmm: str, day: date = TRADE_DAY) -> datetime:
    hours, minutes = hhmm.split(":")
    return datetime.combine(day, time(int(hours), int(minutes)))


@pytest.fixture
def at():
    """at("13:01") -> datetime on the default trade day."""
    return stamp


@pytest.fixture
def make_bars():
    """
    Factory fixture for minute bars.

    Usage:
        bars = make_bars([("09:31", 100.0, 100.4, 99.8, 100.2), ...])
        bars = make_bars(rows, day=date(2024, 1, 2))
    """
    def _make(rows, day: date = TRADE_DAY):
        bars = []
        for row in rows:
            hhmm, o, h, l, c = row[:5]
            volume = row[5] if len(row) > 5 else 1000.0
            bars.append(Bar(time=stamp(hhmm, day), open=o, high=h, low=l, close=c, volume=volume))
        return bars
    return _make
