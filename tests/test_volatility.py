"""Unit tests for analytics.volatility."""

import logging
from datetime import date

import pytest
from intraday_backtester.analytics.volatility import average_true_range, calculate_entry_atr, true_range
from intraday_backtester.core.types import Bar
from intraday_backtester.data.provider import FrameBarProvider, bars_to_frame


def test_true_range_first_bar_is_high_minus_low(make_bars):
    bar = make_bars([("09:30", 100.0, 101.0, 99.0, 100.5)])[0]
    assert true_range(bar) == pytest.approx(2.0)


def test_true_range_uses_gap_from_previous_close(make_bars):
    bar = make_bars([("09:30", 104.0, 105.0, 103.0, 104.5)])[0]
    assert true_range(bar, prev_close=100.0) == pytest.approx(5.0)


def test_average_true_range_empty():
    assert average_true_range([]) is None


def test_average_true_range(make_bars):
    bars = make_bars([
        ("09:30", 100.0, 101.0, 99.0, 100.0),   # TR 2.0
        ("09:31", 100.0, 103.0, 100.5, 102.0),  # TR max(2.5, 3.0, 0.5) = 3.0
        ("09:32", 102.0, 102.5, 101.0, 101.5),  # TR max(1.5, 0.5, 1.0) = 1.5
    ])
    assert average_true_range(bars) == pytest.approx(6.5 / 3)


def test_calculate_entry_atr_uses_prior_session_only(make_bars):
    prior = make_bars([
        ("08:00", 90.0, 120.0, 80.0, 100.0),  # pre-market, excluded
        ("09:30", 100.0, 101.0, 99.0, 100.0),
        ("09:31", 100.0, 102.0, 100.0, 101.0),
    ], day=date(2024, 1, 2))
    today = make_bars([("09:30", 101.0, 101.5, 100.5, 101.0)], day=date(2024, 1, 3))
    provider = FrameBarProvider()
    provider.add_frame("SPY", "1min", bars_to_frame(prior + today))
    # TRs: 2.0 and max(2.0, 2.0, 0.0) = 2.0
    assert calculate_entry_atr(provider, "SPY", "1min", date(2024, 1, 3)) == pytest.approx(2.0)


def test_calculate_entry_atr_without_prior_day(make_bars, caplog):
    provider = FrameBarProvider(max_lookback_days=3)
    provider.add_frame("SPY", "1min", bars_to_frame(make_bars([("09:30", 100.0, 101.0, 99.0, 100.0)])))
    with caplog.at_level(logging.WARNING, logger="intraday_backtester"):
        assert calculate_entry_atr(provider, "SPY", "1min", date(2024, 1, 3)) is None
    assert "No prior day bars" in caplog.text


def test_bar_is_immutable():
    bar = Bar(time=None, open=1.0, high=1.0, low=1.0, close=1.0)
    with pytest.raises(AttributeError):
        bar.close = 2.0
