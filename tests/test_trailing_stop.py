"""Unit tests for exits.trailing."""

import logging

import pytest
from intraday_backtester.core.config import TrailingStopConfig
from intraday_backtester.core.exceptions import ConfigurationError
from intraday_backtester.core.types import ExitReason
from intraday_backtester.exits.trailing import TrailingStopStrategy


@pytest.fixture
def run_up_bars(make_bars):
    return make_bars([
        ("10:01", 100.95, 101.05, 100.9, 101.0),  # arms (activation 101), level 100.545
        ("10:02", 101.85, 102.0, 101.8, 101.9),  # best 102, level 101.49
        ("10:03", 101.6, 101.7, 101.0, 101.2),   # retrace through 101.49
        ("10:04", 101.2, 101.4, 100.8, 101.0),
    ])


def test_activation_then_trail_in_test_mode(run_up_bars, at):
    strategy = TrailingStopStrategy(TrailingStopConfig(activation_percent=1.0, trail_percent=0.5))
    signal = strategy.evaluate(100.0, at("10:00"), run_up_bars, True, test_mode=True)
    assert signal.reason is ExitReason.TRAILING_STOP
    assert signal.timestamp == at("10:03")
    assert signal.price == pytest.approx(101.49)


def test_fill_at_next_bar_open(run_up_bars, at):
    strategy = TrailingStopStrategy(TrailingStopConfig(activation_percent=1.0, trail_percent=0.5))
    signal = strategy.evaluate(100.0, at("10:00"), run_up_bars, True)
    assert signal.timestamp == at("10:04")
    assert signal.price == pytest.approx(101.2)


def test_not_activated_never_triggers(make_bars, at):
    bars = make_bars([
        ("10:01", 100.0, 100.9, 99.0, 99.2),
        ("10:02", 99.2, 99.5, 97.0, 97.5),
    ])
    strategy = TrailingStopStrategy(TrailingStopConfig(activation_percent=1.0, trail_percent=0.5))
    assert strategy.evaluate(100.0, at("10:00"), bars, True, test_mode=True) is None


def test_zero_activation_arms_immediately(make_bars, at):
    bars = make_bars([("10:01", 100.0, 100.2, 99.6, 99.7)])
    strategy = TrailingStopStrategy(TrailingStopConfig(activation_percent=0.0, trail_percent=0.5))
    signal = strategy.evaluate(100.0, at("10:00"), bars, True, test_mode=True)
    assert signal.price == pytest.approx(100.2 * 0.995)


def test_no_activation_config_arms_immediately():
    strategy = TrailingStopStrategy(TrailingStopConfig(trail_percent=0.5))
    assert strategy.activation_level(100.0, True) is None


def test_short_mirror(make_bars, at):
    bars = make_bars([
        ("10:01", 99.05, 99.1, 98.95, 99.0),  # arms (activation 99), level 99.445
        ("10:02", 98.2, 98.3, 98.0, 98.1),    # best 98, level 98.49
        ("10:03", 98.3, 98.6, 98.2, 98.5),    # high 98.6 >= 98.49
    ])
    strategy = TrailingStopStrategy(TrailingStopConfig(activation_percent=1.0, trail_percent=0.5))
    signal = strategy.evaluate(100.0, at("10:00"), bars, False, test_mode=True)
    assert signal.timestamp == at("10:03")
    assert signal.price == pytest.approx(98.49)


def test_atr_distances(make_bars, at):
    bars = make_bars([
        ("10:01", 100.7, 101.0, 100.6, 100.9),  # arms at 100.5 (0.5 ATR), level 101 - 0.5 = 100.5
        ("10:02", 100.9, 101.2, 100.6, 100.7),  # level 100.7, low 100.6 triggers
    ])
    config = TrailingStopConfig(activation_atr_multiplier=0.5, trail_atr_multiplier=0.5)
    signal = TrailingStopStrategy(config).evaluate(100.0, at("10:00"), bars, True, atr=1.0, test_mode=True)
    assert signal.timestamp == at("10:02")
    assert signal.price == pytest.approx(100.7)


def test_atr_only_trail_without_atr_is_skipped(make_bars, at, caplog):
    bars = make_bars([("10:01", 100.0, 103.0, 90.0, 95.0)])
    strategy = TrailingStopStrategy(TrailingStopConfig(trail_atr_multiplier=1.0))
    with caplog.at_level(logging.WARNING, logger="intraday_backtester"):
        assert strategy.evaluate(100.0, at("10:00"), bars, True, atr=None, test_mode=True) is None
    assert "no ATR" in caplog.text


def test_percent_trail_used_when_atr_missing():
    strategy = TrailingStopStrategy(TrailingStopConfig(trail_percent=1.0, trail_atr_multiplier=2.0))
    assert strategy.trail_level(200.0, True, atr=None) == pytest.approx(198.0)
    assert strategy.trail_level(200.0, True, atr=1.5) == pytest.approx(197.0)


def test_missing_trail_distance_is_config_error():
    with pytest.raises(ConfigurationError):
        TrailingStopConfig(activation_percent=1.0)


def test_level_never_loosens_after_lower_high(make_bars, at):
    # Best price stays at 102 through the pullback, so 101.6 does not trigger but 101.4 does
    bars = make_bars([
        ("10:01", 101.85, 102.0, 101.8, 101.9),
        ("10:02", 101.7, 101.8, 101.6, 101.7),
        ("10:03", 101.7, 101.7, 101.4, 101.5),
    ])
    strategy = TrailingStopStrategy(TrailingStopConfig(activation_percent=1.0, trail_percent=0.5))
    signal = strategy.evaluate(100.0, at("10:00"), bars, True, test_mode=True)
    assert signal.timestamp == at("10:03")
    assert signal.price == pytest.approx(101.49)


def test_strategy_keeps_no_state_between_calls(run_up_bars, at):
    strategy = TrailingStopStrategy(TrailingStopConfig(activation_percent=1.0, trail_percent=0.5))
    first = strategy.evaluate(100.0, at("10:00"), run_up_bars, True, test_mode=True)
    second = strategy.evaluate(100.0, at("10:00"), run_up_bars, True, test_mode=True)
    assert first == second
