"""Unit tests for exits.price_levels (stop loss and profit target)."""

import pytest
from intraday_backtester.core.config import ProfitTargetConfig, StopLossConfig
from intraday_backtester.core.types import ExitReason, SignalKind
from intraday_backtester.exits.price_levels import (
    LevelKind,
    ProfitTargetStrategy,
    StopLossStrategy,
    calculate_exit_price,
)

STOP_1PCT = StopLossConfig(percent_from_entry=1.0)
TARGET_2PCT = ProfitTargetConfig(percent_from_entry=2.0)


@pytest.fixture
def falling_bars(make_bars):
    return make_bars([
        ("09:45", 100.0, 100.1, 99.9, 100.0),  # entry bar
        ("09:46", 100.0, 100.2, 99.5, 99.6),
        ("09:47", 99.6, 99.8, 99.2, 99.3),
        ("09:48", 99.3, 99.4, 98.8, 98.9),
        ("09:49", 98.7, 99.0, 98.5, 98.8),
    ])


def test_stop_loss_test_mode_fills_at_level(falling_bars, at):
    signal = StopLossStrategy(STOP_1PCT).evaluate(100.0, at("09:45"), falling_bars, True, test_mode=True)
    assert signal.kind is SignalKind.EXIT
    assert signal.reason is ExitReason.STOP_LOSS
    assert signal.timestamp == at("09:48")
    assert signal.price == pytest.approx(99.0)


def test_stop_loss_fills_next_bar_open(falling_bars, at):
    signal = StopLossStrategy(STOP_1PCT).evaluate(100.0, at("09:45"), falling_bars, True)
    assert signal.timestamp == at("09:49")
    assert signal.price == pytest.approx(98.7)


def test_stop_loss_on_last_bar_fills_at_its_close(falling_bars, at):
    signal = StopLossStrategy(STOP_1PCT).evaluate(100.0, at("09:45"), falling_bars[:4], True)
    assert signal.timestamp == at("09:48")
    assert signal.price == pytest.approx(98.9)


def test_entry_bar_is_never_an_exit(make_bars, at):
    bars = make_bars([
        ("10:00", 100.0, 100.0, 95.0, 100.0),
        ("10:01", 100.0, 100.3, 99.7, 100.1),
    ])
    assert StopLossStrategy(STOP_1PCT).evaluate(100.0, at("10:00"), bars, True, test_mode=True) is None


def test_after_hours_bars_ignored_outside_test_mode(make_bars, at):
    bars = make_bars([
        ("15:59", 100.0, 100.1, 99.9, 100.0),
        ("16:05", 100.0, 100.0, 98.0, 98.5),
    ])
    strategy = StopLossStrategy(STOP_1PCT)
    assert strategy.evaluate(100.0, at("15:59"), bars, True) is None
    assert strategy.evaluate(100.0, at("15:59"), bars, True, test_mode=True).price == pytest.approx(99.0)


def test_short_stop_triggers_on_high(make_bars, at):
    bars = make_bars([
        ("10:01", 100.0, 100.5, 99.8, 100.4),
        ("10:02", 100.4, 101.2, 100.3, 101.0),
    ])
    signal = StopLossStrategy(STOP_1PCT).evaluate(100.0, at("10:00"), bars, False, test_mode=True)
    assert signal.timestamp == at("10:02")
    assert signal.price == pytest.approx(101.0)


def test_long_profit_target(make_bars, at):
    bars = make_bars([
        ("10:01", 100.0, 101.0, 99.9, 100.8),
        ("10:02", 100.8, 102.1, 100.7, 102.0),
    ])
    signal = ProfitTargetStrategy(TARGET_2PCT).evaluate(100.0, at("10:00"), bars, True, test_mode=True)
    assert signal.reason is ExitReason.PROFIT_TARGET
    assert signal.timestamp == at("10:02")
    assert signal.price == pytest.approx(102.0)


def test_short_profit_target_triggers_on_low(make_bars, at):
    bars = make_bars([
        ("10:01", 100.0, 100.1, 98.5, 98.6),
        ("10:02", 98.6, 98.7, 97.9, 98.0),
    ])
    signal = ProfitTargetStrategy(TARGET_2PCT).evaluate(100.0, at("10:00"), bars, False, test_mode=True)
    assert signal.timestamp == at("10:02")
    assert signal.price == pytest.approx(98.0)


def test_no_trigger_returns_none(make_bars, at):
    bars = make_bars([("10:01", 100.0, 100.5, 99.5, 100.0)])
    assert ProfitTargetStrategy(TARGET_2PCT).evaluate(100.0, at("10:00"), bars, True) is None


def test_atr_level_takes_priority_over_percent():
    options = StopLossConfig(percent_from_entry=1.0, atr_multiplier=1.5)
    assert calculate_exit_price(100.0, True, options, LevelKind.STOP, atr=2.0) == (pytest.approx(97.0), "atr")
    assert calculate_exit_price(100.0, False, options, LevelKind.STOP, atr=2.0) == (pytest.approx(103.0), "atr")


def test_percent_fallback_without_atr():
    options = ProfitTargetConfig(percent_from_entry=2.0, atr_multiplier=3.0)
    level, source = calculate_exit_price(100.0, True, options, LevelKind.TARGET, atr=None)
    assert level == pytest.approx(102.0)
    assert source == "percentage"


def test_zero_atr_multiplier_falls_back_to_percent():
    options = StopLossConfig(percent_from_entry=1.0, atr_multiplier=0.0)
    level, source = calculate_exit_price(100.0, True, options, LevelKind.STOP, atr=2.0)
    assert level == pytest.approx(99.0)
    assert source == "percentage"


def test_override_only_when_allowed():
    allowed = StopLossConfig(percent_from_entry=1.0, use_proposed_price=True)
    assert calculate_exit_price(100.0, True, allowed, LevelKind.STOP, override=97.25) == (97.25, "override")
    # Unusable override falls through
    assert calculate_exit_price(100.0, True, allowed, LevelKind.STOP, override=float("nan"))[1] == "percentage"
    assert calculate_exit_price(100.0, True, STOP_1PCT, LevelKind.STOP, override=97.25)[1] == "percentage"


def test_override_used_by_evaluate(make_bars, at):
    bars = make_bars([
        ("10:01", 100.0, 100.2, 99.4, 99.5),
        ("10:02", 99.5, 99.6, 97.0, 97.2),
    ])
    strategy = StopLossStrategy(StopLossConfig(percent_from_entry=1.0, use_proposed_price=True))
    signal = strategy.evaluate(100.0, at("10:00"), bars, True, test_mode=True, level_override=97.5)
    assert signal.timestamp == at("10:02")
    assert signal.price == 97.5


@pytest.mark.parametrize("atr", [None, 0.8, 3.0])
@pytest.mark.parametrize("is_long", [True, False])
def test_stop_and_target_sit_on_correct_side(atr, is_long):
    stop_opts = StopLossConfig(percent_from_entry=0.5, atr_multiplier=1.0)
    target_opts = ProfitTargetConfig(percent_from_entry=1.5, atr_multiplier=2.0)
    stop = StopLossStrategy(stop_opts).level(250.0, is_long, atr)
    target = ProfitTargetStrategy(target_opts).level(250.0, is_long, atr)
    if is_long:
        assert stop < 250.0 < target
    else:
        assert target < 250.0 < stop
