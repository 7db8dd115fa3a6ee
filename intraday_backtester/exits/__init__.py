"""Exits: strategy interface, the five exit policies, and pipeline assembly."""

from intraday_backtester.exits.base import ExitStrategy
from intraday_backtester.exits.factory import create_exit_strategies
from intraday_backtester.exits.price_levels import (
    LevelKind,
    ProfitTargetStrategy,
    StopLossStrategy,
    calculate_exit_price,
)
from intraday_backtester.exits.time_based import EndOfDayStrategy, MaxHoldTimeStrategy
from intraday_backtester.exits.trailing import TrailingStopStrategy

__all__ = [
    "ExitStrategy",
    "create_exit_strategies",
    "LevelKind",
    "ProfitTargetStrategy",
    "StopLossStrategy",
    "calculate_exit_price",
    "EndOfDayStrategy",
    "MaxHoldTimeStrategy",
    "TrailingStopStrategy",
]
