"""
Stop loss and profit target: fixed price levels computed once from the entry.
Level priority: proposed override (if allowed), then ATR multiple, then percent.
"""

from __future__ import annotations
import logging
import math
from datetime import datetime
from enum import Enum
from typing import Optional, Sequence, Tuple

from intraday_backtester.core.config import PriceLevelConfig, ProfitTargetConfig, StopLossConfig
from intraday_backtester.core.types import Bar, ExitReason, Signal
from intraday_backtester.exits.base import ReactiveExitStrategy

logger = logging.getLogger("intraday_backtester.exits")


class LevelKind(str, Enum):
    STOP = "stop"
    TARGET = "target"


def level_is_below_entry(kind: LevelKind, is_long: bool) -> bool:
    """Long stops and short targets sit below the entry."""
    return (kind is LevelKind.STOP) == is_long


def _usable_override(value: Optional[float]) -> bool:
    return (
        value is not None
        and not isinstance(value, bool)
        and isinstance(value, (int, float))
        and math.isfinite(value)
        and value > 0
    )


def calculate_exit_price(
    entry_price: float,
    is_long: bool,
    options: PriceLevelConfig,
    kind: LevelKind,
    atr: Optional[float] = None,
    override: Optional[float] = None,
) -> Tuple[float, str]:
    """Return (level, source) where source is 'override', 'atr' or 'percentage'."""
    if options.use_proposed_price and _usable_override(override):
        return float(override), "override"
    below = level_is_below_entry(kind, is_long)
    if atr and options.atr_multiplier:
        distance = atr * options.atr_multiplier
        return (entry_price - distance if below else entry_price + distance), "atr"
    pct = options.percent_from_entry / 100.0
    return (entry_price * (1 - pct) if below else entry_price * (1 + pct)), "percentage"


class PriceLevelStrategy(ReactiveExitStrategy):
    """Exit on the first bar whose range touches a fixed level."""

    kind: LevelKind

    def __init__(self, options: PriceLevelConfig):
        self.options = options

    def level(
        self,
        entry_price: float,
        is_long: bool,
        atr: Optional[float] = None,
        level_override: Optional[float] = None,
    ) -> float:
        price, _ = calculate_exit_price(entry_price, is_long, self.options, self.kind, atr, level_override)
        return price

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
        level, source = calculate_exit_price(entry_price, is_long, self.options, self.kind, atr, level_override)
        below = level_is_below_entry(self.kind, is_long)
        scan = self.bars_after_entry(bars, entry_time, test_mode)
        for i, bar in enumerate(scan):
            if (below and bar.low <= level) or (not below and bar.high >= level):
                logger.debug(
                    "%s hit at %s: level %.4f (%s), entry %.4f",
                    self.reason.value, bar.time, level, source, entry_price,
                )
                return self.fill(scan, i, level, test_mode)
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.options!r})"


class StopLossStrategy(PriceLevelStrategy):
    reason = ExitReason.STOP_LOSS
    kind = LevelKind.STOP

    def __init__(self, options: StopLossConfig):
        super().__init__(options)


class ProfitTargetStrategy(PriceLevelStrategy):
    reason = ExitReason.PROFIT_TARGET
    kind = LevelKind.TARGET

    def __init__(self, options: ProfitTargetConfig):
        super().__init__(options)
