"""
Trailing stop: arms after a favorable move from entry, then follows the best
price seen and exits on a retrace through the trailing level.
"""

from __future__ import annotations
import logging
from datetime import datetime
from typing import Optional, Sequence

from intraday_backtester.core.config import TrailingStopConfig
from intraday_backtester.core.types import Bar, ExitReason, Signal
from intraday_backtester.exits.base import ReactiveExitStrategy

logger = logging.getLogger("intraday_backtester.exits")


class TrailingStopStrategy(ReactiveExitStrategy):
    reason = ExitReason.TRAILING_STOP

    def __init__(self, options: TrailingStopConfig):
        self.options = options

    def activation_level(self, entry_price: float, is_long: bool, atr: Optional[float] = None) -> Optional[float]:
        """Price that arms the stop, or None when it is armed from the first bar."""
        opts = self.options
        if atr and opts.activation_atr_multiplier is not None:
            if opts.activation_atr_multiplier == 0:
                return None
            offset = atr * opts.activation_atr_multiplier
            return entry_price + offset if is_long else entry_price - offset
        if opts.activation_percent is not None:
            if opts.activation_percent == 0:
                return None
            pct = opts.activation_percent / 100.0
            return entry_price * (1 + pct) if is_long else entry_price * (1 - pct)
        return None

    def trail_level(self, best_price: float, is_long: bool, atr: Optional[float] = None) -> Optional[float]:
        """Stop level for the given best price; None when no trailing distance is available."""
        opts = self.options
        if atr and opts.trail_atr_multiplier is not None:
            distance = atr * opts.trail_atr_multiplier
            return best_price - distance if is_long else best_price + distance
        if opts.trail_percent is not None:
            pct = opts.trail_percent / 100.0
            return best_price * (1 - pct) if is_long else best_price * (1 + pct)
        return None

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
        if self.trail_level(entry_price, is_long, atr) is None:
            logger.warning("Trailing stop skipped: trailAtrMultiplier configured but no ATR available")
            return None

        activation = self.activation_level(entry_price, is_long, atr)
        activated = activation is None
        best_price = entry_price
        scan = self.bars_after_entry(bars, entry_time, test_mode)
        for i, bar in enumerate(scan):
            if not activated:
                if (is_long and bar.high >= activation) or (not is_long and bar.low <= activation):
                    activated = True
                    logger.debug("Trailing stop armed at %s (activation %.4f)", bar.time, activation)
                else:
                    continue
            best_price = max(best_price, bar.high) if is_long else min(best_price, bar.low)
            level = self.trail_level(best_price, is_long, atr)
            if (is_long and bar.low <= level) or (not is_long and bar.high >= level):
                logger.debug(
                    "trailingStop hit at %s: level %.4f, best %.4f, entry %.4f",
                    bar.time, level, best_price, entry_price,
                )
                return self.fill(scan, i, level, test_mode)
        return None

    def __repr__(self) -> str:
        return f"TrailingStopStrategy({self.options!r})"
