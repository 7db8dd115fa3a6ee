"""Exit resolution: first triggering strategy wins, else a default exit."""

from __future__ import annotations
import logging
from datetime import datetime
from typing import Dict, Optional, Sequence

from intraday_backtester.core.types import Bar, ExitReason, Signal
from intraday_backtester.exits.base import ExitStrategy

logger = logging.getLogger("intraday_backtester.backtest")


def resolve_exit(
    entry_price: float,
    entry_time: datetime,
    bars: Sequence[Bar],
    is_long: bool,
    strategies: Sequence[ExitStrategy],
    atr: Optional[float] = None,
    default_reason: ExitReason = ExitReason.END_OF_DAY,
    test_mode: bool = False,
    level_overrides: Optional[Dict[ExitReason, float]] = None,
) -> Optional[Signal]:
    """
    Run strategies in pipeline order and return the first exit. With no trigger,
    exit at the close of the last bar at or after entry. None means unresolved.
    """
    overrides = level_overrides or {}
    for strategy in strategies:
        signal = strategy.evaluate(
            entry_price,
            entry_time,
            bars,
            is_long,
            atr=atr,
            test_mode=test_mode,
            level_override=overrides.get(strategy.reason),
        )
        if signal is not None:
            return signal

    remaining = [b for b in bars if b.time >= entry_time]
    if not remaining:
        return None
    last = remaining[-1]
    logger.debug("No exit triggered for entry at %s; defaulting to %s close", entry_time, last.time)
    return Signal.exit(last.time, last.close, default_reason)
