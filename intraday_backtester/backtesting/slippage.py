"""Slippage: move a theoretical fill price against the trader."""

from __future__ import annotations
from typing import Optional

from intraday_backtester.core.config import SlippageConfig


def apply_slippage(
    price: float,
    is_long: bool,
    config: Optional[SlippageConfig] = None,
    is_entry: bool = False,
) -> float:
    """
    Longs pay up on entry and give up on exit; shorts the reverse.
    'percent' scales by value/100, 'fixed' shifts by value. No config is a no-op.
    """
    if config is None:
        return price
    # +1 when the fill price should rise
    sign = 1 if is_long == is_entry else -1
    if config.model == "percent":
        return price * (1 + sign * config.value / 100.0)
    return price + sign * config.value
