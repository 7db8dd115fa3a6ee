"""
Core data types for bars, signals, and resolved trades.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional


class Direction(str, Enum):
    LONG = "long"
    SHORT = "short"

    @property
    def is_long(self) -> bool:
        return self is Direction.LONG


class SignalKind(str, Enum):
    ENTRY = "entry"
    EXIT = "exit"


class ExitReason(str, Enum):
    STOP_LOSS = "stopLoss"
    PROFIT_TARGET = "profitTarget"
    TRAILING_STOP = "trailingStop"
    MAX_HOLD_TIME = "maxHoldTime"
    END_OF_DAY = "endOfDay"

    @property
    def is_time_based(self) -> bool:
        return self in (ExitReason.MAX_HOLD_TIME, ExitReason.END_OF_DAY)


@dataclass(frozen=True)
class Bar:
    """OHLCV candle."""
    time: datetime
    open: float
    high: float
    low: float
    close: float
    volume: Optional[float] = None


@dataclass
class Signal:
    """Point-in-time entry or exit marker."""
    timestamp: datetime
    price: float
    kind: SignalKind = SignalKind.ENTRY
    reason: Optional[ExitReason] = None
    direction: Optional[Direction] = None
    # Externally proposed levels, honored only when the strategy allows overrides
    proposed_stop_loss: Optional[float] = None
    proposed_profit_target: Optional[float] = None
    metadata: dict = field(default_factory=dict)

    @classmethod
    def exit(cls, timestamp: datetime, price: float, reason: ExitReason) -> "Signal":
        return cls(timestamp=timestamp, price=price, kind=SignalKind.EXIT, reason=reason)


@dataclass
class Trade:
    """Closed trade for analytics."""
    symbol: str
    direction: Direction
    trade_date: date
    entry_time: datetime
    exit_time: datetime
    execution_price_base: float
    entry_price: float
    exit_price: float
    return_pct: float
    exit_reason: ExitReason
    entry_atr: Optional[float] = None
    stop_loss_level: Optional[float] = None
    profit_target_level: Optional[float] = None

    @property
    def is_win(self) -> bool:
        # Flat long trades count as wins, flat shorts do not
        if self.direction is Direction.SHORT:
            return self.return_pct > 0
        return self.return_pct >= 0


@dataclass
class UnresolvedTrade:
    """Entry signal for which no exit could be found."""
    signal: Signal
    message: str = ""
