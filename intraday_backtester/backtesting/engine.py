"""
Backtest engine: one position per entry signal, resolved against that day's
bars after entry. No lookahead: ATR comes from the prior trading day only.
"""

from __future__ import annotations
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence, Union

from intraday_backtester.analytics.metrics import PerformanceMetrics, compute_metrics
from intraday_backtester.analytics.volatility import calculate_entry_atr
from intraday_backtester.backtesting.resolver import resolve_exit
from intraday_backtester.backtesting.slippage import apply_slippage
from intraday_backtester.core.config import SlippageConfig
from intraday_backtester.core.types import Direction, ExitReason, Signal, Trade, UnresolvedTrade
from intraday_backtester.data.provider import BarProvider
from intraday_backtester.exits.base import ExitStrategy
from intraday_backtester.exits.price_levels import PriceLevelStrategy
from intraday_backtester.patterns.base import EntryPattern

logger = logging.getLogger("intraday_backtester.backtest")


def compute_return(entry_price: float, exit_price: float, is_long: bool) -> float:
    """Fractional return; positive when the trade made money."""
    if is_long:
        return (exit_price - entry_price) / entry_price
    return (entry_price - exit_price) / entry_price


@dataclass
class DirectionalTradeStats:
    """Running totals for one side of the book."""
    trades: int = 0
    winning_trades: int = 0
    total_return_sum: float = 0.0
    all_returns: List[float] = field(default_factory=list)

    def record(self, trade: Trade) -> None:
        self.trades += 1
        if trade.is_win:
            self.winning_trades += 1
        self.total_return_sum += trade.return_pct
        self.all_returns.append(trade.return_pct)

    @property
    def win_rate(self) -> float:
        return self.winning_trades / self.trades if self.trades else 0.0

    @property
    def mean_return(self) -> float:
        return self.total_return_sum / self.trades if self.trades else 0.0


@dataclass
class OverallTradeStats:
    long: DirectionalTradeStats = field(default_factory=DirectionalTradeStats)
    short: DirectionalTradeStats = field(default_factory=DirectionalTradeStats)
    total_trading_days: int = 0
    total_signals: int = 0
    unresolved: int = 0

    def record(self, trade: Trade) -> None:
        side = self.long if trade.direction is Direction.LONG else self.short
        side.record(trade)

    @property
    def total_trades(self) -> int:
        return self.long.trades + self.short.trades


@dataclass
class BacktestResult:
    """Backtest output: trades, unresolved entries, stats and metrics."""
    trades: List[Trade] = field(default_factory=list)
    unresolved: List[UnresolvedTrade] = field(default_factory=list)
    stats: OverallTradeStats = field(default_factory=OverallTradeStats)
    metrics: Optional[PerformanceMetrics] = None
    long_metrics: Optional[PerformanceMetrics] = None
    short_metrics: Optional[PerformanceMetrics] = None


class BacktestEngine:
    """
    Resolves entry signals into trades. The exit pipeline is shared by every
    trade; strategies keep no state between calls so trades may run in parallel.
    """

    def __init__(
        self,
        provider: BarProvider,
        strategies: Sequence[ExitStrategy],
        symbol: str = "SPY",
        timeframe: str = "1min",
        direction: Direction = Direction.LONG,
        slippage: Optional[SlippageConfig] = None,
        initial_capital: float = 10000.0,
        test_mode: bool = False,
        max_workers: int = 1,
    ):
        self.provider = provider
        self.strategies = list(strategies)
        self.symbol = symbol
        self.timeframe = timeframe
        self.direction = direction
        self.slippage = slippage
        self.initial_capital = initial_capital
        self.test_mode = test_mode
        self.max_workers = max(1, max_workers)

    def trading_days(self, start: Optional[date] = None, end: Optional[date] = None) -> List[date]:
        return self.provider.trading_days(self.symbol, self.timeframe, start, end)

    def find_signals(
        self,
        pattern: EntryPattern,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[Signal]:
        """Run the entry pattern over each trading day in range."""
        signals: List[Signal] = []
        for day in self.trading_days(start, end):
            day_bars = self.provider.fetch_bars(self.symbol, self.timeframe, day)
            signal = pattern.detect(day_bars, self.direction)
            if signal is not None:
                signals.append(signal)
        logger.info("%s found %d entries for %s", pattern.name, len(signals), self.symbol)
        return signals

    def _level_overrides(self, signal: Signal) -> Dict[ExitReason, float]:
        overrides = {
            ExitReason.STOP_LOSS: signal.proposed_stop_loss,
            ExitReason.PROFIT_TARGET: signal.proposed_profit_target,
        }
        return {reason: level for reason, level in overrides.items() if level is not None}

    def process_signal(self, signal: Signal) -> Union[Trade, UnresolvedTrade]:
        """ATR, same-day bars, exit resolution and slippage for a single entry."""
        direction = signal.direction or self.direction
        is_long = direction.is_long
        trade_date = signal.timestamp.date()

        atr = calculate_entry_atr(self.provider, self.symbol, self.timeframe, trade_date)
        bars = self.provider.fetch_bars(self.symbol, self.timeframe, trade_date, from_time=signal.timestamp.time())

        entry_price = apply_slippage(signal.price, is_long, self.slippage, is_entry=True)
        overrides = self._level_overrides(signal)
        exit_signal = resolve_exit(
            entry_price,
            signal.timestamp,
            bars,
            is_long,
            self.strategies,
            atr=atr,
            test_mode=self.test_mode,
            level_overrides=overrides,
        )
        if exit_signal is None:
            logger.warning("No bars after entry at %s; trade left unresolved", signal.timestamp)
            return UnresolvedTrade(signal=signal, message="no bars at or after entry")

        exit_price = apply_slippage(exit_signal.price, is_long, self.slippage, is_entry=False)
        levels = {
            s.reason: s.level(entry_price, is_long, atr, overrides.get(s.reason))
            for s in self.strategies
            if isinstance(s, PriceLevelStrategy)
        }
        trade = Trade(
            symbol=self.symbol,
            direction=direction,
            trade_date=trade_date,
            entry_time=signal.timestamp,
            exit_time=exit_signal.timestamp,
            execution_price_base=signal.price,
            entry_price=entry_price,
            exit_price=exit_price,
            return_pct=compute_return(entry_price, exit_price, is_long),
            exit_reason=exit_signal.reason,
            entry_atr=atr,
            stop_loss_level=levels.get(ExitReason.STOP_LOSS),
            profit_target_level=levels.get(ExitReason.PROFIT_TARGET),
        )
        logger.debug(
            "%s %s entry %.4f @ %s exit %.4f @ %s (%s) return %.4f%%",
            self.symbol, direction.value, entry_price, trade.entry_time,
            exit_price, trade.exit_time, trade.exit_reason.value, trade.return_pct * 100,
        )
        return trade

    def run(self, signals: Sequence[Signal], trading_days: int = 0) -> BacktestResult:
        """Resolve every signal; stats are folded in signal order."""
        if self.max_workers > 1 and len(signals) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                outcomes = list(pool.map(self.process_signal, signals))
        else:
            outcomes = [self.process_signal(s) for s in signals]

        result = BacktestResult()
        result.stats.total_trading_days = trading_days
        result.stats.total_signals = len(signals)
        for outcome in outcomes:
            if isinstance(outcome, UnresolvedTrade):
                result.unresolved.append(outcome)
                result.stats.unresolved += 1
                continue
            result.trades.append(outcome)
            result.stats.record(outcome)

        returns = [t.return_pct for t in result.trades]
        all_long = all(t.direction is Direction.LONG for t in result.trades)
        result.metrics = compute_metrics(returns, zero_is_win=all_long, initial_capital=self.initial_capital)
        result.long_metrics = compute_metrics(
            result.stats.long.all_returns, zero_is_win=True, initial_capital=self.initial_capital,
        )
        result.short_metrics = compute_metrics(
            result.stats.short.all_returns, zero_is_win=False, initial_capital=self.initial_capital,
        )
        logger.info(
            "Backtest done: %d signals, %d trades, %d unresolved",
            len(signals), len(result.trades), len(result.unresolved),
        )
        return result
