#!/usr/bin/env python3
"""
Intraday backtester CLI: backtest | levels
Usage:
  python main.py backtest [--config config.yaml] [--start 2024-01-02] [--end 2024-03-29]
  python main.py levels --price 472.15 [--date 2024-01-05] [--short]
"""

from __future__ import annotations
import argparse
import logging
from datetime import date
from pathlib import Path
from typing import Optional

from intraday_backtester.analytics.metrics import PerformanceMetrics
from intraday_backtester.analytics.volatility import calculate_entry_atr
from intraday_backtester.backtesting.engine import BacktestEngine, BacktestResult
from intraday_backtester.core.config import Config, load_config
from intraday_backtester.core.exceptions import BacktestError, ConfigurationError
from intraday_backtester.core.logger import setup_logging
from intraday_backtester.data.provider import CsvBarProvider
from intraday_backtester.exits.factory import create_exit_strategies
from intraday_backtester.exits.price_levels import LevelKind, calculate_exit_price
from intraday_backtester.exits.trailing import TrailingStopStrategy
from intraday_backtester.patterns import get_entry_pattern

ROOT = Path(__file__).resolve().parent

logger = logging.getLogger("intraday_backtester")


def _print_metrics(title: str, m: PerformanceMetrics) -> None:
    print(f"\n--- {title} ---")
    print(f"Total trades: {m.total_trades} (wins: {m.winning_trades}, losses: {m.losing_trades})")
    if m.total_trades == 0:
        return
    print(f"Win rate: {m.win_rate * 100:.1f}%")
    print(f"Mean return: {m.mean_return * 100:.3f}%   Median: {m.median_return * 100:.3f}%")
    print(f"Std dev: {m.std_dev_return * 100:.3f}%   Min: {m.min_return * 100:.3f}%   Max: {m.max_return * 100:.3f}%")
    print(f"Profit factor: {m.profit_factor:.2f}")
    print(f"Growth: {m.initial_capital:,.2f} -> {m.final_capital:,.2f} ({m.total_return_pct:+.2f}%)")
    print(f"Max drawdown: {m.max_drawdown_pct:.2f}%")


def print_result(config: Config, result: BacktestResult) -> None:
    for t in result.trades:
        print(
            f"{t.trade_date} {t.direction.value:<5} in {t.entry_time:%H:%M} @ {t.entry_price:.2f}"
            f"  out {t.exit_time:%H:%M} @ {t.exit_price:.2f}  {t.return_pct * 100:+.3f}%  {t.exit_reason.value}"
        )
    stats = result.stats
    print(f"\n{config.symbol} {config.timeframe}: {stats.total_trading_days} trading days, "
          f"{stats.total_signals} signals, {stats.unresolved} unresolved")
    if stats.long.trades:
        _print_metrics("Long trades", result.long_metrics)
    if stats.short.trades:
        _print_metrics("Short trades", result.short_metrics)
    _print_metrics("All trades", result.metrics)


def run_backtest(config_path: Optional[Path], start: Optional[date], end: Optional[date], test_mode: bool) -> int:
    """Detect entries over the date range and resolve each into a trade."""
    config = load_config(config_path, ROOT)
    setup_logging(config.log_level, config.log_dir, config.log_file)
    strategies = create_exit_strategies(config)
    pattern = get_entry_pattern(config.entry_pattern, config.entry_options)
    provider = CsvBarProvider(config.data_dir, max_lookback_days=config.prior_day_lookback_days)
    engine = BacktestEngine(
        provider=provider,
        strategies=strategies,
        symbol=config.symbol,
        timeframe=config.timeframe,
        direction=config.direction,
        slippage=config.exit_strategies.slippage,
        initial_capital=config.initial_capital,
        test_mode=test_mode or config.test_mode,
        max_workers=config.max_workers,
    )
    start = start or config.start_date
    end = end or config.end_date
    logger.info("Backtest %s %s %s from %s to %s", config.symbol, config.timeframe, config.direction.value,
                start or "first bar", end or "last bar")
    days = engine.trading_days(start, end)
    signals = engine.find_signals(pattern, start, end)
    result = engine.run(signals, trading_days=len(days))
    print_result(config, result)
    return 0


def run_levels(config_path: Optional[Path], price: float, on_date: Optional[date], short: bool) -> int:
    """Print exit levels for a hypothetical entry at price."""
    config = load_config(config_path, ROOT)
    setup_logging(config.log_level, config.log_dir, config.log_file)
    exits = config.exit_strategies
    if exits is None:
        raise ConfigurationError("No exitStrategies configuration found")
    provider = CsvBarProvider(config.data_dir, max_lookback_days=config.prior_day_lookback_days)
    on_date = on_date or date.today()
    atr = calculate_entry_atr(provider, config.symbol, config.timeframe, on_date)
    is_long = not short
    print(f"\n{config.symbol} {'short' if short else 'long'} entry @ {price:.2f} on {on_date}")
    print(f"Prior day ATR: {atr:.4f}" if atr is not None else "Prior day ATR: unavailable")
    if exits.stop_loss is not None:
        level, source = calculate_exit_price(price, is_long, exits.stop_loss, LevelKind.STOP, atr)
        print(f"Stop loss:     {level:.2f} ({source})")
    if exits.profit_target is not None:
        level, source = calculate_exit_price(price, is_long, exits.profit_target, LevelKind.TARGET, atr)
        print(f"Profit target: {level:.2f} ({source})")
    if exits.trailing_stop is not None:
        activation = TrailingStopStrategy(exits.trailing_stop).activation_level(price, is_long, atr)
        print(f"Trailing activation: {'immediate' if activation is None else f'{activation:.2f}'}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Intraday backtester CLI")
    parser.add_argument("mode", choices=["backtest", "levels"], help="Run a backtest or print exit levels")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    parser.add_argument("--start", type=date.fromisoformat, default=None, help="First trading day (YYYY-MM-DD)")
    parser.add_argument("--end", type=date.fromisoformat, default=None, help="Last trading day (YYYY-MM-DD)")
    parser.add_argument("--test-mode", action="store_true", help="Fill at exact levels, no session filter")
    parser.add_argument("--price", type=float, default=None, help="Entry price for levels mode")
    parser.add_argument("--date", type=date.fromisoformat, default=None, help="Entry date for levels mode")
    parser.add_argument("--short", action="store_true", help="Levels for a short entry")
    args = parser.parse_args()
    try:
        if args.mode == "backtest":
            return run_backtest(args.config, args.start, args.end, args.test_mode)
        if args.price is None:
            parser.error("levels mode needs --price")
        return run_levels(args.config, args.price, args.date, args.short)
    except BacktestError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    exit(main())
