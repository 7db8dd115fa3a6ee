"""
Build the ordered exit pipeline from configuration.

Price-reactive strategies come first in their enabled order; max hold time
and end of day are appended afterwards whenever their blocks are present.
"""

from __future__ import annotations
import logging
from typing import Any, List, Mapping

from intraday_backtester.core.config import ExitStrategiesConfig
from intraday_backtester.core.exceptions import ConfigurationError
from intraday_backtester.core.types import ExitReason
from intraday_backtester.exits.base import ExitStrategy
from intraday_backtester.exits.price_levels import ProfitTargetStrategy, StopLossStrategy
from intraday_backtester.exits.time_based import EndOfDayStrategy, MaxHoldTimeStrategy
from intraday_backtester.exits.trailing import TrailingStopStrategy

logger = logging.getLogger("intraday_backtester.exits")


def _exit_config(config: Any) -> ExitStrategiesConfig:
    """Accepts a raw mapping with an exitStrategies key, a loaded Config, or the section itself."""
    if isinstance(config, ExitStrategiesConfig):
        return config
    if isinstance(config, Mapping):
        raw = config.get("exitStrategies")
        if raw is None:
            raise ConfigurationError("No exitStrategies configuration found")
        return ExitStrategiesConfig.from_dict(raw)
    section = getattr(config, "exit_strategies", None)
    if section is None:
        raise ConfigurationError("No exitStrategies configuration found")
    return section


def create_exit_strategies(config: Any) -> List[ExitStrategy]:
    """Return the pipeline; raises ConfigurationError instead of falling back to defaults."""
    exits = _exit_config(config)
    pipeline: List[ExitStrategy] = []

    for name in exits.enabled:
        try:
            reason = ExitReason(name)
        except ValueError:
            raise ConfigurationError(f"Unknown exit strategy: {name}") from None
        if reason is ExitReason.STOP_LOSS:
            if exits.stop_loss is None:
                raise ConfigurationError("stopLoss is enabled but strategyOptions.stopLoss is missing")
            pipeline.append(StopLossStrategy(exits.stop_loss))
        elif reason is ExitReason.PROFIT_TARGET:
            if exits.profit_target is None:
                raise ConfigurationError("profitTarget is enabled but strategyOptions.profitTarget is missing")
            pipeline.append(ProfitTargetStrategy(exits.profit_target))
        elif reason is ExitReason.TRAILING_STOP:
            if exits.trailing_stop is None:
                raise ConfigurationError("trailingStop is enabled but strategyOptions.trailingStop is missing")
            pipeline.append(TrailingStopStrategy(exits.trailing_stop))
        else:
            # Controlled by the base-level blocks below, not by the enabled list
            logger.debug("Ignoring %s in enabled list", name)

    if exits.max_hold_time is not None:
        pipeline.append(MaxHoldTimeStrategy(exits.max_hold_time))
    if exits.end_of_day is not None:
        pipeline.append(EndOfDayStrategy(exits.end_of_day))

    logger.debug("Exit pipeline: %s", pipeline)
    return pipeline
