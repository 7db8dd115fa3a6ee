"""
Load configuration from config.yaml and .env.

The exitStrategies section is validated once here into frozen records; the
exit pipeline is then built from those records by exits.factory.
"""

from __future__ import annotations
import os
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml
from dotenv import load_dotenv

from intraday_backtester.core.exceptions import InvalidConfigValueError, ConfigurationError
from intraday_backtester.core.types import Direction
from intraday_backtester.utils.market_hours import is_valid_hhmm

SLIPPAGE_MODELS = ("percent", "fixed")


def _number(block: Mapping[str, Any], key: str, where: str, required: bool = False) -> Optional[float]:
    value = block.get(key)
    if value is None:
        if required:
            raise InvalidConfigValueError(f"{where}.{key} is required")
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidConfigValueError(f"{where}.{key} must be a number, got {value!r}")
    if value < 0:
        raise InvalidConfigValueError(f"{where}.{key} must be non-negative, got {value}")
    return float(value)


def _check_keys(block: Any, allowed: Tuple[str, ...], where: str) -> Mapping[str, Any]:
    if not isinstance(block, Mapping):
        raise InvalidConfigValueError(f"{where} must be a mapping, got {type(block).__name__}")
    unknown = sorted(set(block) - set(allowed))
    if unknown:
        raise InvalidConfigValueError(f"{where} has unknown keys: {', '.join(unknown)}")
    return block


@dataclass(frozen=True)
class PriceLevelConfig:
    """Options shared by stop loss and profit target."""
    percent_from_entry: float
    atr_multiplier: Optional[float] = None
    use_proposed_price: bool = False

    KEYS = ("percentFromEntry", "atrMultiplier", "useProposedPrice", "useLlmProposedPrice")

    @classmethod
    def from_dict(cls, block: Any, where: str):
        block = _check_keys(block, cls.KEYS, where)
        use_proposed = block.get("useProposedPrice", block.get("useLlmProposedPrice", False))
        if not isinstance(use_proposed, bool):
            raise InvalidConfigValueError(f"{where}.useProposedPrice must be true or false")
        return cls(
            percent_from_entry=_number(block, "percentFromEntry", where, required=True),
            atr_multiplier=_number(block, "atrMultiplier", where),
            use_proposed_price=use_proposed,
        )


@dataclass(frozen=True)
class StopLossConfig(PriceLevelConfig):
    pass


@dataclass(frozen=True)
class ProfitTargetConfig(PriceLevelConfig):
    pass


@dataclass(frozen=True)
class TrailingStopConfig:
    """Activation offset and trailing distance, each as percent or ATR multiple."""
    activation_percent: Optional[float] = None
    activation_atr_multiplier: Optional[float] = None
    trail_percent: Optional[float] = None
    trail_atr_multiplier: Optional[float] = None

    KEYS = ("activationPercent", "activationAtrMultiplier", "trailPercent", "trailAtrMultiplier")

    def __post_init__(self) -> None:
        if self.trail_percent is None and self.trail_atr_multiplier is None:
            raise ConfigurationError("trailingStop needs trailPercent or trailAtrMultiplier")

    @classmethod
    def from_dict(cls, block: Any, where: str = "trailingStop") -> "TrailingStopConfig":
        block = _check_keys(block, cls.KEYS, where)
        return cls(
            activation_percent=_number(block, "activationPercent", where),
            activation_atr_multiplier=_number(block, "activationAtrMultiplier", where),
            trail_percent=_number(block, "trailPercent", where),
            trail_atr_multiplier=_number(block, "trailAtrMultiplier", where),
        )


@dataclass(frozen=True)
class MaxHoldTimeConfig:
    minutes: int

    def __post_init__(self) -> None:
        if isinstance(self.minutes, bool) or not isinstance(self.minutes, int) or self.minutes <= 0:
            raise InvalidConfigValueError(f"maxHoldTime.minutes must be a positive integer, got {self.minutes!r}")

    @classmethod
    def from_dict(cls, block: Any, where: str = "maxHoldTime") -> "MaxHoldTimeConfig":
        block = _check_keys(block, ("minutes",), where)
        if "minutes" not in block:
            raise InvalidConfigValueError(f"{where}.minutes is required")
        return cls(minutes=block["minutes"])


@dataclass(frozen=True)
class EndOfDayConfig:
    time: str = "16:00"

    def __post_init__(self) -> None:
        if not is_valid_hhmm(self.time):
            raise InvalidConfigValueError(f"endOfDay.time must be HH:MM, got {self.time!r}")

    @classmethod
    def from_dict(cls, block: Any, where: str = "endOfDay") -> "EndOfDayConfig":
        block = _check_keys(block, ("time",), where)
        if "time" not in block:
            raise InvalidConfigValueError(f"{where}.time is required")
        return cls(time=block["time"])


@dataclass(frozen=True)
class SlippageConfig:
    model: str = "percent"
    value: float = 0.0

    def __post_init__(self) -> None:
        if self.model not in SLIPPAGE_MODELS:
            raise InvalidConfigValueError(f"slippage.model must be one of {SLIPPAGE_MODELS}, got {self.model!r}")
        if isinstance(self.value, bool) or not isinstance(self.value, (int, float)) or self.value < 0:
            raise InvalidConfigValueError(f"slippage.value must be a non-negative number, got {self.value!r}")

    @classmethod
    def from_dict(cls, block: Any, where: str = "slippage") -> "SlippageConfig":
        block = _check_keys(block, ("model", "value"), where)
        return cls(model=block.get("model", "percent"), value=block.get("value", 0.0))


@dataclass(frozen=True)
class ExitStrategiesConfig:
    """Validated exitStrategies section."""
    enabled: Tuple[str, ...] = ()
    stop_loss: Optional[StopLossConfig] = None
    profit_target: Optional[ProfitTargetConfig] = None
    trailing_stop: Optional[TrailingStopConfig] = None
    max_hold_time: Optional[MaxHoldTimeConfig] = None
    end_of_day: Optional[EndOfDayConfig] = None
    slippage: Optional[SlippageConfig] = None

    KEYS = ("enabled", "strategyOptions", "maxHoldTime", "endOfDay", "slippage")

    @classmethod
    def from_dict(cls, raw: Any) -> "ExitStrategiesConfig":
        raw = _check_keys(raw, cls.KEYS, "exitStrategies")
        enabled = raw.get("enabled")
        if enabled is None:
            raise ConfigurationError("exitStrategies.enabled is required")
        if not isinstance(enabled, (list, tuple)) or not all(isinstance(n, str) for n in enabled):
            raise InvalidConfigValueError("exitStrategies.enabled must be a list of strategy names")
        options = raw.get("strategyOptions") or {}
        options = _check_keys(options, ("stopLoss", "profitTarget", "trailingStop"), "exitStrategies.strategyOptions")

        def block(name, parser):
            return parser(options[name], f"strategyOptions.{name}") if options.get(name) is not None else None

        return cls(
            enabled=tuple(enabled),
            stop_loss=block("stopLoss", StopLossConfig.from_dict),
            profit_target=block("profitTarget", ProfitTargetConfig.from_dict),
            trailing_stop=block("trailingStop", TrailingStopConfig.from_dict),
            max_hold_time=MaxHoldTimeConfig.from_dict(raw["maxHoldTime"]) if raw.get("maxHoldTime") is not None else None,
            end_of_day=EndOfDayConfig.from_dict(raw["endOfDay"]) if raw.get("endOfDay") is not None else None,
            slippage=SlippageConfig.from_dict(raw["slippage"]) if raw.get("slippage") is not None else None,
        )


def _env_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path(__file__).resolve().parents[2]
    return root / ".env"


def load_dotenv_if_exists(project_root: Optional[Path] = None) -> None:
    """Load .env from project root if present."""
    path = _env_path(project_root)
    if path.exists():
        load_dotenv(path)


def _as_date(value: Any, where: str) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise InvalidConfigValueError(f"{where} must be YYYY-MM-DD, got {value!r}") from None


def load_config(config_path: Optional[Path] = None, project_root: Optional[Path] = None) -> "Config":
    """Load config.yaml and overlay with env. Returns Config."""
    load_dotenv_if_exists(project_root)
    root = project_root or Path(__file__).resolve().parents[2]
    path = config_path or root / "config.yaml"
    data: Dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    def env(key: str, default: str = "") -> str:
        return os.getenv(key, default).strip()

    def env_bool(key: str, default: bool = False) -> bool:
        return os.getenv(key, str(default)).lower() in ("true", "1", "yes")

    def env_int(key: str, default: int = 0) -> int:
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            return default

    backtest = data.get("backtest", {}) or {}
    entry = data.get("entry", {}) or {}
    logging_cfg = data.get("logging", {}) or {}

    direction_name = env("DIRECTION", str(backtest.get("direction", "long"))).lower()
    try:
        direction = Direction(direction_name)
    except ValueError:
        raise InvalidConfigValueError(f"backtest.direction must be long or short, got {direction_name!r}") from None

    raw_exits = data.get("exitStrategies")
    exit_strategies = ExitStrategiesConfig.from_dict(raw_exits) if raw_exits is not None else None

    data_dir = Path(env("DATA_DIR", str(backtest.get("data_dir", "tickers"))))
    if not data_dir.is_absolute():
        data_dir = root / data_dir

    return Config(
        symbol=env("SYMBOL", str(backtest.get("symbol", "SPY"))).upper(),
        timeframe=env("TIMEFRAME", str(backtest.get("timeframe", "1min"))),
        direction=direction,
        start_date=_as_date(backtest.get("start_date"), "backtest.start_date"),
        end_date=_as_date(backtest.get("end_date"), "backtest.end_date"),
        data_dir=data_dir,
        initial_capital=float(backtest.get("initial_capital", 10000.0)),
        max_workers=env_int("MAX_WORKERS", backtest.get("max_workers", 1)),
        prior_day_lookback_days=int(backtest.get("prior_day_lookback_days", 10)),
        test_mode=env_bool("TEST_MODE", backtest.get("test_mode", False)),
        entry_pattern=str(entry.get("pattern", "quick-rise")),
        entry_options=dict(entry.get("options") or {}),
        exit_strategies=exit_strategies,
        log_level=env("LOG_LEVEL", logging_cfg.get("level", "INFO")),
        log_dir=Path(logging_cfg.get("log_dir", "logs")),
        log_file=logging_cfg.get("log_file", "backtest.log"),
    )


class Config:
    """Unified configuration. Immutable after load."""

    __slots__ = (
        "symbol", "timeframe", "direction", "start_date", "end_date", "data_dir",
        "initial_capital", "max_workers", "prior_day_lookback_days", "test_mode",
        "entry_pattern", "entry_options", "exit_strategies",
        "log_level", "log_dir", "log_file",
    )

    def __init__(
        self,
        symbol: str = "SPY",
        timeframe: str = "1min",
        direction: Direction = Direction.LONG,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        data_dir: Path = None,
        initial_capital: float = 10000.0,
        max_workers: int = 1,
        prior_day_lookback_days: int = 10,
        test_mode: bool = False,
        entry_pattern: str = "quick-rise",
        entry_options: Optional[dict] = None,
        exit_strategies: Optional[ExitStrategiesConfig] = None,
        log_level: str = "INFO",
        log_dir: Path = None,
        log_file: str = "backtest.log",
    ):
        self.symbol = symbol
        self.timeframe = timeframe
        self.direction = direction
        self.start_date = start_date
        self.end_date = end_date
        self.data_dir = Path(data_dir) if data_dir else Path("tickers")
        self.initial_capital = initial_capital
        self.max_workers = max(1, max_workers)
        self.prior_day_lookback_days = prior_day_lookback_days
        self.test_mode = test_mode
        self.entry_pattern = entry_pattern
        self.entry_options = entry_options or {}
        self.exit_strategies = exit_strategies
        self.log_level = log_level
        self.log_dir = Path(log_dir) if log_dir else Path("logs")
        self.log_file = log_file
