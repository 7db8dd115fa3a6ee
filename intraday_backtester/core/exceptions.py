"""
Exception hierarchy for the backtester.

Everything raised on purpose derives from BacktestError so the CLI can catch
one type. Data gaps inside a run are not errors; see the engine.
"""


class BacktestError(Exception):
    """Base exception for all backtester errors."""
    pass


class ConfigurationError(BacktestError):
    """Exit pipeline or entry pattern cannot be built from the configuration."""
    pass


class InvalidConfigValueError(ConfigurationError):
    """Configuration value has the wrong type or is out of range."""
    pass


class DataError(BacktestError):
    """Bar data could not be loaded."""
    pass


class DataNotFoundError(DataError):
    """No bar file exists for the requested symbol and timeframe."""
    pass
