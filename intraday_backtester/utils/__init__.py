"""Utils: regular session window and time parsing."""

from intraday_backtester.utils.market_hours import (
    SESSION_OPEN,
    SESSION_CLOSE,
    filter_regular_session,
    in_regular_session,
    parse_hhmm,
)

__all__ = ["SESSION_OPEN", "SESSION_CLOSE", "filter_regular_session", "in_regular_session", "parse_hhmm"]
