"""Entry patterns: base interface, implementations, and lookup by name."""

from __future__ import annotations
from typing import Dict, Optional, Type

from intraday_backtester.core.exceptions import ConfigurationError, InvalidConfigValueError
from intraday_backtester.patterns.base import EntryPattern
from intraday_backtester.patterns.fixed_time import FixedTimeEntryPattern
from intraday_backtester.patterns.quick_move import QuickFallPattern, QuickRisePattern

ENTRY_PATTERNS: Dict[str, Type[EntryPattern]] = {
    QuickRisePattern.name: QuickRisePattern,
    QuickFallPattern.name: QuickFallPattern,
    FixedTimeEntryPattern.name: FixedTimeEntryPattern,
}


def get_entry_pattern(name: str, options: Optional[dict] = None) -> EntryPattern:
    """Instantiate a registered pattern with its options."""
    cls = ENTRY_PATTERNS.get(name)
    if cls is None:
        available = ", ".join(sorted(ENTRY_PATTERNS))
        raise ConfigurationError(f"Unknown entry pattern {name!r}. Available: {available}")
    try:
        return cls(**(options or {}))
    except TypeError as e:
        raise InvalidConfigValueError(f"Invalid options for {name}: {e}") from e


__all__ = [
    "EntryPattern",
    "FixedTimeEntryPattern",
    "QuickFallPattern",
    "QuickRisePattern",
    "ENTRY_PATTERNS",
    "get_entry_pattern",
]
