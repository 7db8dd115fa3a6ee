"""Data: bar providers (in-memory and CSV)."""

from intraday_backtester.data.provider import BarProvider, CsvBarProvider, FrameBarProvider, bars_to_frame

__all__ = ["BarProvider", "CsvBarProvider", "FrameBarProvider", "bars_to_frame"]
