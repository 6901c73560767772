"""
MARKET PULSE — Failure Kinds
Both are recoverable: callers skip the operation and keep previous state.
"""
from typing import Optional


class MarketPulseError(Exception):
    """Base class for all recoverable MARKET PULSE errors."""


class InvalidProfileError(MarketPulseError):
    """Unknown symbol or timeframe code."""

    def __init__(self, kind: str, code: str):
        self.kind = kind
        self.code = code
        super().__init__(f"Unknown {kind}: {code!r}")


class EmptySeriesError(MarketPulseError):
    """Analysis requested while no price series is available."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "No price series available for analysis")
