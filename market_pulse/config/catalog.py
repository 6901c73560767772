"""
MARKET PULSE — Symbol & Timeframe Catalogs
Static, immutable profiles keyed by code. Lookups never fall back to a default.
"""
from types import MappingProxyType
from typing import Dict, List, Mapping

from market_pulse.data.models import SymbolProfile, TimeframeProfile
from market_pulse.utils.errors import InvalidProfileError


def _symbols(*profiles: SymbolProfile) -> Mapping[str, SymbolProfile]:
    return MappingProxyType({p.code: p for p in profiles})


def _timeframes(*profiles: TimeframeProfile) -> Mapping[str, TimeframeProfile]:
    return MappingProxyType({p.code: p for p in profiles})


SYMBOL_CATALOG: Mapping[str, SymbolProfile] = _symbols(
    SymbolProfile(code="AAPL", base_price=175, volatility_pct=2.5, display_name="Apple Inc."),
    SymbolProfile(code="TSLA", base_price=240, volatility_pct=8.0, display_name="Tesla Inc."),
    SymbolProfile(code="MSFT", base_price=340, volatility_pct=3.0, display_name="Microsoft Corp."),
    SymbolProfile(code="GOOGL", base_price=140, volatility_pct=4.0, display_name="Alphabet Inc."),
    SymbolProfile(code="AMZN", base_price=155, volatility_pct=3.5, display_name="Amazon.com Inc."),
    SymbolProfile(code="NVDA", base_price=450, volatility_pct=12.0, display_name="NVIDIA Corp."),
    SymbolProfile(code="META", base_price=320, volatility_pct=5.0, display_name="Meta Platforms Inc."),
    SymbolProfile(code="NFLX", base_price=420, volatility_pct=6.0, display_name="Netflix Inc."),
    SymbolProfile(code="SPY", base_price=430, volatility_pct=1.5, display_name="SPDR S&P 500 ETF"),
    SymbolProfile(code="QQQ", base_price=380, volatility_pct=2.0, display_name="Invesco QQQ Trust"),
)

TIMEFRAME_CATALOG: Mapping[str, TimeframeProfile] = _timeframes(
    TimeframeProfile(code="1m", label="1 Minute", interval_ms=60_000, sample_count=100),
    TimeframeProfile(code="5m", label="5 Minutes", interval_ms=300_000, sample_count=100),
    TimeframeProfile(code="15m", label="15 Minutes", interval_ms=900_000, sample_count=96),
    TimeframeProfile(code="1h", label="1 Hour", interval_ms=3_600_000, sample_count=72),
    TimeframeProfile(code="4h", label="4 Hours", interval_ms=14_400_000, sample_count=48),
    TimeframeProfile(code="1d", label="1 Day", interval_ms=86_400_000, sample_count=30),
)


def get_symbol_profile(code: str) -> SymbolProfile:
    """Look up a symbol profile; raises InvalidProfileError for unknown codes."""
    try:
        return SYMBOL_CATALOG[code]
    except KeyError:
        raise InvalidProfileError("symbol", code) from None


def get_timeframe_profile(code: str) -> TimeframeProfile:
    """Look up a timeframe profile; raises InvalidProfileError for unknown codes."""
    try:
        return TIMEFRAME_CATALOG[code]
    except KeyError:
        raise InvalidProfileError("timeframe", code) from None


def list_symbols() -> List[Dict]:
    return [p.model_dump() for p in SYMBOL_CATALOG.values()]


def list_timeframes() -> List[Dict]:
    return [p.model_dump() for p in TIMEFRAME_CATALOG.values()]
