"""
MARKET PULSE — Test Configuration & Fixtures
Shared fixtures for all test modules.
"""
import pytest
from datetime import datetime, timezone

from market_pulse.config.catalog import get_symbol_profile, get_timeframe_profile
from market_pulse.config.settings import SignalSettings, SimulationSettings
from market_pulse.data.models import PriceSample
from market_pulse.data.random_source import RandomSource, NumpyRandomSource
from market_pulse.data.generator import MarketDataGenerator
from market_pulse.engines.ensemble import SignalEnsemble
from market_pulse.session.dashboard import DashboardSession


class MidpointRandomSource(RandomSource):
    """Deterministic source: every draw lands on the middle (or bottom) of its range."""

    def uniform(self, low: float, high: float) -> float:
        return (low + high) / 2

    def integer(self, low: int, high: int) -> int:
        return low


class FixedCoinSource(MidpointRandomSource):
    """Midpoint draws, but coin() always returns the configured side."""

    def __init__(self, side: int):
        self.side = side

    def coin(self) -> int:
        return self.side


@pytest.fixture
def aapl():
    return get_symbol_profile("AAPL")


@pytest.fixture
def five_minute():
    return get_timeframe_profile("5m")


@pytest.fixture
def daily():
    return get_timeframe_profile("1d")


@pytest.fixture
def fixed_now():
    return datetime(2024, 1, 2, 15, 30, tzinfo=timezone.utc)


@pytest.fixture
def seeded_generator():
    return MarketDataGenerator(NumpyRandomSource(seed=42))


@pytest.fixture
def midpoint_generator():
    return MarketDataGenerator(MidpointRandomSource())


@pytest.fixture
def signal_settings():
    return SignalSettings()


@pytest.fixture
def bullish_ensemble(signal_settings):
    return SignalEnsemble(settings=signal_settings, random_source=FixedCoinSource(1))


@pytest.fixture
def bearish_ensemble(signal_settings):
    return SignalEnsemble(settings=signal_settings, random_source=FixedCoinSource(-1))


@pytest.fixture
def make_sample(fixed_now):
    """Factory for a PriceSample with overridable indicator fields."""
    def _make(
        price: float = 100.0,
        vwap: float = 100.0,
        rsi: float = 50.0,
        macd: float = 0.1,
        buy_volume: int = 4000,
        sell_volume: int = 4000,
    ) -> PriceSample:
        return PriceSample(
            timestamp=fixed_now,
            time_label="15:30:00",
            price=price,
            volume=buy_volume + sell_volume,
            buy_volume=buy_volume,
            sell_volume=sell_volume,
            rsi=rsi,
            macd=macd,
            bollinger_upper=price * 1.05,
            bollinger_lower=price * 0.95,
            order_flow_delta=buy_volume - sell_volume,
            vwap=vwap,
        )
    return _make


@pytest.fixture
def simulation_settings():
    return SimulationSettings(
        refresh_latency_seconds=0.0,
        analysis_latency_seconds=0.0,
        min_refresh_interval_seconds=5.0,
    )


@pytest.fixture
def session(simulation_settings, signal_settings):
    """Zero-latency session on AAPL / 5m with seeded randomness."""
    return DashboardSession(
        generator=MarketDataGenerator(NumpyRandomSource(seed=7)),
        ensemble=SignalEnsemble(settings=signal_settings, random_source=NumpyRandomSource(seed=7)),
        settings=simulation_settings,
        symbol="AAPL",
        timeframe="5m",
    )
