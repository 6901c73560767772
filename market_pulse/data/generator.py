"""
MARKET PULSE — Synthetic Market Data Generator
Produces the price/indicator series, order-flow ladder, volume profile and
market (TPO) profile for one refresh from a multiplicative random walk.
"""
import math
import string
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from market_pulse.data.models import (
    SymbolProfile, TimeframeProfile, PriceSample, OrderFlowLevel,
    VolumeProfileLevel, MarketProfileEntry, MarketDataBundle,
)
from market_pulse.data.random_source import RandomSource, NumpyRandomSource
from market_pulse.utils.logger import get_logger
from market_pulse.utils.helpers import utc_now, format_time_label

logger = get_logger("generator")

# Price walk
START_PRICE_JITTER = 5.0
VWAP_JITTER_PCT = 0.001
BOLLINGER_WIDTH = 2.0

# Series draws
VOLUME_RANGE = (5_000, 55_000)
BUY_FRACTION_RANGE = (0.3, 0.7)
RSI_RANGE = (30.0, 70.0)
MACD_RANGE = (-1.0, 1.0)

# Order-flow ladder
ORDER_FLOW_LEVELS = 30
ORDER_FLOW_STEP_PCT = 0.001
ORDER_SIZE_RANGE = (1_000, 11_000)

# Volume profile
VOLUME_PROFILE_LEVELS = 40
VOLUME_PROFILE_STEP_PCT = 0.002
PROFILE_VOLUME_RANGE = (2_000, 17_000)
POINT_OF_CONTROL_INDEX = 20
VALUE_AREA_INDICES = (15, 25)

# Market profile
MAX_PROFILE_PERIODS = 24
PROFILE_PRICE_SPREAD_PCT = 0.02
TPO_RANGE = (1, 16)
TPO_VOLUME_RANGE = (1_500, 9_500)
PERIOD_LETTERS = string.ascii_uppercase


class MarketDataGenerator:
    """
    Stochastic simulator for one symbol/timeframe refresh.

    All draws go through the injected RandomSource; the default is an
    unseeded numpy generator, so two calls with the same profiles differ.
    """

    def __init__(self, random_source: Optional[RandomSource] = None):
        self.rng = random_source or NumpyRandomSource()

    def generate(
        self,
        symbol: SymbolProfile,
        timeframe: TimeframeProfile,
        now: Optional[datetime] = None,
    ) -> MarketDataBundle:
        """Generate all four datasets from one price walk."""
        now = now or utc_now()
        series, last_price = self.generate_series(symbol, timeframe, now)
        center = last_price or symbol.base_price

        bundle = MarketDataBundle(
            symbol=symbol.code,
            timeframe=timeframe.code,
            generated_at=now,
            series=series,
            order_flow=self.generate_order_flow(center),
            volume_profile=self.generate_volume_profile(center),
            market_profile=self.generate_market_profile(center, timeframe.sample_count),
        )

        logger.debug(
            "market_data_generated",
            symbol=symbol.code,
            timeframe=timeframe.code,
            samples=len(series),
            last_price=round(center, 2),
        )
        return bundle

    def generate_series(
        self,
        symbol: SymbolProfile,
        timeframe: TimeframeProfile,
        now: datetime,
    ) -> Tuple[List[PriceSample], float]:
        """
        Random-walk the price over sample_count bars ending at `now`.
        Returns the samples (oldest first) and the final unrounded price.
        """
        n = timeframe.sample_count
        vol_factor = symbol.volatility_pct / 100.0
        interval = timedelta(milliseconds=timeframe.interval_ms)
        price = symbol.base_price + self.rng.uniform(-START_PRICE_JITTER, START_PRICE_JITTER)

        samples: List[PriceSample] = []
        for i in range(n):
            timestamp = now - (n - 1 - i) * interval
            # Step size scales with the current price, so volatility compounds
            price += self.rng.uniform(-0.5, 0.5) * vol_factor * price
            recorded = round(price, 2)

            volume = self.rng.integer(*VOLUME_RANGE)
            buy_volume = math.floor(volume * self.rng.uniform(*BUY_FRACTION_RANGE))
            sell_volume = volume - buy_volume

            # Bands come from the recorded price so lower <= price <= upper holds
            band = recorded * vol_factor * BOLLINGER_WIDTH

            samples.append(PriceSample(
                timestamp=timestamp,
                time_label=format_time_label(timestamp, timeframe.is_daily),
                price=recorded,
                volume=volume,
                buy_volume=buy_volume,
                sell_volume=sell_volume,
                rsi=self.rng.uniform(*RSI_RANGE),
                macd=self.rng.uniform(*MACD_RANGE),
                bollinger_upper=recorded + band,
                bollinger_lower=recorded - band,
                order_flow_delta=buy_volume - sell_volume,
                vwap=recorded + self.rng.uniform(-0.5, 0.5) * recorded * VWAP_JITTER_PCT,
            ))

        return samples, price

    def generate_order_flow(self, center: float) -> List[OrderFlowLevel]:
        """Bid/ask ladder around `center`, highest price first."""
        step = center * ORDER_FLOW_STEP_PCT
        half = ORDER_FLOW_LEVELS // 2
        levels: List[OrderFlowLevel] = []
        cumulative = 0

        for i in range(ORDER_FLOW_LEVELS):
            bid = self.rng.integer(*ORDER_SIZE_RANGE)
            ask = self.rng.integer(*ORDER_SIZE_RANGE)
            delta = bid - ask
            cumulative += delta
            levels.append(OrderFlowLevel(
                price=round(center - half * step + i * step, 2),
                bid_size=bid,
                ask_size=ask,
                delta=delta,
                cumulative_delta=cumulative,
                intensity=abs(delta) / max(bid, ask),
            ))

        levels.reverse()
        return levels

    def generate_volume_profile(self, center: float) -> List[VolumeProfileLevel]:
        """Volume-at-price levels around `center` with POC and value area, highest first."""
        step = center * VOLUME_PROFILE_STEP_PCT
        half = VOLUME_PROFILE_LEVELS // 2
        va_low, va_high = VALUE_AREA_INDICES
        levels = [
            VolumeProfileLevel(
                price=round(center - half * step + i * step, 2),
                volume=self.rng.integer(*PROFILE_VOLUME_RANGE),
                is_point_of_control=(i == POINT_OF_CONTROL_INDEX),
                in_value_area=(va_low <= i <= va_high),
            )
            for i in range(VOLUME_PROFILE_LEVELS)
        ]
        levels.reverse()
        return levels

    def generate_market_profile(self, center: float, sample_count: int) -> List[MarketProfileEntry]:
        """One TPO entry per lettered period, at most 24."""
        entries = []
        for i in range(min(MAX_PROFILE_PERIODS, sample_count)):
            price = center + self.rng.uniform(-0.5, 0.5) * center * PROFILE_PRICE_SPREAD_PCT
            entries.append(MarketProfileEntry(
                period_label=PERIOD_LETTERS[i],
                price=round(price, 2),
                tpo_count=self.rng.integer(*TPO_RANGE),
                volume=self.rng.integer(*TPO_VOLUME_RANGE),
            ))
        return entries
