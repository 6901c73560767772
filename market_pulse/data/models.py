"""
MARKET PULSE — Data Models for Synthetic Market Data
Canonical data structures shared by the generator, the signal ensemble
and the rendering boundary.
"""
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum

DAY_MS = 86_400_000


class Direction(str, Enum):
    UP = "UP"
    DOWN = "DOWN"
    FLAT = "FLAT"


class SymbolProfile(BaseModel):
    """Static simulation parameters for a tradable symbol."""
    model_config = ConfigDict(frozen=True)

    code: str
    base_price: float = Field(gt=0)
    volatility_pct: float = Field(gt=0)
    display_name: str


class TimeframeProfile(BaseModel):
    """Bar interval and series length for a timeframe."""
    model_config = ConfigDict(frozen=True)

    code: str
    label: str
    interval_ms: int = Field(gt=0)
    sample_count: int = Field(gt=0)

    @property
    def is_daily(self) -> bool:
        return self.interval_ms >= DAY_MS

    @property
    def interval_seconds(self) -> float:
        return self.interval_ms / 1000.0


class PriceSample(BaseModel):
    """One bar of the synthetic price/indicator series."""
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    time_label: str
    price: float
    volume: int = Field(ge=0)
    buy_volume: int = Field(ge=0)
    sell_volume: int = Field(ge=0)
    rsi: float
    macd: float
    bollinger_upper: float
    bollinger_lower: float
    order_flow_delta: int
    vwap: float

    @model_validator(mode="after")
    def _check_volume_split(self) -> "PriceSample":
        if self.buy_volume + self.sell_volume != self.volume:
            raise ValueError("buy_volume + sell_volume must equal volume")
        if self.order_flow_delta != self.buy_volume - self.sell_volume:
            raise ValueError("order_flow_delta must equal buy_volume - sell_volume")
        return self


class OrderFlowLevel(BaseModel):
    """One price level of the order-flow ladder."""
    model_config = ConfigDict(frozen=True)

    price: float
    bid_size: int = Field(ge=0)
    ask_size: int = Field(ge=0)
    delta: int
    cumulative_delta: int
    intensity: float


class VolumeProfileLevel(BaseModel):
    """One price level of the volume profile."""
    model_config = ConfigDict(frozen=True)

    price: float
    volume: int = Field(ge=0)
    is_point_of_control: bool = False
    in_value_area: bool = False


class MarketProfileEntry(BaseModel):
    """One TPO period of the market profile."""
    model_config = ConfigDict(frozen=True)

    period_label: str
    price: float
    tpo_count: int = Field(ge=1, le=15)
    volume: int = Field(ge=0)


class MarketDataBundle(BaseModel):
    """The four datasets of one refresh; always replaced as a unit."""
    model_config = ConfigDict(frozen=True)

    symbol: str
    timeframe: str
    generated_at: datetime
    series: List[PriceSample]
    order_flow: List[OrderFlowLevel]
    volume_profile: List[VolumeProfileLevel]
    market_profile: List[MarketProfileEntry]

    @property
    def latest_sample(self) -> Optional[PriceSample]:
        return self.series[-1] if self.series else None


class PriceChange(BaseModel):
    """Last-bar move shown in the dashboard header."""
    price: float
    previous_price: float
    change: float
    change_pct: float
    direction: Direction
