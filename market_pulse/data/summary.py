"""
MARKET PULSE — Dataset Frames & Summaries
DataFrame views of a MarketDataBundle for charting, plus the header ticker
and profile statistics shown next to the charts.
"""
from typing import Any, Dict, List, Optional
import pandas as pd

from market_pulse.data.models import (
    MarketDataBundle, PriceSample, PriceChange, Direction,
)
from market_pulse.utils.helpers import pct_change

SERIES_COLUMNS = [
    "timestamp", "time_label", "price", "volume", "buy_volume", "sell_volume",
    "rsi", "macd", "bollinger_upper", "bollinger_lower", "order_flow_delta", "vwap",
]


def series_to_dataframe(series: List[PriceSample]) -> pd.DataFrame:
    """Convert a price series to a timestamp-indexed DataFrame."""
    if not series:
        return pd.DataFrame(columns=SERIES_COLUMNS).set_index("timestamp")
    df = pd.DataFrame([s.model_dump() for s in series])
    df.set_index("timestamp", inplace=True)
    df.sort_index(inplace=True)
    return df


def order_flow_to_dataframe(bundle: MarketDataBundle) -> pd.DataFrame:
    return pd.DataFrame([lvl.model_dump() for lvl in bundle.order_flow])


def volume_profile_to_dataframe(bundle: MarketDataBundle) -> pd.DataFrame:
    return pd.DataFrame([lvl.model_dump() for lvl in bundle.volume_profile])


def price_change(series: List[PriceSample]) -> Optional[PriceChange]:
    """Move of the latest bar against the one before it."""
    if len(series) < 2:
        return None
    last, prev = series[-1].price, series[-2].price
    change = last - prev
    if change > 0:
        direction = Direction.UP
    elif change < 0:
        direction = Direction.DOWN
    else:
        direction = Direction.FLAT
    return PriceChange(
        price=last,
        previous_price=prev,
        change=round(change, 2),
        change_pct=round(pct_change(prev, last), 2),
        direction=direction,
    )


def summarize_bundle(bundle: MarketDataBundle) -> Dict[str, Any]:
    """Aggregate statistics across the four datasets of one refresh."""
    series_df = series_to_dataframe(bundle.series)
    flow_df = order_flow_to_dataframe(bundle)
    profile_df = volume_profile_to_dataframe(bundle)

    summary: Dict[str, Any] = {
        "symbol": bundle.symbol,
        "timeframe": bundle.timeframe,
        "generated_at": bundle.generated_at.isoformat(),
        "samples": len(series_df),
    }

    if not series_df.empty:
        change = price_change(bundle.series)
        summary["series"] = {
            "last_price": float(series_df["price"].iloc[-1]),
            "high": float(series_df["price"].max()),
            "low": float(series_df["price"].min()),
            "total_volume": int(series_df["volume"].sum()),
            "buy_volume": int(series_df["buy_volume"].sum()),
            "sell_volume": int(series_df["sell_volume"].sum()),
            "net_order_flow": int(series_df["order_flow_delta"].sum()),
            "price_change": change.model_dump(mode="json") if change else None,
        }

    if not flow_df.empty:
        summary["order_flow"] = {
            "total_bid": int(flow_df["bid_size"].sum()),
            "total_ask": int(flow_df["ask_size"].sum()),
            "net_delta": int(flow_df["delta"].sum()),
            "max_intensity": round(float(flow_df["intensity"].max()), 4),
        }

    if not profile_df.empty:
        poc = profile_df[profile_df["is_point_of_control"]]
        value_area = profile_df[profile_df["in_value_area"]]
        summary["volume_profile"] = {
            "point_of_control": float(poc["price"].iloc[0]) if not poc.empty else None,
            "value_area_high": float(value_area["price"].max()) if not value_area.empty else None,
            "value_area_low": float(value_area["price"].min()) if not value_area.empty else None,
            "value_area_volume_pct": round(
                float(value_area["volume"].sum() / profile_df["volume"].sum() * 100), 2
            ),
        }

    return summary
