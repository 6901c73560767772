"""
MARKET PULSE — Sub-Signal Rule Table
Each sub-signal is a row of data: the sample field it reads, the comparisons
that make it bullish or bearish, and its weight in the ensemble.
"""
import operator
from typing import Callable, Dict, List, Optional, Tuple

from market_pulse.data.models import PriceSample
from market_pulse.data.random_source import RandomSource
from market_pulse.config.settings import get_settings

Condition = Tuple[str, float]  # (comparison, threshold)

COMPARISONS: Dict[str, Callable[[float, float], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


class SignalRule:
    """One weighted sub-signal. Threshold rules read a sample field; random rules flip a coin."""

    def __init__(
        self,
        key: str,
        name: str,
        weight: float,
        field: Optional[str] = None,
        bullish: Optional[Condition] = None,
        bearish: Optional[Condition] = None,
        random: bool = False,
    ):
        if not random and (field is None or bullish is None or bearish is None):
            raise ValueError(f"Threshold rule {key} needs a field and both conditions")
        self.key = key
        self.name = name
        self.weight = weight
        self.field = field
        self.bullish = bullish
        self.bearish = bearish
        self.random = random

    @staticmethod
    def _holds(condition: Condition, value: float) -> bool:
        op, threshold = condition
        return COMPARISONS[op](value, threshold)

    def evaluate(self, sample: PriceSample, rng: RandomSource) -> int:
        """Return +1 (bullish), -1 (bearish) or 0 (neutral)."""
        if self.random:
            return rng.coin()
        value = getattr(sample, self.field)
        if self._holds(self.bullish, value):
            return 1
        if self._holds(self.bearish, value):
            return -1
        return 0

    def __repr__(self) -> str:
        return f"SignalRule({self.key}, weight={self.weight})"


# Weights are supplied from SignalSettings at build time.
RULE_DEFINITIONS: Dict[str, Dict] = {
    "rsi": {
        # Contrarian: oversold is bullish
        "name": "RSI",
        "field": "rsi",
        "bullish": ("<", 30.0),
        "bearish": (">", 70.0),
    },
    "macd": {
        "name": "MACD",
        "field": "macd",
        "bullish": (">", 0.0),
        "bearish": ("<=", 0.0),
    },
    "order_flow": {
        "name": "Order Flow",
        "field": "order_flow_delta",
        "bullish": (">", 1000.0),
        "bearish": ("<", -1000.0),
    },
    "volume": {
        "name": "Volume Analysis",
        "field": "volume",
        "bullish": (">", 5000.0),
        "bearish": ("<=", 5000.0),
    },
    "market_profile": {
        # Placeholder: not derived from the market-profile dataset
        "name": "Market Profile",
        "random": True,
    },
}


def build_rule(key: str, weight: float) -> SignalRule:
    """Build a sub-signal rule from the predefined table."""
    defn = RULE_DEFINITIONS.get(key)
    if not defn:
        raise ValueError(f"Unknown signal rule: {key}")
    return SignalRule(key=key, weight=weight, **defn)


def build_default_rules(weights: Optional[Dict[str, float]] = None) -> List[SignalRule]:
    """Build every predefined rule, in table order, with configured weights."""
    weights = weights or get_settings().signals.weights
    missing = [k for k in RULE_DEFINITIONS if k not in weights]
    if missing:
        raise ValueError(f"Missing weights for rules: {missing}")
    return [build_rule(key, weights[key]) for key in RULE_DEFINITIONS]
