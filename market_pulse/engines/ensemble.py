"""
MARKET PULSE — Signal Ensemble
Scores the latest sample with a fixed weighted rule table and turns the
composite score into an action, confidence, risk level, price targets and
recommendation text.

    composite  = sum(value_i * weight_i)
    confidence = min(|composite| * 100, 95)
    action     = BUY if composite > 0.2, SELL if composite < -0.2, else HOLD
"""
import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from market_pulse.config.settings import SignalSettings, get_settings
from market_pulse.data.models import PriceSample
from market_pulse.data.random_source import RandomSource, NumpyRandomSource
from market_pulse.engines.signal_rules import SignalRule, build_default_rules
from market_pulse.utils.errors import EmptySeriesError
from market_pulse.utils.helpers import utc_now
from market_pulse.utils.logger import get_logger

logger = get_logger("ensemble")

WEIGHT_TOLERANCE = 1e-9


class Action(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


@dataclass(frozen=True)
class SubSignal:
    """One evaluated rule."""
    name: str
    value: int  # -1, 0, 1
    weight: float

    @property
    def impact(self) -> float:
        return self.value * self.weight

    @property
    def bias(self) -> str:
        if self.value > 0:
            return "BULLISH"
        if self.value < 0:
            return "BEARISH"
        return "NEUTRAL"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "weight": self.weight,
            "impact": round(self.impact, 3),
            "bias": self.bias,
        }


@dataclass(frozen=True)
class SignalEnsembleResult:
    """Outcome of one analysis pass; replaced wholesale, never updated."""
    action: Action
    confidence_pct: float
    composite_score: float
    sub_signals: List[SubSignal]
    risk_level: RiskLevel
    volatility: float
    current_price: float
    target_price: float
    stop_loss_price: float
    recommendations: List[str]
    symbol: Optional[str] = None
    timeframe: Optional[str] = None
    generated_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "timeframe": self.timeframe,
            "action": self.action.value,
            "confidence_pct": round(self.confidence_pct, 1),
            "composite_score": round(self.composite_score, 3),
            "signals": [s.to_dict() for s in self.sub_signals],
            "risk_level": self.risk_level.value,
            "volatility": round(self.volatility, 6),
            "current_price": round(self.current_price, 2),
            "target_price": round(self.target_price, 2),
            "stop_loss_price": round(self.stop_loss_price, 2),
            "recommendations": list(self.recommendations),
            "generated_at": self.generated_at.isoformat(),
        }

    def __repr__(self) -> str:
        return (
            f"SignalEnsembleResult({self.action.value} | "
            f"Confidence={self.confidence_pct:.1f}% | Risk={self.risk_level.value})"
        )


# action -> (lines, extra line when risk is HIGH)
RECOMMENDATION_TABLE = {
    Action.BUY: (
        ["Strong bullish momentum detected", "Consider scaling into position"],
        "Use smaller position size due to high volatility",
    ),
    Action.SELL: (
        ["Bearish pressure increasing", "Consider profit-taking or hedging"],
        "Exit positions quickly if volatility persists",
    ),
    Action.HOLD: (
        ["Market showing consolidation patterns", "Wait for clearer directional bias"],
        None,
    ),
}
LOW_CONFIDENCE_NOTE = "Low confidence - consider waiting for stronger signals"


class SignalEnsemble:
    """Weighted ensemble over the rule table. Stateless apart from its random source."""

    def __init__(
        self,
        rules: Optional[Sequence[SignalRule]] = None,
        settings: Optional[SignalSettings] = None,
        random_source: Optional[RandomSource] = None,
    ):
        self.settings = settings or get_settings().signals
        self.rules: List[SignalRule] = list(rules) if rules is not None else build_default_rules(self.settings.weights)
        self.rng = random_source or NumpyRandomSource()

        total = sum(r.weight for r in self.rules)
        if not math.isclose(total, 1.0, rel_tol=0.0, abs_tol=WEIGHT_TOLERANCE):
            raise ValueError(f"Signal weights must sum to 1.0, got {total}")

    # ─── Scoring stages ─────────────────────────────────────────

    def evaluate_rules(self, sample: PriceSample) -> List[SubSignal]:
        return [SubSignal(r.name, r.evaluate(sample, self.rng), r.weight) for r in self.rules]

    @staticmethod
    def composite_score(sub_signals: Sequence[SubSignal]) -> float:
        return sum(s.value * s.weight for s in sub_signals)

    def confidence(self, composite: float) -> float:
        return min(abs(composite) * 100, self.settings.confidence_cap)

    def classify_action(self, composite: float) -> Action:
        """Strict inequality: a score of exactly +/-threshold is HOLD."""
        threshold = self.settings.action_threshold
        if composite > threshold:
            return Action.BUY
        if composite < -threshold:
            return Action.SELL
        return Action.HOLD

    @staticmethod
    def price_volatility(sample: PriceSample) -> float:
        return abs(sample.price - sample.vwap) / sample.vwap

    def classify_risk(self, volatility: float) -> RiskLevel:
        if volatility > self.settings.high_risk_volatility:
            return RiskLevel.HIGH
        if volatility > self.settings.medium_risk_volatility:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    def price_targets(self, action: Action, price: float) -> tuple:
        """Return (target, stop_loss) for the action."""
        target_pct = self.settings.target_pct
        stop_pct = self.settings.stop_loss_pct
        if action == Action.BUY:
            return price * (1 + target_pct), price * (1 - stop_pct)
        if action == Action.SELL:
            return price * (1 - target_pct), price * (1 + stop_pct)
        return price, price

    def build_recommendations(self, action: Action, confidence: float, risk: RiskLevel) -> List[str]:
        lines, high_risk_line = RECOMMENDATION_TABLE[action]
        recs = list(lines)
        if risk == RiskLevel.HIGH and high_risk_line:
            recs.append(high_risk_line)
        if confidence < self.settings.low_confidence_pct:
            recs.append(LOW_CONFIDENCE_NOTE)
        return recs

    # ─── Entry points ───────────────────────────────────────────

    def analyze(
        self,
        sample: Optional[PriceSample],
        symbol: Optional[str] = None,
        timeframe: Optional[str] = None,
    ) -> SignalEnsembleResult:
        """Score one sample. Raises EmptySeriesError when there is no sample."""
        if sample is None:
            raise EmptySeriesError()

        sub_signals = self.evaluate_rules(sample)
        composite = self.composite_score(sub_signals)
        confidence = self.confidence(composite)
        action = self.classify_action(composite)
        volatility = self.price_volatility(sample)
        risk = self.classify_risk(volatility)
        target, stop = self.price_targets(action, sample.price)

        result = SignalEnsembleResult(
            action=action,
            confidence_pct=confidence,
            composite_score=composite,
            sub_signals=sub_signals,
            risk_level=risk,
            volatility=volatility,
            current_price=sample.price,
            target_price=target,
            stop_loss_price=stop,
            recommendations=self.build_recommendations(action, confidence, risk),
            symbol=symbol,
            timeframe=timeframe,
        )

        logger.info(
            "analysis_completed",
            symbol=symbol,
            action=action.value,
            confidence=f"{confidence:.1f}",
            composite=f"{composite:.3f}",
            risk=risk.value,
        )
        return result

    def analyze_series(
        self,
        series: Sequence[PriceSample],
        symbol: Optional[str] = None,
        timeframe: Optional[str] = None,
    ) -> SignalEnsembleResult:
        """Score the most recent sample of a series."""
        if not series:
            raise EmptySeriesError()
        return self.analyze(series[-1], symbol=symbol, timeframe=timeframe)
