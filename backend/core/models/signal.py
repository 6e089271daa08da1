"""Signal, risk and recommendation models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from core.models.indicators import IndicatorSnapshot


class SignalType(str, Enum):
    """Trading decision."""

    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class RiskLevel(str, Enum):
    """Risk bucket derived from the composite risk score."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    EXTREME = "EXTREME"

    @property
    def rank(self) -> int:
        return _RISK_ORDER.index(self)


_RISK_ORDER = [RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.EXTREME]


class PositionSizeTier(str, Enum):
    SMALL = "SMALL"
    MEDIUM = "MEDIUM"
    LARGE = "LARGE"


class RiskBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    volatility_risk: float = 0.0
    volume_risk: float = 0.0
    price_risk: float = 0.0


class RiskScore(BaseModel):
    """Composite risk score (0 = calm, 100 = extreme)."""

    model_config = ConfigDict(frozen=True)

    score: float
    level: RiskLevel
    volatility: float
    volume_ratio: float
    price_deviation: float
    breakdown: RiskBreakdown = RiskBreakdown()


class Signal(BaseModel):
    """Trading signal produced by one analysis call.

    ``target_price``, ``stop_loss`` and ``risk_reward`` are None for HOLD
    signals; ``risk_reward`` is also None for SELL signals.
    """

    model_config = ConfigDict(frozen=True)

    type: SignalType
    confidence: float
    entry_price: float
    target_price: float | None = None
    stop_loss: float | None = None
    risk_reward: float | None = None
    reasons: tuple[str, ...] = Field(default_factory=tuple)
    risk_score: RiskScore
    indicators: IndicatorSnapshot

    @property
    def is_actionable(self) -> bool:
        return self.type != SignalType.HOLD


class Recommendation(BaseModel):
    """Qualitative trading plan derived from a signal."""

    model_config = ConfigDict(frozen=True)

    strategy: str
    description: str
    position_size: PositionSizeTier
    timeframe: str


class RiskRecommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    recommendation: str
    position_size: PositionSizeTier
    stop_loss_percent: float


class Analysis(BaseModel):
    """Full result of analysing one symbol."""

    model_config = ConfigDict(frozen=True)

    symbol: str | None = None
    signal: Signal
    recommendation: Recommendation
