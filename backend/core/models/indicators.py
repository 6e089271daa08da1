"""Indicator result value objects.

All numeric fields are rounded when the indicator is computed (2 decimals,
3 for fractional ratios such as Bollinger %B). Consumers compare against
the rounded values, never against raw floats.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

VoteType = Literal["BUY", "SELL", "HOLD"]
TrendStrength = Literal["weak", "moderate", "strong", "very_strong"]
Bias = Literal["bullish", "bearish", "neutral"]
StochasticZone = Literal["overbought", "oversold", "neutral"]
TrendDirection = Literal["up", "down"]
VWAPPosition = Literal["above", "below", "at"]
VolatilityRegime = Literal["low", "normal", "high", "extreme"]


class _Result(BaseModel):
    model_config = ConfigDict(frozen=True)


class IndicatorVote(_Result):
    """Directional vote emitted by a single indicator."""

    signal: VoteType
    strength: float
    reason: str


class VolumeSignal(IndicatorVote):
    volume_ratio: float


class MACDResult(_Result):
    macd: float = 0.0
    signal: float = 0.0
    histogram: float = 0.0


class BollingerBands(_Result):
    upper: float = 0.0
    middle: float = 0.0
    lower: float = 0.0
    percent_b: float = 0.5
    bandwidth: float = 0.0


class ADXResult(_Result):
    adx: float = 0.0
    plus_di: float = 0.0
    minus_di: float = 0.0
    trend_strength: TrendStrength = "weak"
    signal: Bias = "neutral"


class ATRResult(_Result):
    atr: float = 0.0
    tr: float = 0.0
    atr_percent: float = 0.0


class StochasticResult(_Result):
    k: float = 50.0
    d: float = 50.0
    signal: StochasticZone = "neutral"


class VWAPResult(_Result):
    vwap: float = 0.0
    signal: VWAPPosition = "at"
    distance: float = 0.0


class SuperTrendResult(_Result):
    supertrend: float = 0.0
    direction: TrendDirection = "up"
    signal: VoteType = "HOLD"


class IchimokuResult(_Result):
    tenkan: float = 0.0
    kijun: float = 0.0
    senkou_a: float = 0.0
    senkou_b: float = 0.0
    chikou: float = 0.0
    signal: Bias = "neutral"
    cloud_thickness: float = 0.0


class ParabolicSARResult(_Result):
    sar: float = 0.0
    trend: TrendDirection = "up"
    signal: VoteType = "HOLD"


class FibonacciLevels(_Result):
    high: float
    low: float
    levels: dict[str, float]


class IndicatorSnapshot(_Result):
    """Every indicator value that went into one signal."""

    rsi: float = 50.0
    macd: MACDResult = MACDResult()
    volume_ratio: float = 1.0
    bollinger: BollingerBands = BollingerBands()
    bollinger_signal: str = "Neutral"
    adx: ADXResult = ADXResult()
    atr: ATRResult = ATRResult()
    stochastic: StochasticResult = StochasticResult()
    vwap: VWAPResult = VWAPResult()
    supertrend: SuperTrendResult = SuperTrendResult()
    ichimoku: IchimokuResult = IchimokuResult()
    parabolic_sar: ParabolicSARResult = ParabolicSARResult()
