"""Analysis configuration models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SignalWeights(BaseModel):
    """Score contributed by each indicator when it votes.

    The weights sum to 100, so the combined score stays within [-100, 100].
    """

    model_config = ConfigDict(frozen=True)

    rsi: float = 10
    rsi_healthy: float = 5  # RSI in the 50-60 band
    macd: float = 15
    bollinger: float = 10
    adx: float = 15
    stochastic: float = 10
    vwap: float = 5
    supertrend: float = 10
    ichimoku: float = 10
    parabolic_sar: float = 5
    volume: float = 5
    risk: float = 5


class SignalConfig(BaseModel):
    """Parameters of the multi-indicator signal generator."""

    model_config = ConfigDict(frozen=True)

    # Indicator periods
    rsi_period: int = 14
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    bollinger_period: int = 20
    bollinger_std: float = 2.0
    adx_period: int = 14
    atr_period: int = 14
    stochastic_k: int = 14
    stochastic_d: int = 3
    supertrend_period: int = 10
    supertrend_multiplier: float = 3.0
    sar_acceleration: float = 0.02
    sar_maximum: float = 0.2
    risk_period: int = 20
    volume_period: int = 20

    # Ichimoku needs 52 candles, so nothing less is analysable
    min_history: int = 52

    # Decision thresholds on the weighted score
    buy_threshold: float = 40
    sell_threshold: float = -40

    # BUY exits (ATR based)
    stop_atr_mult: float = 2.0
    target_atr_mult: float = 2.5
    target_atr_mult_low_risk: float = 3.0

    # SELL exits (fixed percentages)
    sell_target_pct: float = 0.06
    sell_stop_pct: float = 0.04

    weights: SignalWeights = Field(default_factory=SignalWeights)

    @model_validator(mode="after")
    def _validate(self):
        if self.macd_fast >= self.macd_slow:
            raise ValueError(
                f"macd_fast ({self.macd_fast}) must be below macd_slow ({self.macd_slow})"
            )
        if self.sell_threshold >= self.buy_threshold:
            raise ValueError("sell_threshold must be below buy_threshold")
        if self.min_history < 2:
            raise ValueError("min_history must be at least 2")
        return self
