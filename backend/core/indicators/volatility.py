"""Volatility indicators: Bollinger Bands and Average True Range."""

from __future__ import annotations

from typing import Literal, Sequence

from core.indicators.indicators import sma, std_dev, true_range, wilder_average
from core.models.indicators import (
    ATRResult,
    BollingerBands,
    IndicatorVote,
    VolatilityRegime,
)


# =============================================================================
# Bollinger Bands
# =============================================================================

def calculate_bollinger_bands(
    closes: Sequence[float],
    period: int = 20,
    std_multiplier: float = 2.0,
) -> BollingerBands:
    """
    Calculate Bollinger Bands around the ``period`` SMA.

    - percent_b: (price - lower) / (upper - lower), 0.5 when bands collapse
    - bandwidth: (upper - lower) / middle * 100, 0 when middle is 0

    Returns the neutral result (zeros, percent_b 0.5) with fewer than
    ``period`` closes.
    """
    if len(closes) < period:
        return BollingerBands()

    current_price = closes[-1]
    middle = sma(closes, period)
    deviation = std_dev(closes[-period:], middle)

    upper = middle + std_multiplier * deviation
    lower = middle - std_multiplier * deviation
    width = upper - lower

    percent_b = (current_price - lower) / width if width != 0 else 0.5
    bandwidth = width / middle * 100 if middle != 0 else 0.0

    return BollingerBands(
        upper=round(upper, 2),
        middle=round(middle, 2),
        lower=round(lower, 2),
        percent_b=round(percent_b, 3),
        bandwidth=round(bandwidth, 2),
    )


def calculate_bollinger_series(
    closes: Sequence[float],
    period: int = 20,
    std_multiplier: float = 2.0,
) -> list[BollingerBands]:
    """Bands for every prefix ending at index ``period - 1`` onwards."""
    return [
        calculate_bollinger_bands(closes[: i + 1], period, std_multiplier)
        for i in range(period - 1, len(closes))
    ]


def get_bollinger_signal(bands: BollingerBands) -> IndicatorVote:
    pct = bands.percent_b * 100
    squeeze = bands.bandwidth < 10

    if bands.percent_b < 0.2:
        return IndicatorVote(
            signal="BUY",
            strength=(0.2 - bands.percent_b) * 500,
            reason=(
                f"Price near lower Bollinger Band (%B: {pct:.0f}%) - Oversold"
                + (", Squeeze detected" if squeeze else "")
            ),
        )
    if bands.percent_b > 0.8:
        return IndicatorVote(
            signal="SELL",
            strength=(bands.percent_b - 0.8) * 500,
            reason=(
                f"Price near upper Bollinger Band (%B: {pct:.0f}%) - Overbought"
                + (", Squeeze detected" if squeeze else "")
            ),
        )
    return IndicatorVote(
        signal="HOLD",
        strength=0,
        reason=(
            f"Price in middle Bollinger Band (%B: {pct:.0f}%) - Neutral"
            + (", Potential breakout soon" if squeeze else "")
        ),
    )


def detect_bollinger_squeeze(
    bands: Sequence[BollingerBands], lookback: int = 20
) -> bool:
    """True if the latest bandwidth is in the lowest 20% of the lookback."""
    if len(bands) < lookback:
        return False

    recent = sorted(b.bandwidth for b in bands[-lookback:])
    threshold = recent[int(len(recent) * 0.2)]
    return bands[-1].bandwidth <= threshold


def bandwidth_percentile(current: float, history: Sequence[float]) -> float:
    """Percentage of historical bandwidths strictly below ``current``."""
    if not history:
        return 50.0
    below = sum(1 for b in history if b < current)
    return below / len(history) * 100


# =============================================================================
# ATR
# =============================================================================

def calculate_atr(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 14,
) -> ATRResult:
    """
    Calculate Average True Range with Wilder's smoothing.

    Returns zeros with fewer than ``period + 1`` candles.
    """
    if min(len(highs), len(lows), len(closes)) < period + 1:
        return ATRResult()

    ranges = true_range(highs, lows, closes)
    atr = wilder_average(ranges, period)
    current_price = closes[-1]
    atr_percent = atr / current_price * 100 if current_price else 0.0

    return ATRResult(
        atr=round(atr, 2),
        tr=round(ranges[-1], 2),
        atr_percent=round(atr_percent, 2),
    )


def calculate_atr_series(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 14,
) -> list[ATRResult]:
    return [
        calculate_atr(highs[: i + 1], lows[: i + 1], closes[: i + 1], period)
        for i in range(period, len(closes))
    ]


def atr_stop_loss(
    entry_price: float,
    atr: float,
    multiplier: float = 2.0,
    direction: Literal["long", "short"] = "long",
) -> float:
    """Stop placed ``multiplier`` ATRs against the trade direction."""
    distance = atr * multiplier
    if direction == "long":
        return round(entry_price - distance, 2)
    return round(entry_price + distance, 2)


def atr_position_size(
    account_size: float,
    risk_percent: float,
    entry_price: float,
    atr: float,
    multiplier: float = 2.0,
) -> int:
    """Shares such that a stop ``multiplier`` ATRs away risks ``risk_percent``."""
    stop_distance = atr * multiplier
    if stop_distance <= 0:
        return 0
    risk_amount = account_size * (risk_percent / 100)
    return int(risk_amount // stop_distance)


def detect_volatility_regime(atr_percent: float) -> VolatilityRegime:
    if atr_percent < 1.5:
        return "low"
    if atr_percent < 3:
        return "normal"
    if atr_percent < 5:
        return "high"
    return "extreme"
