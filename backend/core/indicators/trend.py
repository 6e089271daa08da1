"""Trend indicators: ADX, SuperTrend, Ichimoku Cloud, Parabolic SAR, Fibonacci."""

from __future__ import annotations

from typing import Literal, Sequence

from core.indicators.indicators import (
    highest,
    lowest,
    true_range,
    wilder_average,
    wilder_smoothing,
)
from core.models.indicators import (
    ADXResult,
    FibonacciLevels,
    IchimokuResult,
    IndicatorVote,
    ParabolicSARResult,
    SuperTrendResult,
    TrendStrength,
)

FIBONACCI_RATIOS = (0.0, 0.236, 0.382, 0.5, 0.618, 0.786, 1.0)

ICHIMOKU_TENKAN = 9
ICHIMOKU_KIJUN = 26
ICHIMOKU_SENKOU_B = 52


# =============================================================================
# ADX
# =============================================================================

def _directional_movement(
    highs: Sequence[float], lows: Sequence[float]
) -> tuple[list[float], list[float]]:
    plus_dm: list[float] = []
    minus_dm: list[float] = []

    for i in range(1, len(highs)):
        up_move = highs[i] - highs[i - 1]
        down_move = lows[i - 1] - lows[i]

        if up_move > down_move and up_move > 0:
            plus_dm.append(up_move)
            minus_dm.append(0.0)
        elif down_move > up_move and down_move > 0:
            plus_dm.append(0.0)
            minus_dm.append(down_move)
        else:
            plus_dm.append(0.0)
            minus_dm.append(0.0)

    return plus_dm, minus_dm


def _trend_strength(adx: float) -> TrendStrength:
    if adx < 20:
        return "weak"
    if adx < 30:
        return "moderate"
    if adx < 50:
        return "strong"
    return "very_strong"


def calculate_adx(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 14,
) -> ADXResult:
    """
    Calculate the Average Directional Index.

    ADX measures trend strength, not direction; +DI/-DI give the direction.

    - ADX > 25: strong trend
    - ADX < 20: weak trend / ranging market

    Returns the neutral result (zeros, weak, neutral) with fewer than
    ``2 * period`` candles.
    """
    n = min(len(highs), len(lows), len(closes))
    if n < period * 2:
        return ADXResult()

    plus_dm, minus_dm = _directional_movement(highs[:n], lows[:n])
    ranges = true_range(highs[:n], lows[:n], closes[:n])

    smoothed_plus = wilder_smoothing(plus_dm, period)
    smoothed_minus = wilder_smoothing(minus_dm, period)
    smoothed_tr = wilder_smoothing(ranges, period)

    plus_di: list[float] = []
    minus_di: list[float] = []
    for sp, sm, st in zip(smoothed_plus, smoothed_minus, smoothed_tr):
        plus_di.append(sp / st * 100 if st else 0.0)
        minus_di.append(sm / st * 100 if st else 0.0)

    dx = []
    for p, m in zip(plus_di, minus_di):
        total = p + m
        dx.append(abs(p - m) / total * 100 if total else 0.0)

    adx = wilder_average(dx, period)
    current_plus = plus_di[-1]
    current_minus = minus_di[-1]

    if current_plus > current_minus:
        bias = "bullish"
    elif current_minus > current_plus:
        bias = "bearish"
    else:
        bias = "neutral"

    return ADXResult(
        adx=round(adx, 2),
        plus_di=round(current_plus, 2),
        minus_di=round(current_minus, 2),
        trend_strength=_trend_strength(adx),
        signal=bias,
    )


def get_adx_signal(adx: ADXResult) -> IndicatorVote:
    """Vote BUY/SELL only for a strong trend with a dominant DI above 25."""
    value, plus_di, minus_di = adx.adx, adx.plus_di, adx.minus_di

    if value > 25 and plus_di > minus_di and plus_di > 25:
        return IndicatorVote(
            signal="BUY",
            strength=min(value, 100),
            reason=f"Strong {adx.trend_strength} uptrend (ADX: {value}, +DI: {plus_di})",
        )
    if value > 25 and minus_di > plus_di and minus_di > 25:
        return IndicatorVote(
            signal="SELL",
            strength=min(value, 100),
            reason=f"Strong {adx.trend_strength} downtrend (ADX: {value}, -DI: {minus_di})",
        )
    if value < 20:
        return IndicatorVote(
            signal="HOLD",
            strength=0,
            reason=f"Weak trend/ranging market (ADX: {value}) - wait for breakout",
        )
    return IndicatorVote(
        signal="HOLD",
        strength=0,
        reason=f"Trend present but no clear direction (ADX: {value})",
    )


def detect_di_crossover(
    current: ADXResult, previous: ADXResult
) -> Literal["bullish", "bearish"] | None:
    """Detect +DI crossing -DI between two bars."""
    if current.plus_di > current.minus_di and previous.plus_di <= previous.minus_di:
        return "bullish"
    if current.minus_di > current.plus_di and previous.minus_di <= previous.plus_di:
        return "bearish"
    return None


# =============================================================================
# SuperTrend
# =============================================================================

def calculate_supertrend(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 10,
    multiplier: float = 3.0,
) -> SuperTrendResult:
    """
    ATR bands around the last candle's HL2.

    Direction is "up" when the close breaks above the upper band; the
    reported line is then the lower band, otherwise the upper band.
    """
    if len(closes) < period + 1:
        return SuperTrendResult()

    atr = wilder_average(true_range(highs, lows, closes), period)

    hl2 = (highs[-1] + lows[-1]) / 2
    upper_band = hl2 + multiplier * atr
    lower_band = hl2 - multiplier * atr

    price = closes[-1]
    direction = "up" if price > upper_band else "down"
    line = lower_band if direction == "up" else upper_band

    if price > line and direction == "up":
        vote = "BUY"
    elif price < line and direction == "down":
        vote = "SELL"
    else:
        vote = "HOLD"

    return SuperTrendResult(supertrend=round(line, 2), direction=direction, signal=vote)


# =============================================================================
# Ichimoku Cloud
# =============================================================================

def _midpoint(highs: Sequence[float], lows: Sequence[float], period: int) -> float:
    return (highest(highs, period) + lowest(lows, period)) / 2


def calculate_ichimoku(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
) -> IchimokuResult:
    """
    Calculate the Ichimoku Cloud with the standard 9/26/52 periods.

    Bullish when price is above both spans and Tenkan is above Kijun,
    bearish when price is below both spans and Tenkan is below Kijun.
    """
    if len(closes) < ICHIMOKU_SENKOU_B:
        return IchimokuResult()

    tenkan = _midpoint(highs, lows, ICHIMOKU_TENKAN)
    kijun = _midpoint(highs, lows, ICHIMOKU_KIJUN)
    senkou_a = (tenkan + kijun) / 2
    senkou_b = _midpoint(highs, lows, ICHIMOKU_SENKOU_B)
    chikou = closes[-ICHIMOKU_KIJUN]

    price = closes[-1]
    if price > max(senkou_a, senkou_b) and tenkan > kijun:
        bias = "bullish"
    elif price < min(senkou_a, senkou_b) and tenkan < kijun:
        bias = "bearish"
    else:
        bias = "neutral"

    return IchimokuResult(
        tenkan=round(tenkan, 2),
        kijun=round(kijun, 2),
        senkou_a=round(senkou_a, 2),
        senkou_b=round(senkou_b, 2),
        chikou=round(chikou, 2),
        signal=bias,
        cloud_thickness=round(abs(senkou_a - senkou_b), 2),
    )


# =============================================================================
# Parabolic SAR
# =============================================================================

def calculate_parabolic_sar(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    acceleration: float = 0.02,
    maximum: float = 0.2,
) -> ParabolicSARResult:
    """
    Calculate Parabolic SAR (stop and reverse).

    The initial trend comes from the first two closes. Each step moves the
    SAR toward the extreme point by the acceleration factor; a breach of
    the SAR reverses the trend and resets the factor.
    """
    if len(closes) < 2:
        return ParabolicSARResult()

    trend = "up" if closes[1] > closes[0] else "down"
    sar = lows[0] if trend == "up" else highs[0]
    ep = highs[1] if trend == "up" else lows[1]
    af = acceleration

    for i in range(2, len(closes)):
        sar = sar + af * (ep - sar)

        if trend == "up":
            if lows[i] < sar:
                trend = "down"
                sar = ep
                ep = lows[i]
                af = acceleration
            elif highs[i] > ep:
                ep = highs[i]
                af = min(af + acceleration, maximum)
        else:
            if highs[i] > sar:
                trend = "up"
                sar = ep
                ep = highs[i]
                af = acceleration
            elif lows[i] < ep:
                ep = lows[i]
                af = min(af + acceleration, maximum)

    price = closes[-1]
    if trend == "up" and price > sar:
        vote = "BUY"
    elif trend == "down" and price < sar:
        vote = "SELL"
    else:
        vote = "HOLD"

    return ParabolicSARResult(sar=round(sar, 2), trend=trend, signal=vote)


# =============================================================================
# Fibonacci
# =============================================================================

def calculate_fibonacci(closes: Sequence[float], lookback: int = 50) -> FibonacciLevels:
    """Retracement levels from the high down to the low of the lookback."""
    if len(closes) == 0:
        return FibonacciLevels(high=0.0, low=0.0, levels={})

    high = highest(closes, lookback)
    low = lowest(closes, lookback)
    span = high - low

    levels = {f"{ratio * 100:.1f}%": round(high - span * ratio, 2) for ratio in FIBONACCI_RATIOS}
    return FibonacciLevels(high=high, low=low, levels=levels)
