"""Momentum oscillators: RSI, MACD and Stochastic."""

from __future__ import annotations

from typing import Literal, Sequence

from core.indicators.indicators import ema, highest, lowest
from core.models.indicators import IndicatorVote, MACDResult, StochasticResult

Crossover = Literal["bullish", "bearish"]


# =============================================================================
# RSI
# =============================================================================

def calculate_rsi(closes: Sequence[float], period: int = 14) -> float:
    """
    Calculate Relative Strength Index with Wilder's smoothing.

    Interpretation:
    - RSI > 70: Overbought
    - RSI < 30: Oversold

    Returns 50 (neutral) with fewer than ``period + 1`` closes, and 100 when
    the smoothed average loss is exactly zero.
    """
    if len(closes) < period + 1:
        return 50.0

    gains = 0.0
    losses = 0.0
    for i in range(1, period + 1):
        change = closes[i] - closes[i - 1]
        if change > 0:
            gains += change
        else:
            losses -= change

    avg_gain = gains / period
    avg_loss = losses / period

    for i in range(period + 1, len(closes)):
        change = closes[i] - closes[i - 1]
        gain = change if change > 0 else 0.0
        loss = -change if change < 0 else 0.0
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return round(100 - 100 / (1 + rs), 2)


def calculate_rsi_series(closes: Sequence[float], period: int = 14) -> list[float]:
    """RSI for every prefix ending at index ``period`` onwards."""
    return [calculate_rsi(closes[: i + 1], period) for i in range(period, len(closes))]


def get_rsi_signal(rsi: float) -> IndicatorVote:
    if rsi < 30:
        return IndicatorVote(
            signal="BUY",
            strength=(30 - rsi) / 30 * 100,
            reason=f"RSI oversold at {rsi:.2f}",
        )
    if rsi > 70:
        return IndicatorVote(
            signal="SELL",
            strength=(rsi - 70) / 30 * 100,
            reason=f"RSI overbought at {rsi:.2f}",
        )
    return IndicatorVote(signal="HOLD", strength=0, reason=f"RSI neutral at {rsi:.2f}")


# =============================================================================
# MACD
# =============================================================================

def calculate_macd(
    closes: Sequence[float],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> MACDResult:
    """
    Calculate MACD: EMA(fast) - EMA(slow), its signal line and histogram.

    Returns an all-zero result when there are fewer than ``slow_period``
    closes.
    """
    if len(closes) < slow_period:
        return MACDResult()

    fast = ema(closes, fast_period)
    slow = ema(closes, slow_period)
    macd_values = [f - s for f, s in zip(fast, slow)]
    signal_line = ema(macd_values, signal_period)

    macd_line = macd_values[-1]
    signal = signal_line[-1]

    return MACDResult(
        macd=round(macd_line, 2),
        signal=round(signal, 2),
        histogram=round(macd_line - signal, 2),
    )


def calculate_macd_series(
    closes: Sequence[float],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> list[MACDResult]:
    """MACD value at every index of the input."""
    fast = ema(closes, fast_period)
    slow = ema(closes, slow_period)
    macd_values = [f - s for f, s in zip(fast, slow)]
    signal_line = ema(macd_values, signal_period)

    return [
        MACDResult(macd=round(m, 2), signal=round(s, 2), histogram=round(m - s, 2))
        for m, s in zip(macd_values, signal_line)
    ]


def get_macd_signal(macd: MACDResult) -> IndicatorVote:
    if macd.macd > macd.signal and macd.histogram > 0:
        return IndicatorVote(
            signal="BUY",
            strength=min(abs(macd.histogram) * 10, 100),
            reason=f"MACD bullish crossover ({macd.histogram:.2f})",
        )
    if macd.macd < macd.signal and macd.histogram < 0:
        return IndicatorVote(
            signal="SELL",
            strength=min(abs(macd.histogram) * 10, 100),
            reason=f"MACD bearish crossover ({macd.histogram:.2f})",
        )
    return IndicatorVote(
        signal="HOLD", strength=0, reason=f"MACD neutral ({macd.histogram:.2f})"
    )


def detect_macd_crossover(current: MACDResult, previous: MACDResult) -> Crossover | None:
    """Detect the MACD line crossing its signal line between two bars."""
    if current.macd > current.signal and previous.macd <= previous.signal:
        return "bullish"
    if current.macd < current.signal and previous.macd >= previous.signal:
        return "bearish"
    return None


# =============================================================================
# Stochastic
# =============================================================================

def calculate_stochastic(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    k_period: int = 14,
    d_period: int = 3,
) -> StochasticResult:
    """
    Calculate the Stochastic Oscillator.

    %K = (close - lowest low) / (highest high - lowest low) * 100
    %D = SMA(%K, d_period)

    Returns 50/50 neutral with fewer than ``k_period + d_period`` closes.
    A window with no range (highest == lowest) gives %K = 50.
    """
    if len(closes) < k_period + d_period:
        return StochasticResult()

    k_values = _stochastic_k_values(highs, lows, closes, k_period)

    d_values = [
        sum(k_values[i - d_period + 1 : i + 1]) / d_period
        for i in range(d_period - 1, len(k_values))
    ]

    current_k = k_values[-1]
    current_d = d_values[-1]

    if current_k > 80 and current_d > 80:
        zone = "overbought"
    elif current_k < 20 and current_d < 20:
        zone = "oversold"
    else:
        zone = "neutral"

    return StochasticResult(k=round(current_k, 2), d=round(current_d, 2), signal=zone)


def _stochastic_k_values(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    k_period: int,
) -> list[float]:
    k_values = []
    for i in range(k_period - 1, len(closes)):
        hh = highest(highs[i - k_period + 1 : i + 1], k_period)
        ll = lowest(lows[i - k_period + 1 : i + 1], k_period)
        if hh == ll:
            k_values.append(50.0)
        else:
            k_values.append((closes[i] - ll) / (hh - ll) * 100)
    return k_values


def get_stochastic_signal(stoch: StochasticResult) -> IndicatorVote:
    k, d = stoch.k, stoch.d

    if stoch.signal == "oversold" and k > d:
        return IndicatorVote(
            signal="BUY",
            strength=(20 - min(k, d)) * 5,
            reason=f"Oversold crossover (%K: {k}, %D: {d}) - reversal likely",
        )
    if stoch.signal == "overbought" and k < d:
        return IndicatorVote(
            signal="SELL",
            strength=(max(k, d) - 80) * 5,
            reason=f"Overbought crossover (%K: {k}, %D: {d}) - correction likely",
        )
    if stoch.signal == "oversold":
        return IndicatorVote(
            signal="BUY",
            strength=30,
            reason=f"Oversold condition (%K: {k}) - watch for reversal",
        )
    if stoch.signal == "overbought":
        return IndicatorVote(
            signal="SELL",
            strength=30,
            reason=f"Overbought condition (%K: {k}) - watch for pullback",
        )
    return IndicatorVote(
        signal="HOLD", strength=0, reason=f"Neutral zone (%K: {k}, %D: {d})"
    )


def detect_stochastic_crossover(
    current: StochasticResult, previous: StochasticResult
) -> Crossover | None:
    if current.k > current.d and previous.k <= previous.d:
        return "bullish"
    if current.k < current.d and previous.k >= previous.d:
        return "bearish"
    return None


def detect_stochastic_divergence(
    closes: Sequence[float],
    stoch_values: Sequence[StochasticResult],
    lookback: int = 14,
) -> Crossover | None:
    """
    Compare price and %K direction over the last ``lookback`` bars.

    Lower price with higher %K is a bullish divergence; higher price with
    lower %K is bearish.
    """
    if len(closes) < lookback or len(stoch_values) < lookback:
        return None

    price_start, price_end = closes[-lookback], closes[-1]
    stoch_start, stoch_end = stoch_values[-lookback].k, stoch_values[-1].k

    if price_end < price_start and stoch_end > stoch_start:
        return "bullish"
    if price_end > price_start and stoch_end < stoch_start:
        return "bearish"
    return None
