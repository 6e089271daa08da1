"""Volume indicators: volume ratio, VWAP, OBV and Accumulation/Distribution."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from core.indicators.indicators import sma
from core.models.indicators import VolumeSignal, VWAPResult

# Price must clear VWAP by this fraction to count as above/below
VWAP_BAND = 0.002


def calculate_volume_ratio(volumes: Sequence[float], period: int = 20) -> float:
    """Current volume over its ``period`` average (1 when short or average is 0)."""
    if len(volumes) < period:
        return 1.0

    avg_volume = sma(volumes, period)
    if avg_volume == 0:
        return 1.0

    return round(volumes[-1] / avg_volume, 2)


def detect_volume_spike(
    volumes: Sequence[float], threshold: float = 2.0, period: int = 20
) -> bool:
    return calculate_volume_ratio(volumes, period) >= threshold


def get_volume_signal(
    volumes: Sequence[float],
    closes: Sequence[float],
    period: int = 20,
) -> VolumeSignal:
    """
    Combine relative volume with the last price change.

    - ratio >= 2 with price up: breakout (BUY)
    - ratio >= 2 otherwise: breakdown (SELL)
    - ratio > 1.5 with price up: above-average participation (BUY)
    """
    ratio = calculate_volume_ratio(volumes, period)
    price_up = len(closes) >= 2 and closes[-1] > closes[-2]

    if ratio >= 2.0 and price_up:
        return VolumeSignal(
            signal="BUY",
            strength=min((ratio - 1) * 50, 100),
            reason=f"High volume breakout ({ratio:.2f}x avg)",
            volume_ratio=ratio,
        )
    if ratio >= 2.0:
        return VolumeSignal(
            signal="SELL",
            strength=min((ratio - 1) * 50, 100),
            reason=f"High volume breakdown ({ratio:.2f}x avg)",
            volume_ratio=ratio,
        )
    if ratio > 1.5 and price_up:
        return VolumeSignal(
            signal="BUY",
            strength=(ratio - 1) * 50,
            reason=f"Above avg volume ({ratio:.2f}x)",
            volume_ratio=ratio,
        )
    return VolumeSignal(
        signal="HOLD",
        strength=0,
        reason=f"Normal volume ({ratio:.2f}x avg)",
        volume_ratio=ratio,
    )


def calculate_vwap(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    volumes: Sequence[float],
) -> VWAPResult:
    """
    Cumulative VWAP over the whole input window.

    Callers choose the window by slicing. ``distance`` is the percentage
    of the last close from VWAP.
    """
    if len(closes) == 0:
        return VWAPResult()

    typical = (np.asarray(highs, dtype=float) + np.asarray(lows, dtype=float)
               + np.asarray(closes, dtype=float)) / 3
    vol = np.asarray(volumes, dtype=float)

    total_volume = float(vol.sum())
    vwap = float((typical * vol).sum()) / total_volume if total_volume else 0.0

    price = closes[-1]
    distance = (price - vwap) / vwap * 100 if vwap else 0.0

    if price > vwap * (1 + VWAP_BAND):
        position = "above"
    elif price < vwap * (1 - VWAP_BAND):
        position = "below"
    else:
        position = "at"

    return VWAPResult(vwap=round(vwap, 2), signal=position, distance=round(distance, 2))


def calculate_obv(closes: Sequence[float], volumes: Sequence[float]) -> list[float]:
    """On-Balance Volume series, starting at the first volume."""
    if len(closes) == 0:
        return []

    obv = [float(volumes[0])]
    for i in range(1, len(closes)):
        if closes[i] > closes[i - 1]:
            obv.append(obv[-1] + volumes[i])
        elif closes[i] < closes[i - 1]:
            obv.append(obv[-1] - volumes[i])
        else:
            obv.append(obv[-1])
    return obv


def calculate_adl(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    volumes: Sequence[float],
) -> list[float]:
    """Accumulation/Distribution Line; a candle with no range adds nothing."""
    adl: list[float] = []
    total = 0.0
    for high, low, close, volume in zip(highs, lows, closes, volumes):
        if high == low:
            multiplier = 0.0
        else:
            multiplier = ((close - low) - (high - close)) / (high - low)
        total += multiplier * volume
        adl.append(total)
    return adl
