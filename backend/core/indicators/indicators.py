"""Indicator primitives shared by every technical indicator.

Moving averages, dispersion, true range and Wilder smoothing. All
functions take plain sequences of floats and never mutate them.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np


def _array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=np.float64)


def ema(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate Exponential Moving Average.

    The series is seeded with the first value (no warm-up discard), so the
    output has the same length as the input.

    Args:
        values: Sequence of price values
        period: EMA period

    Returns:
        List of EMA values
    """
    arr = _array(values)
    if arr.size == 0:
        return []

    k = 2.0 / (period + 1)
    result = np.empty_like(arr)
    result[0] = arr[0]
    for i in range(1, arr.size):
        result[i] = arr[i] * k + result[i - 1] * (1 - k)

    return result.tolist()


def sma(values: Sequence[float], period: int) -> float:
    """Simple moving average of the trailing ``period`` values (0 if short)."""
    if period <= 0 or len(values) < period:
        return 0.0
    return float(np.mean(_array(values[-period:])))


def std_dev(values: Sequence[float], mean: float | None = None) -> float:
    """Population standard deviation, optionally around a given mean."""
    arr = _array(values)
    if arr.size == 0:
        return 0.0
    centre = float(np.mean(arr)) if mean is None else mean
    return float(np.sqrt(np.mean((arr - centre) ** 2)))


def highest(values: Sequence[float], period: int) -> float:
    """Highest of the trailing ``period`` values."""
    if len(values) == 0:
        return 0.0
    return float(np.max(_array(values[-period:])))


def lowest(values: Sequence[float], period: int) -> float:
    """Lowest of the trailing ``period`` values."""
    if len(values) == 0:
        return 0.0
    return float(np.min(_array(values[-period:])))


def true_range(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
) -> list[float]:
    """
    Calculate True Range for every candle that has a predecessor.

    TR = max(high - low, abs(high - prev_close), abs(low - prev_close))

    The first candle has no previous close, so the result has
    ``len(closes) - 1`` values.
    """
    n = min(len(highs), len(lows), len(closes))
    if n < 2:
        return []

    h = _array(highs[:n])[1:]
    l = _array(lows[:n])[1:]
    prev_close = _array(closes[:n])[:-1]

    tr = np.maximum(h - l, np.maximum(np.abs(h - prev_close), np.abs(l - prev_close)))
    return tr.tolist()


def wilder_average(values: Sequence[float], period: int) -> float:
    """
    Final value of Wilder's moving average.

    Seeded with the simple average of the first ``period`` values, then
    ``avg = (avg * (period - 1) + value) / period``. Returns 0 if there are
    fewer than ``period`` values.
    """
    if period <= 0 or len(values) < period:
        return 0.0

    avg = sum(values[:period]) / period
    for value in values[period:]:
        avg = (avg * (period - 1) + value) / period
    return avg


def wilder_smoothing(values: Sequence[float], period: int) -> list[float]:
    """
    Wilder's running-sum smoothing (used by directional movement).

    First value is the sum of the first ``period`` values; each subsequent
    value is ``prev - prev / period + value``. Returns an empty list if
    there are fewer than ``period`` values.
    """
    if period <= 0 or len(values) < period:
        return []

    total = float(sum(values[:period]))
    smoothed = [total]
    for value in values[period:]:
        total = total - total / period + value
        smoothed.append(total)
    return smoothed
