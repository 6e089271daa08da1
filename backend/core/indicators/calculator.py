"""One-call computation of every indicator used by the signal generator."""

from __future__ import annotations

from core.indicators.momentum import calculate_macd, calculate_rsi, calculate_stochastic
from core.indicators.trend import (
    calculate_adx,
    calculate_ichimoku,
    calculate_parabolic_sar,
    calculate_supertrend,
)
from core.indicators.volatility import calculate_atr, calculate_bollinger_bands
from core.indicators.volume import calculate_volume_ratio, calculate_vwap
from core.models.config import SignalConfig
from core.models.indicators import BollingerBands, IndicatorSnapshot
from core.models.kline import CandleSeries

BOLLINGER_LOWER_ZONE = 0.2
BOLLINGER_UPPER_ZONE = 0.8


def bollinger_label(bands: BollingerBands) -> str:
    """Human-readable band position used in indicator snapshots."""
    if bands.percent_b < BOLLINGER_LOWER_ZONE:
        return "Near Lower Band - Buy Signal"
    if bands.percent_b > BOLLINGER_UPPER_ZONE:
        return "Near Upper Band - Sell Signal"
    return "Neutral"


class IndicatorCalculator:
    """Calculator for all technical indicators needed by the signal generator.

    Periods and multipliers come from ``SignalConfig`` so the calculator and
    the generator always agree on them.
    """

    def __init__(self, config: SignalConfig | None = None):
        self.config = config or SignalConfig()

    def calculate(self, series: CandleSeries) -> IndicatorSnapshot:
        """
        Calculate every indicator for the latest bar of ``series``.

        Short series are fine: each indicator falls back to its neutral
        value.
        """
        cfg = self.config
        highs, lows, closes, volumes = series.highs, series.lows, series.closes, series.volumes

        bollinger = calculate_bollinger_bands(closes, cfg.bollinger_period, cfg.bollinger_std)

        return IndicatorSnapshot(
            rsi=calculate_rsi(closes, cfg.rsi_period),
            macd=calculate_macd(closes, cfg.macd_fast, cfg.macd_slow, cfg.macd_signal),
            volume_ratio=calculate_volume_ratio(volumes, cfg.volume_period),
            bollinger=bollinger,
            bollinger_signal=bollinger_label(bollinger),
            adx=calculate_adx(highs, lows, closes, cfg.adx_period),
            atr=calculate_atr(highs, lows, closes, cfg.atr_period),
            stochastic=calculate_stochastic(
                highs, lows, closes, cfg.stochastic_k, cfg.stochastic_d
            ),
            vwap=calculate_vwap(highs, lows, closes, volumes),
            supertrend=calculate_supertrend(
                highs, lows, closes, cfg.supertrend_period, cfg.supertrend_multiplier
            ),
            ichimoku=calculate_ichimoku(highs, lows, closes),
            parabolic_sar=calculate_parabolic_sar(
                highs, lows, closes, cfg.sar_acceleration, cfg.sar_maximum
            ),
        )
