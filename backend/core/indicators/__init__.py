"""Technical indicators (pure math, no I/O)."""

from core.indicators.indicators import (
    ema,
    sma,
    std_dev,
    highest,
    lowest,
    true_range,
    wilder_average,
    wilder_smoothing,
)
from core.indicators.momentum import (
    calculate_rsi,
    calculate_rsi_series,
    get_rsi_signal,
    calculate_macd,
    calculate_macd_series,
    get_macd_signal,
    detect_macd_crossover,
    calculate_stochastic,
    get_stochastic_signal,
    detect_stochastic_crossover,
    detect_stochastic_divergence,
)
from core.indicators.volatility import (
    calculate_bollinger_bands,
    calculate_bollinger_series,
    get_bollinger_signal,
    detect_bollinger_squeeze,
    bandwidth_percentile,
    calculate_atr,
    calculate_atr_series,
    atr_stop_loss,
    atr_position_size,
    detect_volatility_regime,
)
from core.indicators.trend import (
    calculate_adx,
    get_adx_signal,
    detect_di_crossover,
    calculate_supertrend,
    calculate_ichimoku,
    calculate_parabolic_sar,
    calculate_fibonacci,
)
from core.indicators.volume import (
    calculate_volume_ratio,
    detect_volume_spike,
    get_volume_signal,
    calculate_vwap,
    calculate_obv,
    calculate_adl,
)
from core.indicators.calculator import IndicatorCalculator, bollinger_label

__all__ = [
    # Primitives
    "ema",
    "sma",
    "std_dev",
    "highest",
    "lowest",
    "true_range",
    "wilder_average",
    "wilder_smoothing",
    # Momentum
    "calculate_rsi",
    "calculate_rsi_series",
    "get_rsi_signal",
    "calculate_macd",
    "calculate_macd_series",
    "get_macd_signal",
    "detect_macd_crossover",
    "calculate_stochastic",
    "get_stochastic_signal",
    "detect_stochastic_crossover",
    "detect_stochastic_divergence",
    # Volatility
    "calculate_bollinger_bands",
    "calculate_bollinger_series",
    "get_bollinger_signal",
    "detect_bollinger_squeeze",
    "bandwidth_percentile",
    "calculate_atr",
    "calculate_atr_series",
    "atr_stop_loss",
    "atr_position_size",
    "detect_volatility_regime",
    # Trend
    "calculate_adx",
    "get_adx_signal",
    "detect_di_crossover",
    "calculate_supertrend",
    "calculate_ichimoku",
    "calculate_parabolic_sar",
    "calculate_fibonacci",
    # Volume
    "calculate_volume_ratio",
    "detect_volume_spike",
    "get_volume_signal",
    "calculate_vwap",
    "calculate_obv",
    "calculate_adl",
    # Snapshot
    "IndicatorCalculator",
    "bollinger_label",
]
