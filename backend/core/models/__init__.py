"""Data models."""

from core.models.kline import Candle, CandleSeries
from core.models.indicators import (
    ADXResult,
    ATRResult,
    BollingerBands,
    FibonacciLevels,
    IchimokuResult,
    IndicatorSnapshot,
    IndicatorVote,
    MACDResult,
    ParabolicSARResult,
    StochasticResult,
    SuperTrendResult,
    VolumeSignal,
    VWAPResult,
)
from core.models.signal import (
    Analysis,
    PositionSizeTier,
    Recommendation,
    RiskBreakdown,
    RiskLevel,
    RiskRecommendation,
    RiskScore,
    Signal,
    SignalType,
)
from core.models.config import SignalConfig, SignalWeights
from core.models.trading import (
    ClosedTrade,
    Fill,
    Order,
    OrderSide,
    OrderStatus,
    OrderType,
    PortfolioPerformance,
    PortfolioState,
    Position,
    generate_order_id,
)

__all__ = [
    # Market data
    "Candle",
    "CandleSeries",
    # Indicator results
    "ADXResult",
    "ATRResult",
    "BollingerBands",
    "FibonacciLevels",
    "IchimokuResult",
    "IndicatorSnapshot",
    "IndicatorVote",
    "MACDResult",
    "ParabolicSARResult",
    "StochasticResult",
    "SuperTrendResult",
    "VolumeSignal",
    "VWAPResult",
    # Signals
    "Analysis",
    "PositionSizeTier",
    "Recommendation",
    "RiskBreakdown",
    "RiskLevel",
    "RiskRecommendation",
    "RiskScore",
    "Signal",
    "SignalType",
    "SignalConfig",
    "SignalWeights",
    # Paper trading
    "ClosedTrade",
    "Fill",
    "Order",
    "OrderSide",
    "OrderStatus",
    "OrderType",
    "PortfolioPerformance",
    "PortfolioState",
    "Position",
    "generate_order_id",
]
