"""Composite risk scoring and portfolio risk statistics.

The risk score combines three capped sub-scores over a trailing window:

- volatility risk (0-40): coefficient of variation of closes, x4
- volume risk (0-30): distance of current volume from its average, x30
- price risk (0-30): distance of price from its moving average in %, x3
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from core.indicators.indicators import std_dev
from core.models.signal import (
    PositionSizeTier,
    RiskBreakdown,
    RiskLevel,
    RiskRecommendation,
    RiskScore,
)

VOLATILITY_RISK_CAP = 40.0
VOLUME_RISK_CAP = 30.0
PRICE_RISK_CAP = 30.0

DEFAULT_RISK_SCORE = RiskScore(
    score=50.0,
    level=RiskLevel.MEDIUM,
    volatility=0.0,
    volume_ratio=1.0,
    price_deviation=0.0,
)


def risk_level_for(score: float) -> RiskLevel:
    if score < 30:
        return RiskLevel.LOW
    if score < 60:
        return RiskLevel.MEDIUM
    if score < 80:
        return RiskLevel.HIGH
    return RiskLevel.EXTREME


def calculate_risk_score(
    closes: Sequence[float],
    volumes: Sequence[float],
    period: int = 20,
) -> RiskScore:
    """
    Score how risky the instrument currently looks (0 = calm, 100 = extreme).

    Returns a MEDIUM/50 default when fewer than ``period`` samples exist.
    A zero mean price gives zero volatility and price risk; a zero average
    volume gives a volume ratio of 1.
    """
    if len(closes) < period or len(volumes) < period:
        return DEFAULT_RISK_SCORE

    recent_prices = np.asarray(closes[-period:], dtype=float)
    mean = float(recent_prices.mean())
    deviation = std_dev(recent_prices, mean)
    volatility = deviation / mean * 100 if mean else 0.0
    volatility_risk = min(volatility * 4, VOLATILITY_RISK_CAP)

    avg_volume = float(np.mean(volumes[-period:]))
    volume_ratio = volumes[-1] / avg_volume if avg_volume else 1.0
    volume_risk = min(abs(volume_ratio - 1) * 30, VOLUME_RISK_CAP)

    price = closes[-1]
    price_deviation = abs((price - mean) / mean) * 100 if mean else 0.0
    price_risk = min(price_deviation * 3, PRICE_RISK_CAP)

    score = min(100.0, volatility_risk + volume_risk + price_risk)

    return RiskScore(
        score=round(score, 2),
        level=risk_level_for(score),
        volatility=round(volatility, 2),
        volume_ratio=round(volume_ratio, 2),
        price_deviation=round(price_deviation, 2),
        breakdown=RiskBreakdown(
            volatility_risk=round(volatility_risk, 2),
            volume_risk=round(volume_risk, 2),
            price_risk=round(price_risk, 2),
        ),
    )


def calculate_beta(
    stock_returns: Sequence[float], market_returns: Sequence[float]
) -> float:
    """Beta of stock returns against market returns (1 when undefined)."""
    if len(stock_returns) != len(market_returns) or len(stock_returns) == 0:
        return 1.0

    stock = np.asarray(stock_returns, dtype=float)
    market = np.asarray(market_returns, dtype=float)

    covariance = float(np.mean((stock - stock.mean()) * (market - market.mean())))
    market_variance = float(np.var(market))
    if market_variance == 0:
        return 1.0

    return round(covariance / market_variance, 2)


def calculate_sharpe_ratio(returns: Sequence[float], risk_free_rate: float = 0.05) -> float:
    """Per-period Sharpe ratio, not annualised."""
    if len(returns) == 0:
        return 0.0

    deviation = std_dev(returns)
    if deviation == 0:
        return 0.0

    avg_return = float(np.mean(returns))
    return round((avg_return - risk_free_rate) / deviation, 2)


def calculate_max_drawdown(prices: Sequence[float]) -> float:
    """Largest peak-to-trough decline, in percent of the peak."""
    if len(prices) == 0:
        return 0.0

    peak = prices[0]
    max_drawdown = 0.0
    for price in prices[1:]:
        if price > peak:
            peak = price
        if peak > 0:
            max_drawdown = max(max_drawdown, (peak - price) / peak * 100)

    return round(max_drawdown, 2)


def calculate_var(returns: Sequence[float], confidence_level: float = 0.95) -> float:
    """Historical Value at Risk as a positive loss magnitude."""
    if len(returns) == 0:
        return 0.0

    ordered = sorted(returns)
    index = int((1 - confidence_level) * len(ordered))
    return round(abs(ordered[index]), 2)


def get_risk_recommendation(risk: RiskScore) -> RiskRecommendation:
    if risk.level == RiskLevel.LOW:
        return RiskRecommendation(
            recommendation="Low risk stock suitable for conservative investors",
            position_size=PositionSizeTier.LARGE,
            stop_loss_percent=3,
        )
    if risk.level == RiskLevel.MEDIUM:
        return RiskRecommendation(
            recommendation="Moderate risk - suitable for balanced portfolios",
            position_size=PositionSizeTier.MEDIUM,
            stop_loss_percent=5,
        )
    if risk.level == RiskLevel.HIGH:
        return RiskRecommendation(
            recommendation="High risk - only for aggressive traders",
            position_size=PositionSizeTier.SMALL,
            stop_loss_percent=7,
        )
    return RiskRecommendation(
        recommendation="Extreme risk - avoid or trade with caution",
        position_size=PositionSizeTier.SMALL,
        stop_loss_percent=10,
    )
