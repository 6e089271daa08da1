"""Position sizing algorithms.

Every method returns a ``PositionSizeResult`` with a whole number of
shares. Degenerate inputs (non-positive price, zero ATR, zero volatility,
no positions) size to 0 shares instead of raising.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

DEFAULT_FRACTIONAL_KELLY = 0.25
KELLY_CAP = 0.5
OPTIMAL_VOLATILITY_BASE_PERCENT = 10
FALLBACK_PERCENT = 5


class SizingMethod(str, Enum):
    FIXED_DOLLAR = "fixed_dollar"
    FIXED_PERCENT = "fixed_percent"
    KELLY = "kelly_criterion"
    ATR_BASED = "atr_based"
    VOLATILITY_ADJUSTED = "volatility_adjusted"
    RISK_PARITY = "risk_parity"
    CONFIDENCE_BASED = "confidence_based"


@dataclass(frozen=True)
class PositionSizeResult:
    """Outcome of one sizing method.

    ``confidence`` is method specific: 100 for deterministic methods, the
    applied percentage or fraction (x100) otherwise.
    """
    shares: int
    dollar_amount: float
    risk_amount: float
    method: SizingMethod
    confidence: float


@dataclass(frozen=True)
class SizingParams:
    """Optional inputs for ``calculate_optimal_size``.

    A method only runs when all of its inputs are set and non-zero.
    """
    risk_percent: float | None = None
    atr: float | None = None
    atr_multiplier: float = 2.0
    win_rate: float | None = None
    avg_win_loss_ratio: float | None = None
    volatility: float | None = None
    confidence: float | None = None


@dataclass(frozen=True)
class HeatPosition:
    symbol: str
    dollar_amount: float
    risk_percent: float


@dataclass(frozen=True)
class PortfolioHeat:
    allowed: bool
    current_risk: float
    new_risk: float
    message: str


def _shares_for(dollars: float, price: float) -> int:
    if price <= 0 or dollars <= 0:
        return 0
    return int(math.floor(dollars / price))


def _sized(
    dollars: float,
    price: float,
    method: SizingMethod,
    confidence: float,
    risk_amount: float = 0.0,
) -> PositionSizeResult:
    shares = _shares_for(dollars, price)
    return PositionSizeResult(
        shares=shares,
        dollar_amount=shares * price,
        risk_amount=risk_amount,
        method=method,
        confidence=confidence,
    )


def fixed_dollar_size(fixed_amount: float, price: float) -> PositionSizeResult:
    return _sized(fixed_amount, price, SizingMethod.FIXED_DOLLAR, 100)


def fixed_percent_size(account_size: float, percent: float, price: float) -> PositionSizeResult:
    return _sized(account_size * percent / 100, price, SizingMethod.FIXED_PERCENT, 100)


def kelly_fraction(
    win_rate: float,
    avg_win_loss_ratio: float,
    fractional_kelly: float = DEFAULT_FRACTIONAL_KELLY,
) -> float:
    """
    Fraction of capital to commit under fractional Kelly.

    f* = (b*p - q) / b, clamped into [0, 0.5] before the fractional
    multiplier is applied. A non-positive payoff ratio gives f* = 0.
    """
    b = avg_win_loss_ratio
    if b <= 0:
        return 0.0

    p = win_rate
    q = 1 - p
    kelly = (b * p - q) / b
    kelly = max(0.0, min(kelly, KELLY_CAP))
    return kelly * fractional_kelly


def kelly_size(
    account_size: float,
    price: float,
    win_rate: float,
    avg_win_loss_ratio: float,
    fractional_kelly: float = DEFAULT_FRACTIONAL_KELLY,
) -> PositionSizeResult:
    """Kelly Criterion sizing; never uses raw Kelly."""
    fraction = kelly_fraction(win_rate, avg_win_loss_ratio, fractional_kelly)
    return _sized(account_size * fraction, price, SizingMethod.KELLY, round(fraction * 100))


def atr_based_size(
    account_size: float,
    risk_percent: float,
    entry_price: float,
    atr: float,
    atr_multiplier: float = 2.0,
) -> PositionSizeResult:
    """
    Fixed risk per trade with a stop ``atr_multiplier`` ATRs away.

    shares = floor(risk_amount / (atr * atr_multiplier))
    """
    risk_amount = account_size * risk_percent / 100
    stop_distance = atr * atr_multiplier
    shares = _shares_for(risk_amount, stop_distance)
    return PositionSizeResult(
        shares=shares,
        dollar_amount=shares * entry_price,
        risk_amount=risk_amount,
        method=SizingMethod.ATR_BASED,
        confidence=100,
    )


def volatility_adjusted_size(
    account_size: float,
    base_percent: float,
    price: float,
    current_volatility: float,
    target_volatility: float = 15,
) -> PositionSizeResult:
    """Scale ``base_percent`` by target/current volatility, clamped to [0.5, 50]%."""
    if current_volatility <= 0:
        return _sized(0, price, SizingMethod.VOLATILITY_ADJUSTED, 0)

    vol_ratio = target_volatility / current_volatility
    percent = max(0.5, min(base_percent * vol_ratio, 50))
    return _sized(
        account_size * percent / 100,
        price,
        SizingMethod.VOLATILITY_ADJUSTED,
        round(vol_ratio * 100),
    )


def risk_parity_size(
    account_size: float,
    price: float,
    stock_volatility: float,
    portfolio_volatility: float,
    num_positions: int,
) -> PositionSizeResult:
    """Equal risk contribution: weight = 1/n * portfolio_vol / stock_vol."""
    if num_positions <= 0 or stock_volatility <= 0:
        return _sized(0, price, SizingMethod.RISK_PARITY, 0)

    weight = (1 / num_positions) * (portfolio_volatility / stock_volatility)
    return _sized(account_size * weight, price, SizingMethod.RISK_PARITY, round(weight * 100))


def confidence_based_size(
    account_size: float,
    price: float,
    confidence: float,
    base_percent: float = 5,
    max_percent: float = 20,
) -> PositionSizeResult:
    """Interpolate between ``base_percent`` and ``max_percent`` by confidence (0-100)."""
    percent = base_percent + (confidence / 100) * (max_percent - base_percent)
    return _sized(
        account_size * percent / 100,
        price,
        SizingMethod.CONFIDENCE_BASED,
        round(percent),
    )


def calculate_optimal_size(
    account_size: float,
    price: float,
    params: SizingParams,
) -> PositionSizeResult:
    """
    Run every method whose inputs are present and keep the smallest size.

    Falls back to fixed 5% of the account when no method applies.
    """
    results: list[PositionSizeResult] = []

    if params.atr and params.risk_percent:
        results.append(
            atr_based_size(
                account_size, params.risk_percent, price, params.atr, params.atr_multiplier
            )
        )

    if params.win_rate and params.avg_win_loss_ratio:
        results.append(
            kelly_size(account_size, price, params.win_rate, params.avg_win_loss_ratio)
        )

    if params.volatility:
        results.append(
            volatility_adjusted_size(
                account_size, OPTIMAL_VOLATILITY_BASE_PERCENT, price, params.volatility
            )
        )

    if params.confidence:
        results.append(confidence_based_size(account_size, price, params.confidence))

    if not results:
        results.append(fixed_percent_size(account_size, FALLBACK_PERCENT, price))

    # First minimum wins on ties
    return min(results, key=lambda r: r.shares)


def check_portfolio_heat(
    existing_positions: Iterable[HeatPosition],
    new_position_risk: float,
    max_portfolio_risk: float = 10,
) -> PortfolioHeat:
    """Reject a new position if total committed risk would exceed the ceiling."""
    current_risk = sum(p.risk_percent for p in existing_positions)
    new_risk = current_risk + new_position_risk
    allowed = new_risk <= max_portfolio_risk

    if allowed:
        message = f"Portfolio heat OK: {new_risk:.2f}% <= {max_portfolio_risk:g}%"
    else:
        message = f"Portfolio heat too high: {new_risk:.2f}% > {max_portfolio_risk:g}%"

    return PortfolioHeat(
        allowed=allowed,
        current_risk=current_risk,
        new_risk=new_risk,
        message=message,
    )
