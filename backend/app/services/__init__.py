"""Stateful services."""

from app.services.portfolio import (
    InsufficientFundsError,
    InsufficientSharesError,
    OrderValidationError,
    PaperTradingPortfolio,
    PortfolioError,
)
from app.services.portfolio_store import PortfolioHandle, PortfolioStore

__all__ = [
    "InsufficientFundsError",
    "InsufficientSharesError",
    "OrderValidationError",
    "PaperTradingPortfolio",
    "PortfolioError",
    "PortfolioHandle",
    "PortfolioStore",
]
