"""Backtesting system for the multi-indicator signal generator.

Fully independent of app/ - only depends on core/ for business logic.

Usage:
    python -m backtest --csv data/RELIANCE.csv
"""

from backtest.config import BacktestConfig, PositionSizing
from backtest.engine import (
    BacktestEngine,
    BacktestSignal,
    BacktestSignalType,
    BacktestTrade,
    ExitReason,
    TradeSide,
)
from backtest.runner import BacktestRunner
from backtest.stats import BacktestMetrics, BacktestResult, MetricsCalculator

__all__ = [
    "BacktestConfig",
    "PositionSizing",
    "BacktestEngine",
    "BacktestSignal",
    "BacktestSignalType",
    "BacktestTrade",
    "ExitReason",
    "TradeSide",
    "BacktestRunner",
    "BacktestMetrics",
    "BacktestResult",
    "MetricsCalculator",
]
