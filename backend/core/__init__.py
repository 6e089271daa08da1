"""Core analysis logic: indicators, risk scoring, signals and position sizing.

This package is pure computation with no I/O. It is shared by the
backtesting system (backtest/) and the paper-trading services (app/).
"""
