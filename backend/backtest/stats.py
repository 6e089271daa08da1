"""Statistics calculator for backtest results.

Computes trade statistics, returns, drawdown and risk-adjusted ratios
from a trade ledger and an equity curve. Ratios are annualised with 252
trading periods per year.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from backtest.engine import BacktestTrade

TRADING_DAYS_PER_YEAR = 252


@dataclass
class BacktestMetrics:
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    profit_factor: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    avg_win_loss_ratio: float = 0.0
    max_consecutive_wins: int = 0
    max_consecutive_losses: int = 0
    total_return: float = 0.0
    total_return_percent: float = 0.0
    cagr: float = 0.0
    max_drawdown: float = 0.0
    max_drawdown_percent: float = 0.0
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0
    calmar_ratio: float = 0.0
    expectancy: float = 0.0


@dataclass
class BacktestResult:
    """Complete backtest results.

    ``equity`` starts with the initial capital, so it holds one more
    value than ``dates``.
    """

    trades: list[BacktestTrade] = field(default_factory=list)
    equity: list[float] = field(default_factory=list)
    dates: list[datetime] = field(default_factory=list)
    metrics: BacktestMetrics = field(default_factory=BacktestMetrics)

    @property
    def final_equity(self) -> float:
        return self.equity[-1] if self.equity else 0.0


def longest_streaks(pnls: list[float]) -> tuple[int, int]:
    """Longest run of winning and of non-winning trades."""
    max_wins = max_losses = 0
    streak = 0
    last_win: bool | None = None

    for pnl in pnls:
        is_win = pnl > 0
        streak = streak + 1 if is_win == last_win else 1
        last_win = is_win
        if is_win:
            max_wins = max(max_wins, streak)
        else:
            max_losses = max(max_losses, streak)

    return max_wins, max_losses


def max_drawdown(equity: list[float]) -> tuple[float, float]:
    """Largest peak-to-trough fall, as an amount and as % of that peak."""
    if not equity:
        return 0.0, 0.0

    peak = equity[0]
    worst = 0.0
    worst_percent = 0.0
    for value in equity:
        peak = max(peak, value)
        drawdown = peak - value
        if drawdown > worst:
            worst = drawdown
        if peak > 0:
            worst_percent = max(worst_percent, drawdown / peak * 100)
    return worst, worst_percent


def period_returns(equity: list[float]) -> np.ndarray:
    """Simple returns between consecutive equity points."""
    values = np.asarray(equity, dtype=float)
    if values.size < 2:
        return np.empty(0)
    prev = values[:-1]
    safe_prev = np.where(prev == 0, 1.0, prev)
    return np.where(prev == 0, 0.0, (values[1:] - prev) / safe_prev)


class MetricsCalculator:
    """Calculate performance metrics for a finished run."""

    def calculate(
        self,
        trades: list[BacktestTrade],
        equity: list[float],
        dates: list[datetime],
        initial_capital: float,
    ) -> BacktestResult:
        return BacktestResult(
            trades=trades,
            equity=equity,
            dates=dates,
            metrics=self.metrics(trades, equity, len(dates), initial_capital),
        )

    def metrics(
        self,
        trades: list[BacktestTrade],
        equity: list[float],
        periods: int,
        initial_capital: float,
    ) -> BacktestMetrics:
        wins = [t.pnl for t in trades if t.pnl > 0]
        losses = [t.pnl for t in trades if t.pnl < 0]
        gross_profit = sum(wins)
        gross_loss = abs(sum(losses))

        avg_win = gross_profit / len(wins) if wins else 0.0
        avg_loss = gross_loss / len(losses) if losses else 0.0
        win_loss_ratio = avg_win / avg_loss if wins and losses and avg_loss else 0.0

        final_equity = equity[-1] if equity else initial_capital
        total_return = final_equity - initial_capital
        total_return_percent = total_return / initial_capital * 100

        drawdown, drawdown_percent = max_drawdown(equity)
        sharpe, sortino = self._ratios(period_returns(equity))

        years = periods / TRADING_DAYS_PER_YEAR
        if years == 0:
            cagr = 0.0
        elif final_equity <= 0:
            cagr = -100.0
        else:
            cagr = (math.pow(final_equity / initial_capital, 1 / years) - 1) * 100

        calmar = cagr / drawdown_percent if drawdown_percent else 0.0
        max_wins, max_losses = longest_streaks([t.pnl for t in trades])

        return BacktestMetrics(
            total_trades=len(trades),
            winning_trades=len(wins),
            losing_trades=len(losses),
            win_rate=round(len(wins) / len(trades) * 100, 2) if trades else 0.0,
            profit_factor=round(gross_profit / gross_loss, 2) if gross_loss else 0.0,
            avg_win=round(avg_win, 2),
            avg_loss=round(avg_loss, 2),
            avg_win_loss_ratio=round(win_loss_ratio, 2),
            max_consecutive_wins=max_wins,
            max_consecutive_losses=max_losses,
            total_return=round(total_return, 2),
            total_return_percent=round(total_return_percent, 2),
            cagr=round(cagr, 2),
            max_drawdown=round(drawdown, 2),
            max_drawdown_percent=round(drawdown_percent, 2),
            sharpe_ratio=round(sharpe, 2),
            sortino_ratio=round(sortino, 2),
            calmar_ratio=round(calmar, 2),
            expectancy=round(total_return / len(trades), 2) if trades else 0.0,
        )

    @staticmethod
    def _ratios(returns: np.ndarray) -> tuple[float, float]:
        """Annualised Sharpe and Sortino (downside periods only)."""
        if returns.size == 0:
            return 0.0, 0.0

        annualise = math.sqrt(TRADING_DAYS_PER_YEAR)
        avg = float(returns.mean())

        std = float(returns.std())
        sharpe = avg / std * annualise if std else 0.0

        downside = returns[returns < 0]
        downside_std = float(np.sqrt(np.mean(downside ** 2))) if downside.size else 0.0
        sortino = avg / downside_std * annualise if downside_std else 0.0

        return sharpe, sortino
