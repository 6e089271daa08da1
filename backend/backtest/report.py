"""Report formatting for backtest results.

Outputs results to console (formatted tables) and JSON files.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from enum import Enum

from backtest.stats import BacktestResult


class ReportEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        return super().default(obj)


class ReportFormatter:
    """Format backtest results for display and export."""

    @staticmethod
    def print_console(result: BacktestResult, title: str = "") -> None:
        """Print formatted report to console."""
        m = result.metrics

        print("\n" + "=" * 70)
        print(f"  BACKTEST RESULTS{' - ' + title if title else ''}")
        print("=" * 70)
        if result.dates:
            print(f"  Period: {result.dates[0]:%Y-%m-%d} → {result.dates[-1]:%Y-%m-%d}")
            print(f"  Candles: {len(result.dates)}")

        print("\n" + "-" * 70)
        print("  TRADES")
        print("-" * 70)
        print(f"  Total trades:   {m.total_trades}")
        print(f"  Winners:        {m.winning_trades}")
        print(f"  Losers:         {m.losing_trades}")
        print(f"  Win rate:       {m.win_rate:.2f}%")
        print(f"  Profit factor:  {m.profit_factor:.2f}")
        print(f"  Avg win/loss:   {m.avg_win:.2f} / {m.avg_loss:.2f} ({m.avg_win_loss_ratio:.2f}x)")
        print(f"  Streaks:        {m.max_consecutive_wins} wins, {m.max_consecutive_losses} losses")
        print(f"  Expectancy:     {m.expectancy:+.2f} per trade")

        print("\n" + "-" * 70)
        print("  RETURNS")
        print("-" * 70)
        print(f"  Final equity:   {result.final_equity:,.2f}")
        print(f"  Total return:   {m.total_return:+,.2f} ({m.total_return_percent:+.2f}%)")
        print(f"  CAGR:           {m.cagr:+.2f}%")
        print(f"  Max drawdown:   {m.max_drawdown:,.2f} ({m.max_drawdown_percent:.2f}%)")
        print(f"  Sharpe:         {m.sharpe_ratio:.2f}")
        print(f"  Sortino:        {m.sortino_ratio:.2f}")
        print(f"  Calmar:         {m.calmar_ratio:.2f}")

        if result.trades:
            print("\n" + "-" * 70)
            print("  LAST TRADES")
            print("-" * 70)
            print(
                f"  {'Entry':<12} {'Exit':<12} {'Side':<6} {'Shares':>7} "
                f"{'P&L':>12} {'P&L%':>8} {'Reason':>8}"
            )
            for t in result.trades[-10:]:
                print(
                    f"  {t.entry_date:%Y-%m-%d}   {t.exit_date:%Y-%m-%d}   {t.side.value:<6} "
                    f"{t.shares:>7} {t.pnl:>+12.2f} {t.pnl_percent:>+7.2f}% "
                    f"{t.exit_reason.value:>8}"
                )

        print("\n" + "=" * 70)

    @staticmethod
    def to_dict(result: BacktestResult) -> dict:
        """Convert results to JSON-serializable dict."""
        return {
            "metrics": asdict(result.metrics),
            "trades": [
                {
                    **asdict(t),
                    "entry_price": round(t.entry_price, 2),
                    "exit_price": round(t.exit_price, 2),
                    "pnl": round(t.pnl, 2),
                    "pnl_percent": round(t.pnl_percent, 2),
                    "commission": round(t.commission, 2),
                }
                for t in result.trades
            ],
            "equity": [round(e, 2) for e in result.equity],
            "dates": [d.isoformat() for d in result.dates],
        }

    @staticmethod
    def save_json(result: BacktestResult, filepath: str) -> None:
        """Save results to JSON file."""
        data = ReportFormatter.to_dict(result)
        with open(filepath, "w") as f:
            json.dump(data, f, indent=2, cls=ReportEncoder)
        print(f"\nResults saved to {filepath}")
