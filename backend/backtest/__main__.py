"""CLI entry point for the backtesting system.

Usage:
    python -m backtest --csv data/RELIANCE.csv
    python -m backtest --csv data/RELIANCE.csv --sizing atr --risk 1 --max-positions 1
    python -m backtest --csv data/RELIANCE.csv --output results.json
"""

import argparse
import logging
import sys

import pandas as pd

from core.models.kline import Candle

from backtest.config import BacktestConfig, PositionSizing, get_backtest_settings
from backtest.report import ReportFormatter
from backtest.runner import BacktestRunner

REQUIRED_COLUMNS = ("open", "high", "low", "close")
DATE_COLUMNS = ("date", "timestamp", "datetime", "time")


def load_candles(path: str) -> list[Candle]:
    """Load OHLCV candles from a CSV file.

    Column names are case-insensitive. A date column (date, timestamp,
    datetime or time) is required; volume defaults to 0.
    """
    df = pd.read_csv(path)
    df.columns = [str(c).strip().lower() for c in df.columns]

    date_col = next((c for c in DATE_COLUMNS if c in df.columns), None)
    if date_col is None:
        raise ValueError(f"{path}: no date column (expected one of {', '.join(DATE_COLUMNS)})")
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"{path}: missing columns {', '.join(missing)}")

    df[date_col] = pd.to_datetime(df[date_col], utc=True)
    if "volume" not in df.columns:
        df["volume"] = 0.0
    df = df.dropna(subset=[date_col, *REQUIRED_COLUMNS]).sort_values(date_col)

    return [
        Candle(
            timestamp=row[date_col].to_pydatetime(),
            open=float(row["open"]),
            high=float(row["high"]),
            low=float(row["low"]),
            close=float(row["close"]),
            volume=float(row["volume"]),
        )
        for _, row in df.iterrows()
    ]


def parse_args() -> argparse.Namespace:
    settings = get_backtest_settings()

    parser = argparse.ArgumentParser(
        description="Backtest the multi-indicator signal generator on daily candles",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m backtest --csv data/RELIANCE.csv
  python -m backtest --csv data/RELIANCE.csv --sizing atr --risk 1 --max-positions 1
  python -m backtest --csv data/RELIANCE.csv --output results.json
        """,
    )
    parser.add_argument("--csv", required=True, help="CSV file with OHLCV candles")
    parser.add_argument(
        "--capital",
        type=float,
        default=settings.initial_capital,
        help=f"Initial capital (default: {settings.initial_capital:g})",
    )
    parser.add_argument(
        "--commission",
        type=float,
        default=settings.commission,
        help=f"Commission fraction per leg (default: {settings.commission:g})",
    )
    parser.add_argument(
        "--slippage",
        type=float,
        default=settings.slippage,
        help=f"Slippage fraction (default: {settings.slippage:g})",
    )
    parser.add_argument(
        "--sizing",
        choices=[m.value for m in PositionSizing],
        default=settings.position_sizing.value,
        help=f"Position sizing method (default: {settings.position_sizing.value})",
    )
    parser.add_argument(
        "--size-value",
        type=float,
        default=settings.position_size_value,
        help="Dollars (fixed) or percent of cash (percent) per trade",
    )
    parser.add_argument(
        "--max-positions",
        type=int,
        default=settings.max_positions,
        help=f"Max concurrent positions (default: {settings.max_positions})",
    )
    parser.add_argument(
        "--risk",
        type=float,
        default=settings.risk_per_trade,
        help=f"Percent of cash risked per trade for atr sizing (default: {settings.risk_per_trade:g})",
    )
    parser.add_argument(
        "--warmup",
        type=int,
        default=settings.warmup,
        help=f"Candles before the first analysis (default: {settings.warmup})",
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output file path for JSON results",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        candles = load_candles(args.csv)
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    config = BacktestConfig(
        initial_capital=args.capital,
        commission=args.commission,
        slippage=args.slippage,
        position_sizing=PositionSizing(args.sizing),
        position_size_value=args.size_value,
        max_positions=args.max_positions,
        risk_per_trade=args.risk,
        kelly_fraction=get_backtest_settings().kelly_fraction,
    )

    print(f"\nBacktest: {args.csv} ({len(candles)} candles)")
    print(f"Sizing: {config.position_sizing.value}, max positions {config.max_positions}")

    runner = BacktestRunner(config=config, warmup=args.warmup)
    result = runner.run(candles)

    ReportFormatter.print_console(result, title=args.csv)

    if args.output:
        ReportFormatter.save_json(result, args.output)


if __name__ == "__main__":
    main()
