"""BacktestRunner - orchestrates signal generation and replay.

Uses core/ for the signal generator and backtest/engine for the replay.
Signals are generated walk-forward: the analysis for candle ``i`` only
sees candles ``0..i``.
"""

from __future__ import annotations

import logging
import time
from typing import Sequence

from core.models.config import SignalConfig
from core.models.kline import Candle, CandleSeries
from core.models.signal import SignalType
from core.signal_generator import InsufficientDataError, SignalGenerator

from backtest.config import BacktestConfig
from backtest.engine import BacktestEngine, BacktestSignal, BacktestSignalType
from backtest.stats import BacktestResult

logger = logging.getLogger(__name__)

# First candle index analysed; earlier candles only prime the indicators
DEFAULT_WARMUP = 50


class BacktestRunner:
    """Generate signals over a candle series and backtest them."""

    def __init__(
        self,
        config: BacktestConfig | None = None,
        signal_config: SignalConfig | None = None,
        warmup: int = DEFAULT_WARMUP,
    ):
        self.config = config or BacktestConfig()
        self.generator = SignalGenerator(signal_config)
        self.warmup = warmup

    def generate_signals(self, candles: Sequence[Candle]) -> list[BacktestSignal]:
        """Analyse each candle from ``warmup`` on; keep BUY and SELL decisions."""
        series = CandleSeries.from_candles(candles)
        signals: list[BacktestSignal] = []
        skipped = 0

        for i in range(self.warmup, len(series)):
            try:
                analysis = self.generator.analyze(series.head(i + 1))
            except InsufficientDataError:
                skipped += 1
                continue

            signal = analysis.signal
            if signal.type == SignalType.HOLD:
                continue

            signals.append(
                BacktestSignal(
                    date=series.candles[i].timestamp,
                    type=BacktestSignalType(signal.type.value),
                    price=series.closes[i],
                    stop_loss=signal.stop_loss,
                    target=signal.target_price,
                    confidence=signal.confidence,
                )
            )

        if skipped:
            logger.debug("Skipped %d candles with too little history", skipped)
        return signals

    def run(self, candles: Sequence[Candle]) -> BacktestResult:
        """Execute the full pipeline: signals, replay, metrics."""
        start_time = time.time()

        logger.info("Generating signals for %d candles (warmup=%d)", len(candles), self.warmup)
        signals = self.generate_signals(candles)
        logger.info("Generated %d signals", len(signals))

        result = BacktestEngine(self.config).run(candles, signals)

        elapsed = time.time() - start_time
        logger.info(
            "Backtest completed in %.1fs: %d trades, win rate %.2f%%",
            elapsed,
            result.metrics.total_trades,
            result.metrics.win_rate,
        )
        return result
