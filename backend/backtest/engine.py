"""Candle-by-candle backtest engine.

Replays a sorted candle series against a sorted stream of pre-computed
signals. Processing order for each candle:

1. Check open lots for stop-loss / target hits on the candle's high/low
   (stop is checked first and wins when both could trigger)
2. Apply every signal dated on or before the candle
3. Record equity (cash + mark-to-market value of open lots)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Sequence

from core.models.kline import Candle
from core.sizing import kelly_size

from backtest.config import BacktestConfig, PositionSizing
from backtest.stats import BacktestResult, MetricsCalculator

logger = logging.getLogger(__name__)


class BacktestSignalType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    EXIT = "EXIT"


class TradeSide(str, Enum):
    LONG = "long"
    SHORT = "short"


class ExitReason(str, Enum):
    TARGET = "target"
    STOP = "stop"
    SIGNAL = "signal"
    TIME = "time"


@dataclass(frozen=True)
class BacktestSignal:
    """A pre-computed instruction for the engine."""

    date: datetime
    type: BacktestSignalType
    price: float
    stop_loss: float | None = None
    target: float | None = None
    confidence: float | None = None


@dataclass(frozen=True)
class BacktestTrade:
    """One closed round trip. ``commission`` covers both legs."""

    entry_date: datetime
    entry_price: float
    exit_date: datetime
    exit_price: float
    shares: int
    side: TradeSide
    pnl: float
    pnl_percent: float
    commission: float
    holding_period: int  # days
    exit_reason: ExitReason


@dataclass
class _Lot:
    entry_date: datetime
    entry_price: float
    shares: int
    side: TradeSide
    entry_commission: float
    stop_loss: float | None = None
    target: float | None = None

    @property
    def cost(self) -> float:
        return self.shares * self.entry_price

    def value(self, price: float) -> float:
        if self.side == TradeSide.LONG:
            return self.shares * price
        return self.shares * (2 * self.entry_price - price)


class BacktestEngine:
    """
    Run one backtest over a candle series.

    Open positions are independent lots, so several entries on the same
    date coexist. Shorts post their notional as collateral, mirroring
    longs: entering debits ``cost + commission`` and the lot is worth
    ``shares * (2 * entry - price)``.

    The engine is reusable; each ``run`` starts from a clean ledger.
    """

    def __init__(self, config: BacktestConfig | None = None):
        self.config = config or BacktestConfig()
        self._reset()

    def _reset(self) -> None:
        self._cash = self.config.initial_capital
        self._lots: list[_Lot] = []
        self._trades: list[BacktestTrade] = []
        self._equity: list[float] = [self.config.initial_capital]
        self._dates: list[datetime] = []

    def run(
        self,
        candles: Sequence[Candle],
        signals: Sequence[BacktestSignal],
    ) -> BacktestResult:
        """Replay ``candles`` against ``signals`` and compute metrics."""
        self._reset()

        ordered_candles = sorted(candles, key=lambda c: c.timestamp)
        ordered_signals = sorted(signals, key=lambda s: s.date)
        signal_index = 0

        for candle in ordered_candles:
            self._dates.append(candle.timestamp)

            self._check_exits(candle)

            while (
                signal_index < len(ordered_signals)
                and ordered_signals[signal_index].date <= candle.timestamp
            ):
                self._process_signal(ordered_signals[signal_index], candle)
                signal_index += 1

            self._equity.append(self._cash + self._position_value(candle.close))

        result = MetricsCalculator().calculate(
            trades=list(self._trades),
            equity=list(self._equity),
            dates=list(self._dates),
            initial_capital=self.config.initial_capital,
        )
        logger.info(
            "Backtest done: %d candles, %d trades, return %.2f%%, max DD %.2f%%",
            len(ordered_candles),
            result.metrics.total_trades,
            result.metrics.total_return_percent,
            result.metrics.max_drawdown_percent,
        )
        return result

    # -------------------------------------------------------------------------
    # Signals
    # -------------------------------------------------------------------------

    def _process_signal(self, signal: BacktestSignal, candle: Candle) -> None:
        if signal.type == BacktestSignalType.BUY:
            self._enter(signal, candle, TradeSide.LONG)
        elif signal.type == BacktestSignalType.SELL:
            self._enter(signal, candle, TradeSide.SHORT)
        elif signal.type == BacktestSignalType.EXIT:
            self._exit_all(candle, ExitReason.SIGNAL)

    def _enter(self, signal: BacktestSignal, candle: Candle, side: TradeSide) -> None:
        if len(self._lots) >= self.config.max_positions:
            logger.debug(
                "Dropped %s signal on %s: %d positions open",
                signal.type.value,
                signal.date,
                len(self._lots),
            )
            return

        shares = self._position_size(signal.price, signal.stop_loss)
        if shares <= 0:
            logger.debug("Skipped %s on %s: sized to 0 shares", signal.type.value, signal.date)
            return

        slip = self.config.slippage
        entry_price = signal.price * (1 + slip if side == TradeSide.LONG else 1 - slip)
        cost = shares * entry_price
        commission = cost * self.config.commission

        if cost + commission > self._cash:
            logger.debug(
                "Skipped %s on %s: needs %.2f, cash %.2f",
                signal.type.value,
                signal.date,
                cost + commission,
                self._cash,
            )
            return

        self._cash -= cost + commission
        self._lots.append(
            _Lot(
                entry_date=candle.timestamp,
                entry_price=entry_price,
                shares=shares,
                side=side,
                entry_commission=commission,
                stop_loss=signal.stop_loss,
                target=signal.target,
            )
        )

    # -------------------------------------------------------------------------
    # Exits
    # -------------------------------------------------------------------------

    def _check_exits(self, candle: Candle) -> None:
        still_open = []
        for lot in self._lots:
            exit_at = self._exit_trigger(lot, candle)
            if exit_at is None:
                still_open.append(lot)
            else:
                price, reason = exit_at
                self._close(lot, price, candle.timestamp, reason)
        self._lots = still_open

    @staticmethod
    def _exit_trigger(lot: _Lot, candle: Candle) -> tuple[float, ExitReason] | None:
        if lot.side == TradeSide.LONG:
            if lot.stop_loss is not None and candle.low <= lot.stop_loss:
                return lot.stop_loss, ExitReason.STOP
            if lot.target is not None and candle.high >= lot.target:
                return lot.target, ExitReason.TARGET
        else:
            if lot.stop_loss is not None and candle.high >= lot.stop_loss:
                return lot.stop_loss, ExitReason.STOP
            if lot.target is not None and candle.low <= lot.target:
                return lot.target, ExitReason.TARGET
        return None

    def _exit_all(self, candle: Candle, reason: ExitReason) -> None:
        for lot in self._lots:
            self._close(lot, candle.close, candle.timestamp, reason)
        self._lots = []

    def _close(
        self,
        lot: _Lot,
        price: float,
        exit_date: datetime,
        reason: ExitReason,
    ) -> None:
        slip = self.config.slippage
        exit_price = price * (1 - slip if lot.side == TradeSide.LONG else 1 + slip)

        exit_notional = lot.shares * exit_price
        exit_commission = exit_notional * self.config.commission
        commission = lot.entry_commission + exit_commission

        if lot.side == TradeSide.LONG:
            gross = exit_notional - lot.cost
        else:
            gross = lot.cost - exit_notional
        pnl = gross - commission

        self._cash += lot.value(exit_price) - exit_commission

        self._trades.append(
            BacktestTrade(
                entry_date=lot.entry_date,
                entry_price=lot.entry_price,
                exit_date=exit_date,
                exit_price=exit_price,
                shares=lot.shares,
                side=lot.side,
                pnl=pnl,
                pnl_percent=pnl / lot.cost * 100 if lot.cost else 0.0,
                commission=commission,
                holding_period=(exit_date - lot.entry_date).days,
                exit_reason=reason,
            )
        )

    # -------------------------------------------------------------------------
    # Sizing and valuation
    # -------------------------------------------------------------------------

    def _position_size(self, price: float, stop_loss: float | None) -> int:
        cfg = self.config
        if price <= 0:
            return 0

        if cfg.position_sizing == PositionSizing.FIXED:
            return math.floor(cfg.position_size_value / price)

        if cfg.position_sizing == PositionSizing.PERCENT:
            return math.floor(self._cash * cfg.position_size_value / 100 / price)

        if cfg.position_sizing == PositionSizing.ATR:
            if stop_loss is None:
                return 0
            stop_distance = abs(price - stop_loss)
            if stop_distance == 0:
                return 0
            return math.floor(self._cash * cfg.risk_per_trade / 100 / stop_distance)

        if cfg.position_sizing == PositionSizing.KELLY:
            win_rate, ratio = self._ledger_edge()
            if ratio == 0:
                return 0
            return kelly_size(self._cash, price, win_rate, ratio, cfg.kelly_fraction).shares

        return 0

    def _ledger_edge(self) -> tuple[float, float]:
        """Running win rate (0.5 before any trade) and avg win / avg loss."""
        if not self._trades:
            return 0.5, 0.0

        wins = [t.pnl for t in self._trades if t.pnl > 0]
        losses = [t.pnl for t in self._trades if t.pnl < 0]
        win_rate = len(wins) / len(self._trades)

        if not wins or not losses:
            return win_rate, 0.0
        avg_win = sum(wins) / len(wins)
        avg_loss = abs(sum(losses) / len(losses))
        return win_rate, avg_win / avg_loss

    def _position_value(self, price: float) -> float:
        return sum(lot.value(price) for lot in self._lots)
