"""Tests for the candle-by-candle backtest engine."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from backtest.config import BacktestConfig, BacktestSettings, PositionSizing
from backtest.engine import (
    BacktestEngine,
    BacktestSignal,
    BacktestSignalType,
    ExitReason,
    TradeSide,
)
from core.models.kline import Candle

START = datetime(2024, 1, 1, tzinfo=timezone.utc)


def day(i: int) -> datetime:
    return START + timedelta(days=i)


def candle(i: int, close: float, high: float | None = None, low: float | None = None) -> Candle:
    return Candle(
        timestamp=day(i),
        open=close,
        high=close if high is None else high,
        low=close if low is None else low,
        close=close,
        volume=1000,
    )


def flat_candles(n: int, price: float = 100.0) -> list[Candle]:
    return [candle(i, price) for i in range(n)]


def buy(i: int, price: float = 100.0, stop: float | None = 95.0, target: float | None = 110.0):
    return BacktestSignal(
        date=day(i), type=BacktestSignalType.BUY, price=price, stop_loss=stop, target=target
    )


def sell(i: int, price: float = 100.0, stop: float | None = 104.0, target: float | None = 94.0):
    return BacktestSignal(
        date=day(i), type=BacktestSignalType.SELL, price=price, stop_loss=stop, target=target
    )


def exit_signal(i: int, price: float = 100.0):
    return BacktestSignal(date=day(i), type=BacktestSignalType.EXIT, price=price)


def frictionless(**kwargs) -> BacktestConfig:
    defaults = dict(
        commission=0.0,
        slippage=0.0,
        position_sizing=PositionSizing.FIXED,
        position_size_value=1000,
    )
    defaults.update(kwargs)
    return BacktestConfig(**defaults)


class TestEquityCurve:
    def test_no_signals_keeps_capital(self):
        result = BacktestEngine().run(flat_candles(10), [])

        assert len(result.equity) == 11
        assert len(result.dates) == 10
        assert all(e == 100_000 for e in result.equity)
        assert result.trades == []
        assert result.metrics.total_trades == 0

    @pytest.mark.parametrize("n", [0, 1, 5, 30])
    def test_length_is_candles_plus_one(self, n):
        candles = flat_candles(n)
        signals = [buy(i) for i in range(0, n, 3)]
        result = BacktestEngine(frictionless()).run(candles, signals)
        assert len(result.equity) == n + 1

    def test_equity_marks_open_position(self):
        candles = [candle(0, 100), candle(1, 105, high=106, low=104)]
        result = BacktestEngine(frictionless()).run(candles, [buy(0, target=None, stop=None)])
        assert result.equity == [100_000, 100_000, pytest.approx(100_050)]

    def test_unsorted_inputs_are_sorted(self):
        candles = [candle(1, 112, high=112, low=100), candle(0, 100)]
        result = BacktestEngine(frictionless()).run(candles, [buy(0)])
        assert result.dates == [day(0), day(1)]
        assert result.trades[0].exit_reason == ExitReason.TARGET


class TestLongTrades:
    def test_target_exit(self):
        candles = [candle(0, 100), candle(1, 108, high=112, low=99)]
        result = BacktestEngine(frictionless()).run(candles, [buy(0)])

        trade = result.trades[0]
        assert trade.side == TradeSide.LONG
        assert trade.shares == 10
        assert trade.exit_price == 110
        assert trade.exit_reason == ExitReason.TARGET
        assert trade.pnl == pytest.approx(100)
        assert trade.pnl_percent == pytest.approx(10)
        assert trade.holding_period == 1
        assert result.final_equity == pytest.approx(100_100)

    def test_stop_wins_when_both_touched(self):
        candles = [candle(0, 100), candle(1, 100, high=112, low=90)]
        result = BacktestEngine(frictionless()).run(candles, [buy(0)])

        trade = result.trades[0]
        assert trade.exit_reason == ExitReason.STOP
        assert trade.exit_price == 95
        assert trade.pnl == pytest.approx(-50)

    def test_entry_candle_is_not_checked_for_exits(self):
        candles = [candle(0, 100, high=120, low=80), candle(1, 100)]
        result = BacktestEngine(frictionless()).run(candles, [buy(0)])
        assert result.trades == []

    def test_exit_signal_closes_at_candle_close(self):
        candles = [candle(0, 100), candle(1, 103), candle(2, 104)]
        signals = [buy(0, stop=None, target=None), exit_signal(2)]
        result = BacktestEngine(frictionless()).run(candles, signals)

        trade = result.trades[0]
        assert trade.exit_reason == ExitReason.SIGNAL
        assert trade.exit_price == 104
        assert trade.holding_period == 2

    def test_commission_charged_on_both_legs(self):
        config = frictionless(commission=0.001)
        candles = [candle(0, 100), candle(1, 108, high=112, low=99)]
        result = BacktestEngine(config).run(candles, [buy(0)])

        trade = result.trades[0]
        # entry 1000 * 0.001 + exit 1100 * 0.001
        assert trade.commission == pytest.approx(2.1)
        assert trade.pnl == pytest.approx(97.9)
        assert result.final_equity == pytest.approx(100_097.9)

    def test_slippage_is_adverse(self):
        config = frictionless(slippage=0.01)
        candles = [candle(0, 100), candle(1, 100), candle(2, 100)]
        signals = [buy(0, stop=None, target=None), exit_signal(2)]
        result = BacktestEngine(config).run(candles, signals)

        trade = result.trades[0]
        assert trade.entry_price == pytest.approx(101)
        assert trade.exit_price == pytest.approx(99)
        assert trade.pnl < 0


class TestShortTrades:
    def test_target_exit(self):
        candles = [candle(0, 100), candle(1, 95, high=101, low=93)]
        result = BacktestEngine(frictionless()).run(candles, [sell(0)])

        trade = result.trades[0]
        assert trade.side == TradeSide.SHORT
        assert trade.exit_reason == ExitReason.TARGET
        assert trade.pnl == pytest.approx(60)
        assert result.final_equity == pytest.approx(100_060)

    def test_stop_exit(self):
        candles = [candle(0, 100), candle(1, 100, high=105, low=93)]
        result = BacktestEngine(frictionless()).run(candles, [sell(0)])

        trade = result.trades[0]
        assert trade.exit_reason == ExitReason.STOP
        assert trade.pnl == pytest.approx(-40)
        assert result.final_equity == pytest.approx(99_960)

    def test_open_short_gains_as_price_falls(self):
        candles = [candle(0, 100), candle(1, 97, high=98, low=96)]
        result = BacktestEngine(frictionless()).run(candles, [sell(0, stop=None, target=None)])
        assert result.final_equity == pytest.approx(100_030)


class TestEntryRules:
    def test_max_positions(self):
        config = frictionless(max_positions=1)
        candles = [candle(0, 100), candle(1, 100), candle(2, 100)]
        signals = [buy(0, stop=None, target=None), buy(0, stop=None, target=None), exit_signal(2)]
        result = BacktestEngine(config).run(candles, signals)
        assert len(result.trades) == 1

    def test_same_day_entries_are_separate_lots(self):
        candles = [candle(0, 100), candle(1, 100), candle(2, 100)]
        signals = [buy(0, stop=None, target=None), buy(0, stop=None, target=None), exit_signal(2)]
        result = BacktestEngine(frictionless()).run(candles, signals)
        assert len(result.trades) == 2

    def test_insufficient_cash_skips_entry(self):
        config = frictionless(position_size_value=200_000)
        result = BacktestEngine(config).run(flat_candles(3), [buy(0)])
        assert result.trades == []
        assert result.final_equity == 100_000

    def test_signals_after_last_candle_are_ignored(self):
        result = BacktestEngine(frictionless()).run(flat_candles(3), [buy(10)])
        assert result.final_equity == 100_000

    def test_percent_sizing(self):
        config = frictionless(position_sizing=PositionSizing.PERCENT, position_size_value=10)
        candles = [candle(0, 100), candle(1, 100), candle(2, 100)]
        signals = [buy(0, stop=None, target=None), exit_signal(2)]
        result = BacktestEngine(config).run(candles, signals)
        assert result.trades[0].shares == 100

    def test_atr_sizing_uses_stop_distance(self):
        config = frictionless(position_sizing=PositionSizing.ATR, risk_per_trade=2)
        candles = [candle(0, 100), candle(1, 100), candle(2, 100)]
        signals = [buy(0, stop=95, target=None), exit_signal(2)]
        result = BacktestEngine(config).run(candles, signals)
        # 2% of 100000 over a 5 point stop
        assert result.trades[0].shares == 400

    def test_atr_sizing_without_stop_skips(self):
        config = frictionless(position_sizing=PositionSizing.ATR)
        result = BacktestEngine(config).run(flat_candles(3), [buy(0, stop=None)])
        assert result.trades == []

    def test_kelly_without_history_skips(self):
        config = frictionless(position_sizing=PositionSizing.KELLY)
        result = BacktestEngine(config).run(flat_candles(3), [buy(0)])
        assert result.trades == []

    def test_engine_is_reusable(self):
        engine = BacktestEngine(frictionless())
        candles = [candle(0, 100), candle(1, 108, high=112, low=99)]
        first = engine.run(candles, [buy(0)])
        second = engine.run(candles, [buy(0)])
        assert len(second.trades) == 1
        assert second.equity == first.equity


class TestBacktestConfig:
    def test_defaults(self):
        config = BacktestConfig()
        assert config.initial_capital == 100_000
        assert config.position_sizing == PositionSizing.PERCENT
        assert config.max_positions == 5

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"initial_capital": 0},
            {"commission": -0.1},
            {"slippage": -0.1},
            {"max_positions": 0},
            {"risk_per_trade": -1},
            {"kelly_fraction": 0},
            {"kelly_fraction": 1.5},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValidationError):
            BacktestConfig(**kwargs)

    def test_from_settings(self, monkeypatch):
        monkeypatch.setenv("BACKTEST_INITIAL_CAPITAL", "50000")
        monkeypatch.setenv("BACKTEST_POSITION_SIZING", "atr")
        config = BacktestConfig.from_settings(BacktestSettings())
        assert config.initial_capital == 50_000
        assert config.position_sizing == PositionSizing.ATR
