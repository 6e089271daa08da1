"""Tests for the paper-trading portfolio simulator."""

import logging

import pytest

from app.services.portfolio import (
    InsufficientFundsError,
    InsufficientSharesError,
    OrderValidationError,
    PaperTradingPortfolio,
)
from app.trading_config import PortfolioConfig
from core.models.trading import OrderSide, OrderStatus, OrderType


def frictionless(initial_cash: float = 100_000) -> PaperTradingPortfolio:
    return PaperTradingPortfolio(PortfolioConfig(initial_cash=initial_cash, commission=0, slippage=0))


def assert_equity_invariant(portfolio: PaperTradingPortfolio) -> None:
    market_value = sum(p.market_value for p in portfolio.get_all_positions())
    assert portfolio.equity == pytest.approx(portfolio.cash + market_value)


class TestMarketOrders:
    def test_buy_applies_slippage_and_commission(self):
        portfolio = PaperTradingPortfolio()
        order = portfolio.place_market_order("RELIANCE", OrderSide.BUY, 10, 100.0)

        assert order.status == OrderStatus.FILLED
        assert order.type == OrderType.MARKET
        assert order.filled_price == pytest.approx(100.1)
        assert order.commission == pytest.approx(1.001)
        assert portfolio.get_state().cash == 98998.0

        position = portfolio.get_position("RELIANCE")
        assert position.shares == 10
        assert position.avg_price == pytest.approx(100.1)

    def test_sell_slippage_is_adverse(self):
        portfolio = PaperTradingPortfolio()
        portfolio.place_market_order("TCS", "buy", 10, 100.0)
        order = portfolio.place_market_order("TCS", "sell", 10, 100.0)
        assert order.filled_price == pytest.approx(99.9)

    def test_side_accepts_strings(self):
        portfolio = frictionless()
        order = portfolio.place_market_order("TCS", "buy", 1, 50.0)
        assert order.side == OrderSide.BUY

    def test_insufficient_funds(self):
        portfolio = frictionless()
        with pytest.raises(InsufficientFundsError, match="Required: 200000.00, Available: 100000.00"):
            portfolio.place_market_order("TCS", "buy", 2000, 100.0)
        assert portfolio.cash == 100_000
        assert portfolio.get_trade_history() == []

    def test_commission_counts_toward_required_cash(self):
        portfolio = PaperTradingPortfolio(
            PortfolioConfig(initial_cash=1000, commission=0.01, slippage=0)
        )
        with pytest.raises(InsufficientFundsError):
            portfolio.place_market_order("TCS", "buy", 10, 100.0)

    def test_insufficient_shares(self):
        portfolio = frictionless()
        portfolio.place_market_order("TCS", "buy", 3, 100.0)
        with pytest.raises(InsufficientSharesError, match="Trying to sell 5, but only have 3"):
            portfolio.place_market_order("TCS", "sell", 5, 100.0)

    @pytest.mark.parametrize("shares, price", [(0, 100.0), (-1, 100.0), (10, 0.0), (10, -5.0)])
    def test_validation(self, shares, price):
        portfolio = frictionless()
        with pytest.raises(OrderValidationError):
            portfolio.place_market_order("TCS", "buy", shares, price)
        with pytest.raises(OrderValidationError):
            portfolio.place_limit_order("TCS", "buy", shares, price)

    def test_invalid_side(self):
        with pytest.raises(ValueError):
            frictionless().place_market_order("TCS", "short", 1, 100.0)


class TestPositions:
    def test_weighted_average_price(self):
        portfolio = frictionless()
        portfolio.place_market_order("INFY", "buy", 10, 100.0)
        portfolio.place_market_order("INFY", "buy", 10, 110.0)

        position = portfolio.get_position("INFY")
        assert position.shares == 20
        assert position.avg_price == pytest.approx(105.0)
        assert position.cost_basis == pytest.approx(2100.0)
        assert_equity_invariant(portfolio)

    def test_partial_sell_reduces_cost_basis(self):
        portfolio = frictionless()
        portfolio.place_market_order("INFY", "buy", 10, 100.0)
        portfolio.place_market_order("INFY", "buy", 10, 110.0)
        portfolio.place_market_order("INFY", "sell", 5, 120.0)

        position = portfolio.get_position("INFY")
        assert position.shares == 15
        assert position.avg_price == pytest.approx(105.0)
        assert position.cost_basis == pytest.approx(1575.0)
        assert position.market_value == pytest.approx(1800.0)
        assert position.unrealized_pnl == pytest.approx(225.0)
        assert portfolio.cash == pytest.approx(98_500.0)
        assert_equity_invariant(portfolio)

    def test_close_position(self):
        portfolio = frictionless()
        portfolio.place_market_order("INFY", "buy", 10, 100.0)
        order = portfolio.close_position("INFY", 110.0)

        assert order.shares == 10
        assert portfolio.get_position("INFY") is None
        assert [t.pnl for t in portfolio.closed_trades()] == [pytest.approx(100.0)]
        assert portfolio.cash == pytest.approx(100_100.0)

    def test_close_without_position(self):
        assert frictionless().close_position("INFY", 110.0) is None

    def test_update_marks_positions(self):
        portfolio = frictionless()
        portfolio.place_market_order("INFY", "buy", 10, 100.0)
        portfolio.update_positions({"INFY": 120.0, "OTHER": 5.0})

        position = portfolio.get_position("INFY")
        assert position.current_price == 120.0
        assert position.unrealized_pnl == pytest.approx(200.0)
        assert position.unrealized_pnl_percent == pytest.approx(20.0)
        assert portfolio.equity == pytest.approx(100_200.0)
        assert_equity_invariant(portfolio)

    def test_state_is_a_snapshot(self):
        portfolio = frictionless()
        portfolio.place_market_order("INFY", "buy", 10, 100.0)
        state = portfolio.get_state()
        portfolio.update_positions({"INFY": 150.0})

        assert state.positions[0].current_price == 100.0
        assert state.equity == 100_000.0


class TestPendingOrders:
    def test_limit_buy(self):
        portfolio = frictionless()
        order = portfolio.place_limit_order("SBIN", "buy", 10, 95.0)
        assert order.status == OrderStatus.PENDING

        portfolio.update_positions({"SBIN": 96.0})
        assert portfolio.get_position("SBIN") is None
        assert len(portfolio.get_open_orders()) == 1

        portfolio.update_positions({"SBIN": 94.0})
        assert order.status == OrderStatus.FILLED
        assert order.filled_price == 94.0
        assert portfolio.get_position("SBIN").shares == 10
        assert portfolio.get_open_orders() == []

    def test_limit_sell(self):
        portfolio = frictionless()
        portfolio.place_market_order("SBIN", "buy", 10, 100.0)
        order = portfolio.place_limit_order("SBIN", "sell", 10, 110.0)

        portfolio.update_positions({"SBIN": 105.0})
        assert order.is_open

        portfolio.update_positions({"SBIN": 112.0})
        assert order.status == OrderStatus.FILLED
        assert portfolio.get_position("SBIN") is None
        assert portfolio.cash == pytest.approx(100_120.0)

    def test_stop_sell(self):
        portfolio = frictionless()
        portfolio.place_market_order("SBIN", "buy", 10, 100.0)
        order = portfolio.place_stop_order("SBIN", "sell", 10, 90.0)

        portfolio.update_positions({"SBIN": 91.0})
        assert order.is_open

        portfolio.update_positions({"SBIN": 89.0})
        assert order.status == OrderStatus.FILLED
        assert order.filled_price == 89.0

    def test_stop_buy(self):
        portfolio = frictionless()
        order = portfolio.place_stop_order("SBIN", "buy", 10, 105.0)
        portfolio.update_positions({"SBIN": 106.0})
        assert order.status == OrderStatus.FILLED
        assert portfolio.get_position("SBIN").avg_price == 106.0

    def test_pending_fill_pays_commission_without_slippage(self):
        portfolio = PaperTradingPortfolio(PortfolioConfig(commission=0.01, slippage=0.05))
        order = portfolio.place_limit_order("SBIN", "buy", 10, 100.0)
        portfolio.update_positions({"SBIN": 100.0})

        assert order.filled_price == 100.0
        assert order.commission == pytest.approx(10.0)
        assert portfolio.cash == pytest.approx(100_000 - 1010.0)

    def test_missing_price_keeps_order(self):
        portfolio = frictionless()
        portfolio.place_limit_order("SBIN", "buy", 10, 95.0)
        portfolio.update_positions({"TCS": 10.0})
        assert len(portfolio.get_open_orders()) == 1

    def test_sell_without_shares_is_cancelled(self, caplog):
        portfolio = frictionless()
        order = portfolio.place_limit_order("SBIN", "sell", 5, 100.0)

        with caplog.at_level(logging.WARNING, logger="app.services.portfolio"):
            portfolio.update_positions({"SBIN": 101.0})

        assert order.status == OrderStatus.CANCELLED
        assert portfolio.get_open_orders() == []
        assert portfolio.get_trade_history() == []
        assert "insufficient shares" in caplog.text

    def test_buy_without_cash_is_cancelled(self, caplog):
        portfolio = frictionless(initial_cash=1000)
        order = portfolio.place_limit_order("SBIN", "buy", 20, 100.0)

        with caplog.at_level(logging.WARNING, logger="app.services.portfolio"):
            portfolio.update_positions({"SBIN": 100.0})

        assert order.status == OrderStatus.CANCELLED
        assert portfolio.cash == 1000
        assert "insufficient cash" in caplog.text

    def test_cancel_order(self):
        portfolio = frictionless()
        order = portfolio.place_limit_order("SBIN", "buy", 10, 95.0)

        assert portfolio.cancel_order(order.id) is True
        assert order.status == OrderStatus.CANCELLED
        assert portfolio.get_open_orders() == []
        assert portfolio.cancel_order(order.id) is False

        portfolio.update_positions({"SBIN": 90.0})
        assert portfolio.get_position("SBIN") is None


class TestPerformance:
    def test_round_trips(self):
        portfolio = frictionless()
        portfolio.place_market_order("TCS", "buy", 10, 100.0)
        portfolio.place_market_order("TCS", "sell", 10, 120.0)
        portfolio.place_market_order("TCS", "buy", 10, 100.0)
        portfolio.place_market_order("TCS", "sell", 10, 90.0)

        perf = portfolio.performance()
        assert perf.total_trades == 4
        assert perf.win_rate == 50.0
        assert perf.profit_factor == 2.0
        assert perf.total_return == 100.0
        assert perf.total_return_percent == 0.1

    def test_partial_exits_make_one_round_trip(self):
        portfolio = frictionless()
        portfolio.place_market_order("TCS", "buy", 10, 100.0)
        portfolio.place_market_order("TCS", "sell", 5, 110.0)
        portfolio.place_market_order("TCS", "sell", 5, 120.0)

        closed = portfolio.closed_trades()
        assert len(closed) == 1
        assert closed[0].pnl == pytest.approx(150.0)

    def test_round_trip_pnl_is_net_of_commission(self):
        portfolio = PaperTradingPortfolio(PortfolioConfig(commission=0.01, slippage=0))
        portfolio.place_market_order("TCS", "buy", 10, 100.0)
        portfolio.place_market_order("TCS", "sell", 10, 100.0)

        assert portfolio.closed_trades()[0].pnl == pytest.approx(-20.0)
        assert portfolio.performance().total_commissions == 20.0

    def test_open_position_is_not_a_closed_trade(self):
        portfolio = frictionless()
        portfolio.place_market_order("TCS", "buy", 10, 100.0)
        portfolio.update_positions({"TCS": 150.0})

        perf = portfolio.performance()
        assert portfolio.closed_trades() == []
        assert perf.win_rate == 0.0
        assert perf.profit_factor == 0.0
        assert perf.total_return == 500.0

    def test_profit_factor_without_losses_is_zero(self):
        portfolio = frictionless()
        portfolio.place_market_order("TCS", "buy", 10, 100.0)
        portfolio.place_market_order("TCS", "sell", 10, 120.0)
        assert portfolio.performance().profit_factor == 0.0
        assert portfolio.performance().win_rate == 100.0

    def test_day_return(self):
        portfolio = frictionless()
        portfolio.place_market_order("TCS", "buy", 10, 100.0)
        portfolio.set_day_start_equity()
        portfolio.update_positions({"TCS": 110.0})

        perf = portfolio.performance()
        assert perf.day_return == 100.0
        assert perf.day_return_percent == 0.1

    def test_total_commissions(self):
        portfolio = PaperTradingPortfolio()
        portfolio.place_market_order("TCS", "buy", 10, 100.0)
        portfolio.place_market_order("TCS", "sell", 10, 100.0)
        # 1.001 on the buy, 0.999 on the sell
        assert portfolio.performance().total_commissions == 2.0

    def test_reset(self):
        portfolio = frictionless()
        portfolio.place_market_order("TCS", "buy", 10, 100.0)
        portfolio.place_limit_order("TCS", "sell", 10, 200.0)
        portfolio.reset()

        state = portfolio.get_state()
        assert state.cash == 100_000
        assert state.positions == []
        assert state.open_orders == []
        assert state.trade_history == []
        assert state.performance.total_trades == 0
