"""Paper-trading portfolio simulator.

One mutable virtual account: cash, aggregate positions per symbol, pending
limit/stop orders and an append-only fill history. Market orders fill
immediately at a slippage-adjusted price; pending orders fill at the
supplied price (commission, no slippage) when ``update_positions`` sees
their trigger condition.

Instances are not safe for concurrent mutation. Callers that share one
across tasks go through ``PortfolioStore`` which serialises access per
owner.
"""

import logging
from datetime import datetime, timezone

from app.trading_config import PortfolioConfig
from core.models.trading import (
    ClosedTrade,
    Fill,
    Order,
    OrderSide,
    OrderStatus,
    OrderType,
    PortfolioPerformance,
    PortfolioState,
    Position,
)

logger = logging.getLogger(__name__)


class PortfolioError(Exception):
    """Base class for order rejections."""


class InsufficientFundsError(PortfolioError):
    pass


class InsufficientSharesError(PortfolioError):
    pass


class OrderValidationError(PortfolioError):
    pass


class PaperTradingPortfolio:
    """Virtual long-only account with market, limit and stop orders."""

    def __init__(self, config: PortfolioConfig | None = None):
        self.config = config or PortfolioConfig()
        self.initial_cash = self.config.initial_cash
        self.cash = self.config.initial_cash
        self.day_start_equity = self.config.initial_cash
        self._positions: dict[str, Position] = {}
        self._open_orders: list[Order] = []
        self._trade_history: list[Fill] = []

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def place_market_order(
        self, symbol: str, side: OrderSide | str, shares: int, price: float
    ) -> Order:
        """Fill immediately at ``price`` adjusted by slippage.

        Raises:
            InsufficientFundsError: buy cost plus commission exceeds cash.
            InsufficientSharesError: selling more shares than held.
        """
        side = OrderSide(side)
        self._validate(shares, price)

        if side == OrderSide.BUY:
            filled_price = price * (1 + self.config.slippage)
        else:
            filled_price = price * (1 - self.config.slippage)
        total = shares * filled_price
        commission = total * self.config.commission

        if side == OrderSide.BUY:
            required = total + commission
            if required > self.cash:
                raise InsufficientFundsError(
                    f"Insufficient cash. Required: {required:.2f}, Available: {self.cash:.2f}"
                )
        else:
            held = self._held_shares(symbol)
            if held < shares:
                raise InsufficientSharesError(
                    f"Insufficient shares. Trying to sell {shares}, but only have {held}"
                )

        now = datetime.now(timezone.utc)
        order = Order(
            symbol=symbol,
            side=side,
            type=OrderType.MARKET,
            shares=shares,
            status=OrderStatus.FILLED,
            filled_price=filled_price,
            filled_shares=shares,
            commission=commission,
            created_at=now,
            filled_at=now,
        )
        self._execute(order)
        return order

    def place_limit_order(
        self, symbol: str, side: OrderSide | str, shares: int, limit_price: float
    ) -> Order:
        return self._queue(symbol, OrderSide(side), OrderType.LIMIT, shares, limit_price)

    def place_stop_order(
        self, symbol: str, side: OrderSide | str, shares: int, stop_price: float
    ) -> Order:
        return self._queue(symbol, OrderSide(side), OrderType.STOP, shares, stop_price)

    def cancel_order(self, order_id: str) -> bool:
        """Cancel a pending order. Returns False if no such open order."""
        for i, order in enumerate(self._open_orders):
            if order.id == order_id:
                order.status = OrderStatus.CANCELLED
                del self._open_orders[i]
                return True
        return False

    def close_position(self, symbol: str, price: float) -> Order | None:
        """Sell the whole position at market. None if nothing is held."""
        position = self._positions.get(symbol)
        if position is None:
            return None
        return self.place_market_order(symbol, OrderSide.SELL, position.shares, price)

    def _queue(
        self, symbol: str, side: OrderSide, order_type: OrderType, shares: int, price: float
    ) -> Order:
        self._validate(shares, price)
        order = Order(symbol=symbol, side=side, type=order_type, shares=shares, price=price)
        self._open_orders.append(order)
        logger.debug(
            "Queued %s %s %s x%d @ %.2f", order_type.value, side.value, symbol, shares, price
        )
        return order

    @staticmethod
    def _validate(shares: int, price: float) -> None:
        if shares <= 0:
            raise OrderValidationError(f"shares must be positive, got {shares}")
        if price <= 0:
            raise OrderValidationError(f"price must be positive, got {price}")

    # ------------------------------------------------------------------
    # Price updates
    # ------------------------------------------------------------------

    def update_positions(self, prices: dict[str, float]) -> None:
        """Mark positions to ``prices``, then fill triggered pending orders."""
        for symbol, position in self._positions.items():
            if symbol in prices:
                position.mark(prices[symbol])
        self._check_pending_orders(prices)

    def _check_pending_orders(self, prices: dict[str, float]) -> None:
        remaining: list[Order] = []
        for order in self._open_orders:
            price = prices.get(order.symbol)
            if not price or not order.should_trigger(price):
                remaining.append(order)
                continue

            total = order.shares * price
            commission = total * self.config.commission
            reason = self._cannot_fill(order, total + commission)
            if reason:
                order.status = OrderStatus.CANCELLED
                logger.warning("Cancelled %s order %s: %s", order.type.value, order.id, reason)
                continue

            order.status = OrderStatus.FILLED
            order.filled_price = price
            order.filled_shares = order.shares
            order.commission = commission
            order.filled_at = datetime.now(timezone.utc)
            self._execute(order)
        self._open_orders = remaining

    def _cannot_fill(self, order: Order, required: float) -> str | None:
        if order.side == OrderSide.BUY:
            if required > self.cash:
                return f"insufficient cash ({required:.2f} > {self.cash:.2f})"
            return None
        held = self._held_shares(order.symbol)
        if held < order.shares:
            return f"insufficient shares ({held} < {order.shares})"
        return None

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _execute(self, order: Order) -> None:
        symbol = order.symbol
        shares = order.filled_shares
        price = order.filled_price
        commission = order.commission or 0.0
        total = shares * price

        if order.side == OrderSide.BUY:
            self.cash -= total + commission
            position = self._positions.get(symbol)
            if position is None:
                self._positions[symbol] = Position(
                    symbol=symbol,
                    shares=shares,
                    avg_price=price,
                    current_price=price,
                    market_value=total,
                    cost_basis=total,
                )
            else:
                position.shares += shares
                position.cost_basis += total
                position.avg_price = position.cost_basis / position.shares
                position.mark(price)
        else:
            self.cash += total - commission
            position = self._positions[symbol]
            position.shares -= shares
            position.cost_basis = position.shares * position.avg_price
            position.mark(price)
            if position.shares == 0:
                del self._positions[symbol]

        self._trade_history.append(
            Fill(
                id=order.id,
                symbol=symbol,
                side=order.side,
                shares=shares,
                price=price,
                commission=commission,
                total=total,
            )
        )
        logger.info(
            "Filled %s %s %s x%d @ %.2f (commission %.2f, cash %.2f)",
            order.type.value,
            order.side.value,
            symbol,
            shares,
            price,
            commission,
            self.cash,
        )

    def _held_shares(self, symbol: str) -> int:
        position = self._positions.get(symbol)
        return position.shares if position else 0

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_state(self) -> PortfolioState:
        return PortfolioState(
            cash=round(self.cash, 2),
            equity=round(self.equity, 2),
            positions=[p.model_copy() for p in self._positions.values()],
            open_orders=[o.model_copy() for o in self._open_orders],
            trade_history=list(self._trade_history),
            performance=self.performance(),
        )

    @property
    def equity(self) -> float:
        return self.cash + sum(p.market_value for p in self._positions.values())

    def get_position(self, symbol: str) -> Position | None:
        return self._positions.get(symbol)

    def get_all_positions(self) -> list[Position]:
        return list(self._positions.values())

    def get_open_orders(self) -> list[Order]:
        return list(self._open_orders)

    def get_trade_history(self) -> list[Fill]:
        return list(self._trade_history)

    def set_day_start_equity(self) -> None:
        """Snapshot current equity as the base for day return."""
        self.day_start_equity = self.equity

    def reset(self) -> None:
        self.cash = self.initial_cash
        self.day_start_equity = self.initial_cash
        self._positions.clear()
        self._open_orders.clear()
        self._trade_history.clear()

    # ------------------------------------------------------------------
    # Performance
    # ------------------------------------------------------------------

    def closed_trades(self) -> list[ClosedTrade]:
        """Completed round trips, in the order they went flat.

        A round trip ends whenever a symbol's cumulative sold shares catch
        up with its cumulative bought shares. P&L is net of commissions.
        """
        open_legs: dict[str, tuple[int, float, int, float]] = {}
        closed: list[ClosedTrade] = []

        for fill in self._trade_history:
            bought, buy_total, sold, sell_total = open_legs.get(fill.symbol, (0, 0.0, 0, 0.0))
            if fill.side == OrderSide.BUY:
                bought += fill.shares
                buy_total += fill.total + fill.commission
            else:
                sold += fill.shares
                sell_total += fill.total - fill.commission

            if bought > 0 and bought == sold:
                closed.append(ClosedTrade(symbol=fill.symbol, pnl=sell_total - buy_total))
                open_legs.pop(fill.symbol, None)
            else:
                open_legs[fill.symbol] = (bought, buy_total, sold, sell_total)

        return closed

    def performance(self) -> PortfolioPerformance:
        equity = self.equity
        total_return = equity - self.initial_cash
        day_return = equity - self.day_start_equity

        closed = self.closed_trades()
        wins = [t.pnl for t in closed if t.pnl > 0]
        losses = [t.pnl for t in closed if t.pnl < 0]
        gross_profit = sum(wins)
        gross_loss = abs(sum(losses))

        return PortfolioPerformance(
            total_return=round(total_return, 2),
            total_return_percent=round(total_return / self.initial_cash * 100, 2),
            day_return=round(day_return, 2),
            day_return_percent=(
                round(day_return / self.day_start_equity * 100, 2)
                if self.day_start_equity
                else 0.0
            ),
            total_commissions=round(sum(f.commission for f in self._trade_history), 2),
            total_trades=len(self._trade_history),
            win_rate=round(len(wins) / len(closed) * 100, 2) if closed else 0.0,
            profit_factor=round(gross_profit / gross_loss, 2) if gross_loss else 0.0,
        )
