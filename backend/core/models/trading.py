"""Order, position and portfolio models for paper trading."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def _now() -> datetime:
    return datetime.now(timezone.utc)


def generate_order_id() -> str:
    """Generate a unique order ID."""
    return f"ORD-{uuid4().hex[:16]}"


class OrderSide(str, Enum):
    BUY = "buy"
    SELL = "sell"


class OrderType(str, Enum):
    MARKET = "market"
    LIMIT = "limit"
    STOP = "stop"


class OrderStatus(str, Enum):
    """Order lifecycle: pending -> filled | cancelled (terminal)."""

    PENDING = "pending"
    FILLED = "filled"
    CANCELLED = "cancelled"


class Order(BaseModel):
    """A paper-trading order.

    ``price`` is the limit or stop trigger and is None for market orders.
    Fill fields stay None until the order is filled.
    """

    id: str = Field(default_factory=generate_order_id)
    symbol: str
    side: OrderSide
    type: OrderType
    shares: int
    price: float | None = None
    status: OrderStatus = OrderStatus.PENDING
    filled_price: float | None = None
    filled_shares: int | None = None
    commission: float | None = None
    created_at: datetime = Field(default_factory=_now)
    filled_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.status == OrderStatus.PENDING

    def should_trigger(self, price: float) -> bool:
        """Check whether a pending limit/stop order triggers at ``price``."""
        if self.price is None:
            return False
        if self.type == OrderType.LIMIT:
            if self.side == OrderSide.BUY:
                return price <= self.price
            return price >= self.price
        if self.type == OrderType.STOP:
            if self.side == OrderSide.BUY:
                return price >= self.price
            return price <= self.price
        return False


class Position(BaseModel):
    """Aggregate holding in one symbol."""

    symbol: str
    shares: int
    avg_price: float
    current_price: float
    market_value: float
    cost_basis: float
    unrealized_pnl: float = 0.0
    unrealized_pnl_percent: float = 0.0
    side: str = "long"
    opened_at: datetime = Field(default_factory=_now)

    def mark(self, price: float) -> None:
        """Refresh mark-to-market fields at ``price``."""
        self.current_price = price
        self.market_value = self.shares * price
        self.unrealized_pnl = self.market_value - self.cost_basis
        self.unrealized_pnl_percent = (
            self.unrealized_pnl / self.cost_basis * 100 if self.cost_basis else 0.0
        )


class Fill(BaseModel):
    """Immutable record of one executed order."""

    model_config = ConfigDict(frozen=True)

    id: str
    symbol: str
    side: OrderSide
    shares: int
    price: float
    commission: float
    total: float
    timestamp: datetime = Field(default_factory=_now)


class ClosedTrade(BaseModel):
    """P&L of one completed round trip in a symbol."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    pnl: float


class PortfolioPerformance(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_return: float = 0.0
    total_return_percent: float = 0.0
    day_return: float = 0.0
    day_return_percent: float = 0.0
    total_commissions: float = 0.0
    total_trades: int = 0
    win_rate: float = 0.0
    profit_factor: float = 0.0


class PortfolioState(BaseModel):
    """Snapshot of a paper-trading account."""

    model_config = ConfigDict(frozen=True)

    cash: float
    equity: float
    positions: list[Position]
    open_orders: list[Order]
    trade_history: list[Fill]
    performance: PortfolioPerformance
