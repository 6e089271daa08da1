"""Per-owner registry of paper-trading portfolios.

Each owner gets one ``PaperTradingPortfolio`` and one ``asyncio.Lock``.
All access goes through a handle so that order placement and price
updates against the same owner never interleave:

    async with store.get("alice") as portfolio:
        portfolio.place_market_order("RELIANCE", "buy", 10, 2450.0)
"""

import asyncio
import logging

from app.config import Settings, get_settings
from app.services.portfolio import PaperTradingPortfolio
from app.trading_config import PortfolioConfig, TradingConfig

logger = logging.getLogger(__name__)


class PortfolioHandle:
    """Async context manager granting exclusive access to one portfolio."""

    def __init__(self, owner_id: str, portfolio: PaperTradingPortfolio, lock: asyncio.Lock):
        self.owner_id = owner_id
        self._portfolio = portfolio
        self._lock = lock

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    async def __aenter__(self) -> PaperTradingPortfolio:
        await self._lock.acquire()
        return self._portfolio

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self._lock.release()


class PortfolioStore:
    """Lazily creates and holds one portfolio per owner."""

    def __init__(
        self,
        settings: Settings | None = None,
        trading_config: TradingConfig | None = None,
    ):
        self._settings = settings or get_settings()
        self._trading_config = trading_config or TradingConfig()
        self._entries: dict[str, tuple[PaperTradingPortfolio, asyncio.Lock]] = {}

    def config_for(self, owner_id: str) -> PortfolioConfig:
        """Owner's account config, or the settings defaults."""
        account = self._trading_config.get_account(owner_id)
        if account is None:
            return PortfolioConfig.from_settings(self._settings)
        return account.to_portfolio_config(self._settings)

    def get(self, owner_id: str) -> PortfolioHandle:
        entry = self._entries.get(owner_id)
        if entry is None:
            config = self.config_for(owner_id)
            entry = (PaperTradingPortfolio(config), asyncio.Lock())
            self._entries[owner_id] = entry
            logger.info(
                "Created portfolio for '%s' (cash %.2f, commission %g, slippage %g)",
                owner_id,
                config.initial_cash,
                config.commission,
                config.slippage,
            )
        portfolio, lock = entry
        return PortfolioHandle(owner_id, portfolio, lock)

    def owners(self) -> list[str]:
        return list(self._entries)

    def remove(self, owner_id: str) -> bool:
        """Drop an owner's portfolio. Returns False if it did not exist."""
        if self._entries.pop(owner_id, None) is None:
            return False
        logger.info("Removed portfolio for '%s'", owner_id)
        return True

    def __contains__(self, owner_id: str) -> bool:
        return owner_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
