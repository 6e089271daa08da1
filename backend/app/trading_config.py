"""Paper-trading account configuration loaded from paper_trading.yaml.

Supports:
- Multiple owners, each with its own starting cash, commission and slippage
- Disabled accounts (kept in the file, never served)
- Backward compatible: no YAML file = no per-owner overrides
"""

import logging
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)


class PortfolioConfig(BaseModel):
    """Resolved parameters of one paper-trading portfolio."""

    model_config = ConfigDict(frozen=True)

    initial_cash: float = Field(default=100_000, gt=0)
    commission: float = Field(default=0.001, ge=0)  # fraction of notional per fill
    slippage: float = Field(default=0.001, ge=0)  # fraction applied to market fills

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "PortfolioConfig":
        s = settings or get_settings()
        return cls(initial_cash=s.initial_cash, commission=s.commission, slippage=s.slippage)


class AccountConfig(BaseModel):
    """One owner's paper-trading account.

    Unset fields fall back to the application ``Settings``.
    """

    owner_id: str
    initial_cash: float | None = None
    commission: float | None = None
    slippage: float | None = None
    enabled: bool = True

    def to_portfolio_config(self, settings: Settings | None = None) -> PortfolioConfig:
        s = settings or get_settings()
        return PortfolioConfig(
            initial_cash=s.initial_cash if self.initial_cash is None else self.initial_cash,
            commission=s.commission if self.commission is None else self.commission,
            slippage=s.slippage if self.slippage is None else self.slippage,
        )


class TradingConfig(BaseModel):
    """Top-level paper_trading.yaml configuration."""

    accounts: list[AccountConfig] = []

    @model_validator(mode="after")
    def _validate(self):
        seen: set[str] = set()
        for account in self.accounts:
            if account.owner_id in seen:
                raise ValueError(f"duplicate owner_id '{account.owner_id}'")
            seen.add(account.owner_id)
        return self

    def get_enabled_accounts(self) -> list[AccountConfig]:
        return [a for a in self.accounts if a.enabled]

    def get_account(self, owner_id: str) -> AccountConfig | None:
        """Return the owner's account, or None if absent or disabled."""
        for account in self.accounts:
            if account.owner_id == owner_id and account.enabled:
                return account
        return None


def load_trading_config(path: Path | None = None) -> TradingConfig:
    """Load account config from YAML file.

    Falls back to defaults (no accounts) if file doesn't exist.
    """
    config_path = path or get_settings().accounts_file

    # Load .env into os.environ so PAPER_* overrides apply to Settings
    env_path = config_path.parent / ".env"
    load_dotenv(env_path, override=False)

    if not config_path.exists():
        logger.info("No account file found at %s, using defaults", config_path)
        return TradingConfig()

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    config = TradingConfig(**raw)
    logger.info(
        "Loaded paper-trading config: %d accounts (%d enabled)",
        len(config.accounts),
        len(config.get_enabled_accounts()),
    )
    return config
