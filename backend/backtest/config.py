"""Backtest-specific configuration.

Independent of app/config.py. ``BacktestSettings`` supplies environment
defaults; ``BacktestConfig`` is the validated per-run configuration.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PositionSizing(str, Enum):
    """How the engine sizes each entry.

    - fixed: ``position_size_value`` dollars per trade
    - percent: ``position_size_value`` percent of current cash
    - atr: risk ``risk_per_trade`` percent of cash against the signal's stop
    - kelly: fractional Kelly from the running trade ledger
    """

    FIXED = "fixed"
    PERCENT = "percent"
    ATR = "atr"
    KELLY = "kelly"


class BacktestSettings(BaseSettings):
    """Backtest defaults loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="BACKTEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    initial_capital: float = 100_000
    commission: float = 0.001
    slippage: float = 0.001
    position_sizing: PositionSizing = PositionSizing.PERCENT
    position_size_value: float = 10
    max_positions: int = 5
    risk_per_trade: float = 2
    kelly_fraction: float = 0.25
    warmup: int = 50


_settings: BacktestSettings | None = None


def get_backtest_settings() -> BacktestSettings:
    """Get cached backtest settings instance."""
    global _settings
    if _settings is None:
        _settings = BacktestSettings()
    return _settings


class BacktestConfig(BaseModel):
    """Configuration for one backtest run."""

    model_config = ConfigDict(frozen=True)

    initial_capital: float = 100_000
    commission: float = 0.001  # fraction of notional, per leg
    slippage: float = 0.001  # fraction of price, always adverse
    position_sizing: PositionSizing = PositionSizing.PERCENT
    position_size_value: float = 10
    max_positions: int = 5
    risk_per_trade: float = 2  # percent of cash
    kelly_fraction: float = Field(default=0.25, gt=0, le=1)

    @model_validator(mode="after")
    def _validate(self):
        if self.initial_capital <= 0:
            raise ValueError("initial_capital must be positive")
        if self.commission < 0 or self.slippage < 0:
            raise ValueError("commission and slippage must be non-negative")
        if self.max_positions < 1:
            raise ValueError("max_positions must be at least 1")
        if self.position_size_value < 0 or self.risk_per_trade < 0:
            raise ValueError("position_size_value and risk_per_trade must be non-negative")
        return self

    @classmethod
    def from_settings(cls, settings: BacktestSettings | None = None) -> "BacktestConfig":
        s = settings or get_backtest_settings()
        return cls(
            initial_capital=s.initial_capital,
            commission=s.commission,
            slippage=s.slippage,
            position_sizing=s.position_sizing,
            position_size_value=s.position_size_value,
            max_positions=s.max_positions,
            risk_per_trade=s.risk_per_trade,
            kelly_fraction=s.kelly_fraction,
        )
