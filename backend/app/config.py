"""Application configuration."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Paper-trading settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PAPER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Default account parameters (per-owner overrides live in paper_trading.yaml)
    initial_cash: float = 100_000
    commission: float = 0.001
    slippage: float = 0.001

    accounts_file: Path = Path(__file__).parent.parent / "paper_trading.yaml"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
