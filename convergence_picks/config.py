"""Configuration management for the pick engine.

Settings are loaded from environment variables (prefix ``PICKS_``) and an
optional ``.env`` file using pydantic-settings. Invalid values fail at
startup, before any game is scored.
"""

from functools import lru_cache

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from convergence_picks.exceptions import InvalidConfiguration


class Settings(BaseSettings):
    """Engine settings loaded from environment variables.

    Optional settings (all have defaults):
    - PICKS_ENVIRONMENT: Runtime environment (default: development)
    - PICKS_LOG_MODE: "production" for JSON logs, anything else for console
    - PICKS_MIN_ACTIVE_SIGNALS: Active signals required before scoring away from 50
    - PICKS_FALLBACK_WEIGHT: Weight for categories missing from a weight table
    - PICKS_RIDGE_LAMBDA: Default ridge penalty for the totals model
    - PICKS_BOOTSTRAP_ITERATIONS / PICKS_BOOTSTRAP_SEED: Backtest CI resampling
    - PICKS_MAX_WORKERS: Worker threads for per-game scoring and sweeps
    - PICKS_TIER_TABLE_VERSION: Tier table to use (latest when empty)
    - PICKS_STRICT_LOOKAHEAD: Assert point-in-time lookups (keep on outside benchmarks)
    """

    environment: str = Field(default="development")
    log_mode: str = Field(default="development")

    # Scoring
    min_active_signals: int = Field(default=3, ge=0, le=20)
    fallback_weight: float = Field(default=0.1, ge=0.0, le=1.0)
    tier_table_version: str = Field(
        default="",
        description="Tier table version to apply; empty selects the latest",
    )

    # Modeling
    ridge_lambda: float = Field(default=1.0, ge=0.0)

    # Backtesting
    bootstrap_iterations: int = Field(default=1000, ge=100, le=100_000)
    bootstrap_seed: int = Field(default=42)
    max_workers: int = Field(default=4, ge=1, le=64)

    strict_lookahead: bool = Field(default=True)

    model_config = SettingsConfigDict(
        env_prefix="PICKS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance (singleton).

    Returns:
        Settings instance with validated configuration

    Raises:
        InvalidConfiguration: If any environment value fails validation
    """
    try:
        return Settings()
    except ValidationError as e:
        raise InvalidConfiguration(f"Invalid engine settings: {e}") from e
