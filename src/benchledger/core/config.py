"""Configuration management for benchledger.

This module provides configuration classes using pydantic-settings
for environment variable management and validation.
"""

from __future__ import annotations

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from benchledger.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables with
    the BENCHLEDGER_ prefix.

    Attributes:
        ledger_path: Default path of the ledger document.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        window_size: Number of prior values averaged into a baseline.
        lower_threshold: Ratio below which a higher-is-better value regresses.
        upper_threshold: Ratio above which a lower-is-better value regresses.
        max_runs: Runs kept per suite after each append (None = unlimited).

    Example:
        >>> # export BENCHLEDGER_WINDOW_SIZE=5
        >>> settings = Settings()
        >>> settings.window_size
        5

    Environment Variables:
        BENCHLEDGER_LEDGER_PATH: Ledger file (default: benchmark-data/data.json)
        BENCHLEDGER_LOG_LEVEL: Logging level (default: INFO)
        BENCHLEDGER_WINDOW_SIZE: Baseline window (default: 1)
        BENCHLEDGER_LOWER_THRESHOLD: Lower ratio threshold (default: 0.80)
        BENCHLEDGER_UPPER_THRESHOLD: Upper ratio threshold (default: 1.25)
        BENCHLEDGER_MAX_RUNS: Runs kept per suite on append (optional)
    """

    model_config = SettingsConfigDict(
        env_prefix="BENCHLEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    ledger_path: str = Field(
        default="benchmark-data/data.json",
        description="Path of the ledger document",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    window_size: int = Field(
        default=1,
        ge=1,
        description="Number of prior values averaged into a baseline",
    )
    lower_threshold: float = Field(
        default=0.80,
        gt=0,
        description="Ratio below which a higher-is-better measurement regresses",
    )
    upper_threshold: float = Field(
        default=1.25,
        gt=0,
        description="Ratio above which a lower-is-better measurement regresses",
    )
    max_runs: int | None = Field(
        default=None,
        ge=1,
        description="Runs kept per suite after each append (None = unlimited)",
    )


def load_settings() -> Settings:
    """Load settings from the environment.

    Raises:
        ConfigurationError: If an environment value is invalid.
    """
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid BENCHLEDGER_ settings: {e}") from e
