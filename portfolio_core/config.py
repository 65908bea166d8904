# portfolio_core/config.py
"""
Engine configuration using Pydantic Settings.

Loads configuration from environment variables with validation:
- REPORTING_CURRENCY: Currency all valuations are expressed in (JPY)
- LOG_LEVEL, LOG_FORMAT: Passed to setup_logging()
- MARKET_DATA_*: Provider pacing and retry behaviour
- PRICE_CACHE_TTL_SECONDS: Lifetime of cached quotes

Usage:
    from portfolio_core.config import settings

    pair = f"USD{settings.reporting_currency}"
"""
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """
    Engine settings loaded from environment variables.

    Environment variables:
        - LOG_LEVEL: Logging level (default: "INFO")
        - LOG_FORMAT: "text" or "json" (default: "text")
        - REPORTING_CURRENCY: ISO 4217 code (default: "JPY")

    Market data pacing (optional, with sensible defaults):
        - MARKET_DATA_MIN_REQUEST_INTERVAL: Seconds between requests (default: 0.1)
        - MARKET_DATA_MAX_JITTER: Random extra delay in seconds (default: 0.1)
        - MARKET_DATA_RETRY_ATTEMPTS: Attempts on transient errors (default: 3)
        - PRICE_CACHE_TTL_SECONDS: Quote cache lifetime (default: 86400)
    """

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="Log output format"
    )

    reporting_currency: str = Field(
        default="JPY",
        min_length=3,
        max_length=3,
        description="Currency every valuation is reported in"
    )

    # =========================================================================
    # MARKET DATA
    # =========================================================================
    market_data_min_request_interval: float = Field(
        default=0.1,
        ge=0,
        description="Minimum seconds between two provider requests"
    )
    market_data_max_jitter: float = Field(
        default=0.1,
        ge=0,
        description="Upper bound of the random delay added to each wait"
    )
    market_data_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Total attempts for retryable provider errors"
    )
    price_cache_ttl_seconds: int = Field(
        default=86400,
        ge=0,
        description="Seconds a cached quote stays valid"
    )

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE) if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("reporting_currency", mode="before")
    @classmethod
    def normalize_currency(cls, value: str) -> str:
        """Currency codes are stored upper-case."""
        return str(value).strip().upper()


settings = Settings()
