"""
Application settings with environment variable support.

Uses Pydantic Settings for type-safe configuration with automatic
environment variable loading and validation.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from antares.config.constants import (
    COINBASE_REST_URL,
    COINBASE_WS_URL,
    DASHBOARD_REFRESH_INTERVAL,
    DEFAULT_EXCLUDED_CURRENCIES,
    DEFAULT_FEE_RATE,
    DEFAULT_LOG_BUFFER_SIZE,
    DEFAULT_MAX_CYCLE_LEN,
    DEFAULT_MIN_CYCLE_LEN,
    DEFAULT_REPORT_THRESHOLD,
    DEFAULT_STALE_AFTER_SECONDS,
    DEFAULT_TOP_N,
    MAX_CYCLE_LEN_LIMIT,
)
from antares.config.engine import EngineConfig


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every field can be overridden with an ``ANTARES_`` prefixed
    environment variable or a ``.env`` file. Set-valued fields take
    JSON, e.g. ``ANTARES_EXCLUDED_CURRENCIES='["EUR", "GBP", "USDT"]'``.
    """

    model_config = SettingsConfigDict(
        env_prefix="ANTARES_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Network Configuration
    # =========================================================================

    rest_url: str = Field(
        default=COINBASE_REST_URL,
        description="Coinbase Exchange REST base URL for the pair catalog",
    )

    ws_url: str = Field(
        default=COINBASE_WS_URL,
        description="Coinbase Exchange WebSocket feed URL",
    )

    # =========================================================================
    # Arbitrage Configuration
    # =========================================================================

    fee_rate: float = Field(
        default=DEFAULT_FEE_RATE,
        ge=0.0,
        lt=1.0,
        description="Taker fee applied on every hop (e.g., 0.012 = 1.2%)",
    )

    min_cycle_len: int = Field(
        default=DEFAULT_MIN_CYCLE_LEN,
        ge=3,
        description="Shortest cycle (edge count) to evaluate",
    )

    max_cycle_len: int = Field(
        default=DEFAULT_MAX_CYCLE_LEN,
        ge=3,
        le=MAX_CYCLE_LEN_LIMIT,
        description="Longest cycle (edge count) to evaluate",
    )

    report_threshold: float = Field(
        default=DEFAULT_REPORT_THRESHOLD,
        gt=0.0,
        description="Multiplier a cycle must exceed to be reported",
    )

    excluded_currencies: frozenset[str] = Field(
        default=DEFAULT_EXCLUDED_CURRENCIES,
        description="Currencies dropped from the graph before cycle search",
    )

    top_n: int = Field(
        default=DEFAULT_TOP_N,
        ge=1,
        le=100,
        description="Number of ranked opportunities shown per pass",
    )

    enumeration_budget: int | None = Field(
        default=None,
        ge=1,
        description="Neighbor steps allowed per component before it is abandoned",
    )

    # =========================================================================
    # Operation Mode
    # =========================================================================

    simulate: bool = Field(
        default=False,
        description="Use the offline market simulator instead of Coinbase",
    )

    simulation_tick_ms: int = Field(
        default=200,
        ge=1,
        le=60_000,
        description="Interval between simulated order book updates",
    )

    dashboard: bool = Field(
        default=True,
        description="Render the terminal dashboard",
    )

    dashboard_interval: float = Field(
        default=DASHBOARD_REFRESH_INTERVAL,
        gt=0.0,
        le=60.0,
        description="Seconds between dashboard redraws",
    )

    stale_after_seconds: float = Field(
        default=DEFAULT_STALE_AFTER_SECONDS,
        gt=0.0,
        description="Seconds without feed traffic before the feed is flagged stale",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional file receiving the full log",
    )

    log_buffer_size: int = Field(
        default=DEFAULT_LOG_BUFFER_SIZE,
        ge=1,
        le=10_000,
        description="Log lines kept for the dashboard panel",
    )

    # =========================================================================
    # Performance Tuning
    # =========================================================================

    use_uvloop: bool = Field(
        default=True,
        description="Use uvloop for improved async performance",
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("excluded_currencies", mode="after")
    @classmethod
    def normalize_currencies(cls, v: frozenset[str]) -> frozenset[str]:
        """Currency symbols are compared upper case."""
        return frozenset(c.strip().upper() for c in v if c.strip())

    @model_validator(mode="after")
    def validate_cycle_bounds(self) -> "Settings":
        """Ensure the cycle length window is not empty."""
        if self.min_cycle_len > self.max_cycle_len:
            raise ValueError(
                f"min_cycle_len ({self.min_cycle_len}) exceeds "
                f"max_cycle_len ({self.max_cycle_len})"
            )
        return self

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def hop_multiplier(self) -> float:
        """Fraction of value kept after paying the fee on one hop."""
        return 1.0 - self.fee_rate

    def engine_config(self) -> EngineConfig:
        """Project the settings onto the engine's construction config."""
        return EngineConfig(
            fee_rate=self.fee_rate,
            min_cycle_len=self.min_cycle_len,
            max_cycle_len=self.max_cycle_len,
            report_threshold=self.report_threshold,
            excluded_currencies=self.excluded_currencies,
            top_n=self.top_n,
            enumeration_budget=self.enumeration_budget,
            log_buffer_size=self.log_buffer_size,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are loaded only once.
    Clear cache with `get_settings.cache_clear()` if needed.
    """
    return Settings()
