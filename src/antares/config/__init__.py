"""Configuration module for the arbitrage monitor."""

from antares.config.constants import (
    COINBASE_REST_URL,
    COINBASE_WS_URL,
    DEFAULT_FEE_RATE,
    MAX_RECONNECT_DELAY,
    MIN_RECONNECT_DELAY,
)
from antares.config.engine import EngineConfig
from antares.config.settings import Settings, get_settings


__all__ = [
    "EngineConfig",
    "Settings",
    "get_settings",
    "COINBASE_REST_URL",
    "COINBASE_WS_URL",
    "DEFAULT_FEE_RATE",
    "MIN_RECONNECT_DELAY",
    "MAX_RECONNECT_DELAY",
]
