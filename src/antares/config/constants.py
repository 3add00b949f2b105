"""
Market and engine constants.

This module contains the hardcoded values used throughout the engine.
Values are organized by category for easy maintenance and auditing.
"""

from typing import Final


# =============================================================================
# Coinbase Exchange Endpoints
# =============================================================================

COINBASE_REST_URL: Final[str] = "https://api.exchange.coinbase.com"
COINBASE_WS_URL: Final[str] = "wss://ws-feed.exchange.coinbase.com"

ENDPOINT_PRODUCTS: Final[str] = "/products"

# Channel carrying the top of book snapshot plus batched level 2 changes
FEED_CHANNEL: Final[str] = "level2_batch"

PAIR_STATUS_ONLINE: Final[str] = "online"


# =============================================================================
# Trading Fees
# =============================================================================

# Coinbase taker fee for the lowest volume tier (1.2%)
DEFAULT_FEE_RATE: Final[float] = 0.012


# =============================================================================
# Cycle Search
# =============================================================================

DEFAULT_MIN_CYCLE_LEN: Final[int] = 3
DEFAULT_MAX_CYCLE_LEN: Final[int] = 5

# Hard ceiling for the configurable upper bound; the search is exponential
MAX_CYCLE_LEN_LIMIT: Final[int] = 8


# =============================================================================
# Opportunity Reporting
# =============================================================================

# A cycle is reportable once its fee adjusted multiplier clears this value
DEFAULT_REPORT_THRESHOLD: Final[float] = 1.0

# Number of ranked opportunities kept per pass
DEFAULT_TOP_N: Final[int] = 10

# View-only fiat currencies that cannot be traded from a standard account
DEFAULT_EXCLUDED_CURRENCIES: Final[frozenset[str]] = frozenset({"EUR", "GBP"})


# =============================================================================
# Reconnection Strategy
# =============================================================================

MIN_RECONNECT_DELAY: Final[float] = 1.0  # seconds
MAX_RECONNECT_DELAY: Final[float] = 30.0  # seconds
RECONNECT_MULTIPLIER: Final[float] = 2.0


# =============================================================================
# WebSocket Configuration
# =============================================================================

WS_PING_INTERVAL: Final[float] = 20.0  # seconds
WS_RECEIVE_TIMEOUT: Final[float] = 60.0  # seconds
WS_MAX_MESSAGE_SIZE: Final[int] = 10 * 1024 * 1024  # 10MB
WS_CLOSE_TIMEOUT: Final[float] = 5.0  # seconds

HTTP_TIMEOUT: Final[float] = 15.0  # seconds


# =============================================================================
# Logging & Telemetry
# =============================================================================

LOG_FORMAT: Final[str] = "%(asctime)s.%(msecs)03d | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

# Short format for the dashboard log panel
LOG_BUFFER_FORMAT: Final[str] = "%(asctime)s %(levelname)-7s %(message)s"
LOG_BUFFER_DATE_FORMAT: Final[str] = "%H:%M:%S"

# Lines kept for the dashboard log panel
DEFAULT_LOG_BUFFER_SIZE: Final[int] = 100

# Maximum log queue size
MAX_LOG_QUEUE_SIZE: Final[int] = 10_000

# Dashboard refresh interval (seconds)
DASHBOARD_REFRESH_INTERVAL: Final[float] = 0.5

# Feed is reported stale after this many seconds without a message
DEFAULT_STALE_AFTER_SECONDS: Final[float] = 10.0

# Window used for the messages per second gauge
RATE_WINDOW_SECONDS: Final[float] = 5.0
