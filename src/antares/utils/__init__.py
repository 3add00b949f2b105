"""Utility functions for the arbitrage monitor."""

from antares.utils.time import (
    LatencyTimer,
    format_duration_us,
    get_timestamp_us,
    seconds_since_us,
)


__all__ = [
    "LatencyTimer",
    "format_duration_us",
    "get_timestamp_us",
    "seconds_since_us",
]
