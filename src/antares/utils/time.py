"""
High-precision time utilities.

Provides microsecond-precision timestamps for latency measurement,
feed staleness tracking, and display.
"""

import time


def get_timestamp_us() -> int:
    """
    Get current timestamp in microseconds.

    Uses time.time_ns() for maximum precision, then converts to microseconds.
    This is faster than datetime operations.

    Returns:
        Current Unix timestamp in microseconds.
    """
    return time.time_ns() // 1000


def seconds_since_us(timestamp_us: int) -> float:
    """
    Get the seconds elapsed since a microsecond timestamp.

    Args:
        timestamp_us: Earlier timestamp in microseconds.

    Returns:
        Elapsed seconds, or infinity for a zero timestamp (never set).
    """
    if timestamp_us <= 0:
        return float("inf")
    return (get_timestamp_us() - timestamp_us) / 1_000_000


class LatencyTimer:
    """
    Context manager for measuring operation latency.

    Example:
        >>> with LatencyTimer() as timer:
        ...     do_something()
        >>> print(f"Latency: {timer.latency_us}μs")
    """

    __slots__ = ("start_us", "end_us", "latency_us")

    def __init__(self) -> None:
        self.start_us: int = 0
        self.end_us: int = 0
        self.latency_us: int = 0

    def __enter__(self) -> "LatencyTimer":
        self.start_us = get_timestamp_us()
        return self

    def __exit__(self, *args: object) -> None:
        self.end_us = get_timestamp_us()
        self.latency_us = self.end_us - self.start_us


def format_duration_us(duration_us: int) -> str:
    """
    Format a duration in microseconds for human-readable display.

    Args:
        duration_us: Duration in microseconds.

    Returns:
        Formatted duration string.

    Examples:
        >>> format_duration_us(500)
        '500μs'
        >>> format_duration_us(1500)
        '1.50ms'
        >>> format_duration_us(1500000)
        '1.50s'
    """
    if duration_us < 1000:
        return f"{duration_us}μs"
    elif duration_us < 1_000_000:
        return f"{duration_us / 1000:.2f}ms"
    else:
        return f"{duration_us / 1_000_000:.2f}s"
