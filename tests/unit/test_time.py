"""
Unit tests for time utilities.
"""

import pytest

from antares.utils.time import LatencyTimer, format_duration_us, get_timestamp_us, seconds_since_us


@pytest.mark.parametrize(
    "duration_us,expected",
    [(500, "500μs"), (1500, "1.50ms"), (1_500_000, "1.50s")],
)
def test_format_duration_us(duration_us: int, expected: str) -> None:
    assert format_duration_us(duration_us) == expected


def test_seconds_since_unset_timestamp() -> None:
    """Test that a never-set timestamp reads as infinitely old."""
    assert seconds_since_us(0) == float("inf")


def test_seconds_since_recent_timestamp() -> None:
    elapsed = seconds_since_us(get_timestamp_us() - 2_000_000)

    assert 2.0 <= elapsed < 3.0


def test_latency_timer() -> None:
    with LatencyTimer() as timer:
        sum(range(1000))

    assert timer.end_us >= timer.start_us
    assert timer.latency_us == timer.end_us - timer.start_us
