"""
Metrics collection for performance monitoring.

Tracks latencies, counters, and detection statistics
with efficient in-memory storage.
"""

import time
from collections import deque
from dataclasses import dataclass


@dataclass
class LatencyStats:
    """Aggregated latency statistics."""

    min_us: int = 0
    max_us: int = 0
    avg_us: float = 0.0
    p50_us: int = 0
    p95_us: int = 0
    p99_us: int = 0
    count: int = 0


@dataclass
class DetectionStats:
    """Opportunity detection statistics."""

    passes: int = 0
    reportable_passes: int = 0
    best_multiplier: float = 0.0

    @property
    def reportable_rate(self) -> float:
        """Fraction of passes that had at least one reportable cycle."""
        return self.reportable_passes / self.passes if self.passes > 0 else 0.0


class MetricsCollector:
    """
    Collects and aggregates performance metrics.

    Features:
    - Rolling window latency tracking
    - Counter-based event tracking
    - Best multiplier tracking
    """

    def __init__(
        self,
        latency_window_size: int = 1000,
    ) -> None:
        """
        Initialize metrics collector.

        Args:
            latency_window_size: Number of samples to keep for latency stats.
        """
        self._window_size = latency_window_size
        self._latencies: dict[str, deque[int]] = {}
        self._counters: dict[str, int] = {}
        self._detection_stats = DetectionStats()
        self._start_time = time.time()

    def record_latency(self, name: str, latency_us: int) -> None:
        """
        Record a latency measurement.

        Args:
            name: Metric name (e.g., "recompute").
            latency_us: Latency in microseconds.
        """
        if name not in self._latencies:
            self._latencies[name] = deque(maxlen=self._window_size)

        self._latencies[name].append(latency_us)

    def increment_counter(self, name: str, value: int = 1) -> None:
        """
        Increment a counter.

        Args:
            name: Counter name.
            value: Amount to increment.
        """
        self._counters[name] = self._counters.get(name, 0) + value

    def get_counter(self, name: str) -> int:
        """Get counter value."""
        return self._counters.get(name, 0)

    def record_pass(self, best_multiplier: float | None, reportable: bool) -> None:
        """
        Record one ranking pass.

        Args:
            best_multiplier: Multiplier of the top cycle, if any.
            reportable: Whether any cycle cleared the report threshold.
        """
        self._detection_stats.passes += 1

        if reportable:
            self._detection_stats.reportable_passes += 1
            self.increment_counter("reportable_passes")

        if best_multiplier is not None and best_multiplier > self._detection_stats.best_multiplier:
            self._detection_stats.best_multiplier = best_multiplier

    def get_latency_stats(self, name: str) -> LatencyStats:
        """
        Get latency statistics for a metric.

        Args:
            name: Metric name.

        Returns:
            LatencyStats with aggregated values.
        """
        samples = self._latencies.get(name)
        if not samples:
            return LatencyStats()

        sorted_samples = sorted(samples)
        n = len(sorted_samples)

        return LatencyStats(
            min_us=sorted_samples[0],
            max_us=sorted_samples[-1],
            avg_us=sum(sorted_samples) / n,
            p50_us=sorted_samples[n // 2],
            p95_us=sorted_samples[int(n * 0.95)],
            p99_us=sorted_samples[int(n * 0.99)] if n > 1 else sorted_samples[-1],
            count=n,
        )

    def get_all_latency_stats(self) -> dict[str, LatencyStats]:
        """Get latency stats for all metrics."""
        return {name: self.get_latency_stats(name) for name in self._latencies}

    @property
    def detection_stats(self) -> DetectionStats:
        """Get detection statistics."""
        return self._detection_stats

    @property
    def uptime_seconds(self) -> float:
        """Get uptime in seconds."""
        return time.time() - self._start_time

    def to_dict(self) -> dict[str, object]:
        """
        Export all metrics as a dict.

        Returns:
            Dict representation of all metrics.
        """
        return {
            "uptime_seconds": self.uptime_seconds,
            "counters": dict(self._counters),
            "latencies": {
                name: {
                    "min": stats.min_us,
                    "max": stats.max_us,
                    "avg": stats.avg_us,
                    "p50": stats.p50_us,
                    "p99": stats.p99_us,
                    "count": stats.count,
                }
                for name, stats in self.get_all_latency_stats().items()
            },
            "detection": {
                "passes": self._detection_stats.passes,
                "reportable_passes": self._detection_stats.reportable_passes,
                "reportable_rate": self._detection_stats.reportable_rate,
                "best_multiplier": self._detection_stats.best_multiplier,
            },
        }

    def reset(self) -> None:
        """Reset all metrics."""
        self._latencies.clear()
        self._counters.clear()
        self._detection_stats = DetectionStats()
        self._start_time = time.time()


class SlidingWindowCounter:
    """
    Counter with sliding time window.

    Tracks counts over a rolling time period.
    """

    def __init__(self, window_seconds: float = 60.0) -> None:
        """
        Initialize sliding window counter.

        Args:
            window_seconds: Size of the time window.
        """
        self._window_seconds = window_seconds
        self._events: deque[float] = deque()

    def increment(self) -> None:
        """Record an event at current time."""
        now = time.time()
        self._events.append(now)
        self._prune(now)

    def _prune(self, now: float) -> None:
        """Remove events outside the window."""
        cutoff = now - self._window_seconds
        while self._events and self._events[0] < cutoff:
            self._events.popleft()

    def count(self) -> int:
        """Get count of events in window."""
        self._prune(time.time())
        return len(self._events)

    def rate_per_second(self) -> float:
        """Get rate per second."""
        return self.count() / self._window_seconds
