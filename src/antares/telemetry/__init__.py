"""Telemetry module for logging, metrics, and reporting."""

from antares.telemetry.logger import AsyncLogger, LogBuffer, setup_logging
from antares.telemetry.metrics import MetricsCollector, SlidingWindowCounter
from antares.telemetry.reporter import Dashboard


__all__ = [
    "AsyncLogger",
    "Dashboard",
    "LogBuffer",
    "MetricsCollector",
    "SlidingWindowCounter",
    "setup_logging",
]
