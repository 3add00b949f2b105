"""
Async queue-based logging system.

Provides non-blocking logging so that console and file I/O never
stall the market data loop, plus an in-memory buffer of recent lines
for the dashboard log panel.
"""

import logging
import sys
from collections import deque
from datetime import datetime
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path
from queue import Queue

from antares.config.constants import (
    DEFAULT_LOG_BUFFER_SIZE,
    LOG_BUFFER_DATE_FORMAT,
    LOG_BUFFER_FORMAT,
    LOG_DATE_FORMAT,
    LOG_FORMAT,
    MAX_LOG_QUEUE_SIZE,
)


class MicrosecondFormatter(logging.Formatter):
    """Formatter with microsecond precision timestamps."""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        """Format time with microseconds."""
        ct = datetime.fromtimestamp(record.created)
        s = ct.strftime(datefmt or LOG_DATE_FORMAT)
        return f"{s}.{int(record.msecs * 1000):06d}"


class LogBuffer(logging.Handler):
    """
    Logging handler that keeps the most recent formatted lines.

    Bounded by ``capacity``; the oldest line is dropped first.
    """

    def __init__(self, capacity: int = DEFAULT_LOG_BUFFER_SIZE, level: int = logging.INFO) -> None:
        """
        Initialize log buffer.

        Args:
            capacity: Maximum lines retained.
            level: Minimum record level captured.
        """
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        super().__init__(level)
        self._lines: deque[str] = deque(maxlen=capacity)
        self.setFormatter(logging.Formatter(LOG_BUFFER_FORMAT, LOG_BUFFER_DATE_FORMAT))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._lines.append(self.format(record))
        except Exception:
            self.handleError(record)

    def lines(self) -> tuple[str, ...]:
        """Get buffered lines, oldest first."""
        return tuple(self._lines)

    def clear(self) -> None:
        self._lines.clear()

    @property
    def capacity(self) -> int:
        return self._lines.maxlen or 0

    def __len__(self) -> int:
        return len(self._lines)


class AsyncLogger:
    """
    Async-friendly logger with queue-based output.

    All logging calls are non-blocking - messages are queued
    and written by a background thread.
    """

    def __init__(
        self,
        name: str,
        level: int = logging.INFO,
        log_file: Path | None = None,
        console: bool = True,
    ) -> None:
        """
        Initialize async logger.

        Args:
            name: Logger name.
            level: Logging level.
            log_file: Optional file path for logging.
            console: Write to stdout. Disabled while the dashboard owns the screen.
        """
        self._name = name
        self._level = level
        self._log_file = log_file
        self._console = console
        self._queue: Queue[logging.LogRecord] = Queue(maxsize=MAX_LOG_QUEUE_SIZE)
        self._queue_handler: QueueHandler | None = None
        self._listener: QueueListener | None = None
        self._logger = logging.getLogger(name)

    def start(self) -> None:
        """Start the async logging system."""
        formatter = MicrosecondFormatter(LOG_FORMAT, LOG_DATE_FORMAT)
        handlers: list[logging.Handler] = []

        if self._console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setFormatter(formatter)
            console_handler.setLevel(self._level)
            handlers.append(console_handler)

        if self._log_file:
            self._log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(self._log_file)
            file_handler.setFormatter(formatter)
            file_handler.setLevel(logging.DEBUG)  # Log everything to file
            handlers.append(file_handler)

        self._logger.setLevel(min(self._level, logging.DEBUG) if self._log_file else self._level)
        if not handlers:
            return

        # Queue handler for non-blocking logging
        self._queue_handler = QueueHandler(self._queue)
        self._logger.addHandler(self._queue_handler)

        self._listener = QueueListener(
            self._queue,
            *handlers,
            respect_handler_level=True,
        )
        self._listener.start()

    def stop(self) -> None:
        """Stop the async logging system, flushing queued records."""
        if self._listener:
            self._listener.stop()
            self._listener = None
        if self._queue_handler:
            self._logger.removeHandler(self._queue_handler)
            self._queue_handler = None

    @property
    def logger(self) -> logging.Logger:
        """Get the underlying logger."""
        return self._logger

    def __enter__(self) -> "AsyncLogger":
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.stop()


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    console: bool = True,
) -> AsyncLogger:
    """
    Set up application-wide logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional log file path.
        console: Write log lines to stdout.

    Returns:
        Configured AsyncLogger instance.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    async_logger = AsyncLogger(
        name="antares",
        level=numeric_level,
        log_file=log_file,
        console=console,
    )
    async_logger.start()

    # Suppress noisy third-party loggers
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    return async_logger
