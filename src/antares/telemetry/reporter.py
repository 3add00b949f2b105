"""
Terminal dashboard for real-time status display.

Renders the latest engine snapshot as a box-drawn panel: header with
feed status, the ranked opportunities with the session best, and the
tail of the log.
"""

import asyncio
import sys
from collections.abc import Callable
from datetime import timedelta
from typing import TextIO

from antares import __version__
from antares.config.constants import (
    DASHBOARD_REFRESH_INTERVAL,
    DEFAULT_STALE_AFTER_SECONDS,
    RATE_WINDOW_SECONDS,
)
from antares.core.types import EngineSnapshot, Opportunity
from antares.telemetry.metrics import MetricsCollector, SlidingWindowCounter
from antares.utils.time import seconds_since_us


STATUS_INITIALIZING = "INITIALIZING"
STATUS_MONITORING = "MONITORING"
STATUS_STALE = "STALE"


class Dashboard:
    """
    Real-time terminal dashboard.

    ``update()`` only stores the snapshot; drawing happens on the
    dashboard's own task, so the engine never waits on the terminal.
    """

    # Box drawing characters
    BOX_TL = "\u2554"  # ╔
    BOX_TR = "\u2557"  # ╗
    BOX_BL = "\u255a"  # ╚
    BOX_BR = "\u255d"  # ╝
    BOX_H = "\u2550"  # ═
    BOX_V = "\u2551"  # ║
    BOX_LT = "\u2560"  # ╠
    BOX_RT = "\u2563"  # ╣

    def __init__(
        self,
        metrics: MetricsCollector | None = None,
        last_message_us: Callable[[], int] | None = None,
        width: int = 96,
        output: TextIO | None = None,
        stale_after_seconds: float = DEFAULT_STALE_AFTER_SECONDS,
        log_lines: int = 12,
    ) -> None:
        """
        Initialize dashboard.

        Args:
            metrics: Metrics collector, for uptime and recompute latency.
            last_message_us: Returns the feed's last receive time.
            width: Dashboard width in characters.
            output: Output stream (default: stdout).
            stale_after_seconds: Silence after which the feed shows STALE.
            log_lines: Log lines shown in the log panel.
        """
        self._metrics = metrics or MetricsCollector()
        self._last_message_us = last_message_us
        self._width = width
        self._output = output or sys.stdout
        self._stale_after = stale_after_seconds
        self._log_lines = log_lines

        self._snapshot: EngineSnapshot | None = None
        self._seen_messages = 0
        self._rate = SlidingWindowCounter(RATE_WINDOW_SECONDS)
        self._running = False
        self._task: asyncio.Task[None] | None = None

    # =========================================================================
    # State
    # =========================================================================

    def update(self, snapshot: EngineSnapshot) -> None:
        """Store the latest snapshot. Never blocks."""
        for _ in range(max(0, snapshot.messages_processed - self._seen_messages)):
            self._rate.increment()
        self._seen_messages = max(self._seen_messages, snapshot.messages_processed)
        self._snapshot = snapshot

    def status(self, snapshot: EngineSnapshot | None = None) -> str:
        """Get the header status for a snapshot."""
        snapshot = snapshot or self._snapshot
        if snapshot is None or not snapshot.is_ready:
            return STATUS_INITIALIZING

        last = self._last_message_us() if self._last_message_us else snapshot.timestamp_us
        if seconds_since_us(last) > self._stale_after:
            return STATUS_STALE
        return STATUS_MONITORING

    @property
    def snapshot(self) -> EngineSnapshot | None:
        """Get the latest stored snapshot."""
        return self._snapshot

    # =========================================================================
    # Formatting
    # =========================================================================

    @staticmethod
    def _format_uptime(seconds: float) -> str:
        """Format uptime as HH:MM:SS."""
        td = timedelta(seconds=int(seconds))
        hours, remainder = divmod(int(td.total_seconds()), 3600)
        minutes, secs = divmod(remainder, 60)
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"

    @staticmethod
    def _format_opportunity(opp: Opportunity) -> str:
        return f"x{opp.multiplier:.6f}  {opp.size:>14.6f} {opp.size_currency:<6} {opp.path}"

    def _pad(self, text: str, width: int) -> str:
        """Pad text to width."""
        return text.ljust(width)[:width]

    def _line(self, content: str) -> str:
        """Create a line with borders."""
        return f"{self.BOX_V}{self._pad(content, self._width - 2)}{self.BOX_V}"

    def _divider(self) -> str:
        """Create a horizontal divider."""
        return f"{self.BOX_LT}{self.BOX_H * (self._width - 2)}{self.BOX_RT}"

    def _graph_rows(self, snapshot: EngineSnapshot) -> list[str]:
        """
        Lay out the monitored currencies, marking the best-ever path.

        Args:
            snapshot: Snapshot carrying the currencies and best-ever record.

        Returns:
            Rows that fit inside the dashboard borders.
        """
        on_path = set(snapshot.best_ever.cycle.nodes) if snapshot.best_ever else set()
        tokens = [f"[{c}]" if c in on_path else c for c in snapshot.currencies]

        rows: list[str] = []
        row = " "
        for token in tokens:
            if len(row) > 1 and len(row) + len(token) + 1 > self._width - 2:
                rows.append(row)
                row = " "
            row += f" {token}"
        rows.append(row)
        return rows

    def render(self, snapshot: EngineSnapshot | None = None) -> str:
        """
        Render the dashboard.

        Args:
            snapshot: Snapshot to draw (default: the latest stored one).

        Returns:
            Formatted dashboard string.
        """
        snapshot = snapshot or self._snapshot
        lines = [f"{self.BOX_TL}{self.BOX_H * (self._width - 2)}{self.BOX_TR}"]

        if snapshot is None:
            lines.append(
                self._line(f"  ANTARES v{__version__} | {STATUS_INITIALIZING} | waiting for market data")
            )
            lines.append(f"{self.BOX_BL}{self.BOX_H * (self._width - 2)}{self.BOX_BR}")
            return "\n".join(lines)

        # Header
        header = (
            f"  ANTARES v{__version__} | {self.status(snapshot)} | "
            f"Edges {snapshot.edges_populated}/{snapshot.edge_count} | "
            f"{self._rate.rate_per_second():.1f} msgs/s | "
            f"Total {snapshot.messages_processed:,}"
        )
        lines.append(self._line(header))
        lines.append(self._divider())

        recompute = self._metrics.get_latency_stats("recompute")
        recompute_avg = f"{recompute.avg_us:.0f}μs" if recompute.count > 0 else "---"
        info = (
            f"  Uptime {self._format_uptime(self._metrics.uptime_seconds)} | "
            f"Currencies {snapshot.node_count} | Cycles {snapshot.cycle_count:,} | "
            f"Recompute avg {recompute_avg}"
        )
        lines.append(self._line(info))
        lines.append(self._divider())

        # Currency graph
        if snapshot.currencies:
            lines.append(self._line("  GRAPH ([X] on best-ever path)"))
            for row in self._graph_rows(snapshot):
                lines.append(self._line(row))
            lines.append(self._divider())

        # Opportunities
        lines.append(self._line("  OPPORTUNITIES (after fees)"))
        if snapshot.opportunities:
            for rank, opp in enumerate(snapshot.opportunities, start=1):
                lines.append(self._line(f"  {rank:>2}. {self._format_opportunity(opp)}"))
        else:
            lines.append(self._line("      none above threshold"))

        best_now = (
            self._format_opportunity(snapshot.current_best) if snapshot.current_best else "---"
        )
        best_ever = self._format_opportunity(snapshot.best_ever) if snapshot.best_ever else "---"
        lines.append(self._line(""))
        lines.append(self._line(f"  Best now:  {best_now}"))
        lines.append(self._line(f"  Best ever: {best_ever}"))
        lines.append(self._divider())

        # Log tail
        lines.append(self._line("  LOG"))
        for entry in snapshot.logs[-self._log_lines :]:
            lines.append(self._line(f"  {entry}"))

        lines.append(f"{self.BOX_BL}{self.BOX_H * (self._width - 2)}{self.BOX_BR}")
        return "\n".join(lines)

    # =========================================================================
    # Display Loop
    # =========================================================================

    def display(self) -> None:
        """Display the dashboard once."""
        # Clear screen and move cursor to top
        self._output.write("\033[2J\033[H")
        self._output.write(self.render())
        self._output.write("\n")
        self._output.flush()

    async def run(self, interval: float = DASHBOARD_REFRESH_INTERVAL) -> None:
        """
        Run continuous display updates.

        Args:
            interval: Update interval in seconds.
        """
        self._running = True

        while self._running:
            self.display()
            await asyncio.sleep(interval)

    def start(self, interval: float = DASHBOARD_REFRESH_INTERVAL) -> asyncio.Task[None]:
        """Start the dashboard as a background task."""
        self._task = asyncio.create_task(self.run(interval))
        return self._task

    def stop(self) -> None:
        """Stop the dashboard."""
        self._running = False
        if self._task:
            self._task.cancel()
            self._task = None

    def print_summary(self) -> None:
        """Print a final session summary."""
        snapshot = self._snapshot
        out = self._output
        recompute = self._metrics.get_latency_stats("recompute")

        print("\n" + "=" * 50, file=out)
        print("  SESSION SUMMARY", file=out)
        print("=" * 50, file=out)
        print(f"  Uptime: {self._format_uptime(self._metrics.uptime_seconds)}", file=out)

        if snapshot is not None:
            print(f"  Currencies: {snapshot.node_count}", file=out)
            print(f"  Cycles monitored: {snapshot.cycle_count:,}", file=out)
            print(f"  Messages processed: {snapshot.messages_processed:,}", file=out)

        print(file=out)
        print("  EVENTS:", file=out)
        print(f"    Applied:        {self._metrics.get_counter('events_applied'):,}", file=out)
        print(f"    Invalid quotes: {self._metrics.get_counter('invalid_quotes'):,}", file=out)
        print(f"    Reportable passes: {self._metrics.get_counter('reportable_passes'):,}", file=out)
        print(file=out)
        print("  RECOMPUTE LATENCY:", file=out)
        print(f"    avg {recompute.avg_us:.0f}μs  p99 {recompute.p99_us}μs", file=out)

        if snapshot is not None and snapshot.best_ever is not None:
            best = snapshot.best_ever
            print(file=out)
            print("  BEST EVER:", file=out)
            print(f"    {best.path}", file=out)
            print(f"    x{best.multiplier:.6f} ({best.profit_pct:+.4f}%)", file=out)
            print(f"    size {best.size:.6f} {best.size_currency}", file=out)
        print("=" * 50, file=out)
