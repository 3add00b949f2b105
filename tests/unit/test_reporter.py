"""
Unit tests for the terminal dashboard.
"""

import asyncio
import io

import pytest

from antares.core.types import Cycle, EngineSnapshot, EngineState, GainResult
from antares.strategy.opportunity import make_opportunity
from antares.telemetry.metrics import MetricsCollector
from antares.telemetry.reporter import (
    STATUS_INITIALIZING,
    STATUS_MONITORING,
    STATUS_STALE,
    Dashboard,
)
from antares.utils.time import get_timestamp_us


def make_snapshot(
    populated: int = 3,
    messages: int = 5,
    with_opportunity: bool = True,
    logs: tuple[str, ...] = (),
    currencies: tuple[str, ...] = ("BTC", "ETH", "USD"),
) -> EngineSnapshot:
    cycle = Cycle.from_path(["USD", "BTC", "ETH"])
    opp = make_opportunity(cycle, GainResult(1.0125, 42.5), timestamp_us=1)
    return EngineSnapshot(
        state=EngineState.LIVE,
        node_count=3,
        edge_count=3,
        cycle_count=2,
        edges_populated=populated,
        messages_processed=messages,
        opportunities=(opp,) if with_opportunity else (),
        current_best=opp if with_opportunity else None,
        best_ever=opp if with_opportunity else None,
        logs=logs,
        timestamp_us=get_timestamp_us(),
        currencies=currencies,
    )


class TestDashboard:
    """Tests for Dashboard."""

    @pytest.fixture
    def output(self) -> io.StringIO:
        return io.StringIO()

    def test_render_without_snapshot(self, output: io.StringIO) -> None:
        dashboard = Dashboard(output=output)

        text = dashboard.render()

        assert STATUS_INITIALIZING in text
        assert "waiting for market data" in text

    def test_render_with_opportunity(self, output: io.StringIO) -> None:
        dashboard = Dashboard(output=output, last_message_us=get_timestamp_us)
        dashboard.update(make_snapshot(logs=("12:00:00 INFO    hello",)))

        text = dashboard.render()

        assert STATUS_MONITORING in text
        assert "USD > BTC > ETH > USD" in text
        assert "x1.012500" in text
        assert "Best ever" in text
        assert "hello" in text

    def test_render_lines_have_fixed_width(self) -> None:
        dashboard = Dashboard(width=80, last_message_us=get_timestamp_us)
        dashboard.update(make_snapshot())

        assert all(len(line) == 80 for line in dashboard.render().splitlines())

    def test_render_no_opportunities(self) -> None:
        dashboard = Dashboard(last_message_us=get_timestamp_us)
        dashboard.update(make_snapshot(with_opportunity=False))

        text = dashboard.render()

        assert "none above threshold" in text
        assert "Best now:  ---" in text

    def test_graph_panel_marks_best_ever_path(self) -> None:
        dashboard = Dashboard(last_message_us=get_timestamp_us)
        dashboard.update(make_snapshot(currencies=("BTC", "ETH", "SOL", "USD")))

        text = dashboard.render()

        assert "GRAPH" in text
        assert "[BTC] [ETH] SOL [USD]" in text

    def test_graph_panel_unmarked_without_best_ever(self) -> None:
        dashboard = Dashboard(last_message_us=get_timestamp_us)
        dashboard.update(make_snapshot(with_opportunity=False))

        assert "  BTC ETH USD" in dashboard.render()

    def test_graph_panel_wraps_long_catalogs(self) -> None:
        """Test that many currencies spill onto extra rows inside the border."""
        currencies = tuple(f"C{i:03d}" for i in range(60))
        dashboard = Dashboard(width=60, last_message_us=get_timestamp_us)
        dashboard.update(make_snapshot(currencies=currencies))

        rows = dashboard._graph_rows(dashboard.snapshot)

        assert len(rows) > 1
        assert all(len(row) <= 58 for row in rows)
        assert " ".join(rows).split() == list(currencies)

    def test_status_initializing_until_all_edges_quoted(self) -> None:
        dashboard = Dashboard(last_message_us=get_timestamp_us)
        dashboard.update(make_snapshot(populated=2))

        assert dashboard.status() == STATUS_INITIALIZING

    def test_status_stale_after_silence(self) -> None:
        """Test that an old last-message time flips the status to STALE."""
        old = get_timestamp_us() - 30_000_000
        dashboard = Dashboard(last_message_us=lambda: old, stale_after_seconds=10.0)
        dashboard.update(make_snapshot())

        assert dashboard.status() == STATUS_STALE

    def test_update_tracks_latest_snapshot(self) -> None:
        dashboard = Dashboard()
        first = make_snapshot(messages=1)
        second = make_snapshot(messages=4)

        dashboard.update(first)
        dashboard.update(second)

        assert dashboard.snapshot is second

    def test_display_writes_to_output(self, output: io.StringIO) -> None:
        dashboard = Dashboard(output=output)

        dashboard.display()

        assert "ANTARES" in output.getvalue()

    def test_print_summary(self, output: io.StringIO) -> None:
        metrics = MetricsCollector()
        metrics.increment_counter("events_applied", 7)
        metrics.increment_counter("invalid_quotes", 2)
        dashboard = Dashboard(metrics=metrics, output=output)
        dashboard.update(make_snapshot())

        dashboard.print_summary()

        text = output.getvalue()
        assert "SESSION SUMMARY" in text
        assert "Applied:        7" in text
        assert "Invalid quotes: 2" in text
        assert "USD > BTC > ETH > USD" in text
        assert "+1.2500%" in text

    def test_print_summary_without_snapshot(self, output: io.StringIO) -> None:
        Dashboard(output=output).print_summary()

        assert "BEST EVER" not in output.getvalue()

    @pytest.mark.asyncio
    async def test_start_and_stop(self, output: io.StringIO) -> None:
        dashboard = Dashboard(output=output)

        task = dashboard.start(interval=0.01)
        await asyncio.sleep(0.03)
        dashboard.stop()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert "ANTARES" in output.getvalue()
