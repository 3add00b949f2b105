"""
Runtime orchestrator.

Coordinates the catalog source, the engine, the market feed and the
dashboard, and manages the monitor's lifecycle:

1. Fetch the pair catalog, build and prune the graph
2. Enumerate cycles once
3. Subscribe the feed to the pairs that survived pruning
4. Process feed messages until shutdown
"""

import asyncio
import logging
import signal
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

from antares.config.settings import Settings
from antares.core.engine import ArbitrageEngine
from antares.core.types import MarketEvent, MarketFeed, PairCatalogSource, TradingPair
from antares.exchange.client import CoinbaseClient
from antares.market.websocket import CoinbaseFeed
from antares.simulation.market import MarketSimulator
from antares.telemetry.logger import AsyncLogger, setup_logging
from antares.telemetry.metrics import MetricsCollector
from antares.telemetry.reporter import Dashboard


logger = logging.getLogger(__name__)

APP_LOGGER = "antares"


class EngineRunner:
    """
    Wires the engine to its collaborators.

    The catalog source and feed default to Coinbase (or the simulator
    when ``settings.simulate`` is set) and can be injected for testing.
    """

    def __init__(
        self,
        settings: Settings,
        catalog_source: PairCatalogSource | None = None,
        feed: MarketFeed | None = None,
        configure_logging: bool = True,
    ) -> None:
        """
        Initialize the runner.

        Args:
            settings: Application settings.
            catalog_source: Pair catalog provider override.
            feed: Market feed override.
            configure_logging: Install the queue-based log handlers.
        """
        self._settings = settings
        self._configure_logging = configure_logging
        self._shutdown_event = asyncio.Event()
        self._running = False

        simulator: MarketSimulator | None = None
        if settings.simulate and (catalog_source is None or feed is None):
            simulator = MarketSimulator(tick_interval_ms=settings.simulation_tick_ms)

        self._catalog_source = catalog_source or simulator
        self._feed: MarketFeed = feed or simulator or CoinbaseFeed(url=settings.ws_url)

        self._metrics = MetricsCollector()
        self._engine = ArbitrageEngine(settings.engine_config(), self._metrics)
        self._dashboard = Dashboard(
            metrics=self._metrics,
            last_message_us=lambda: self._feed.last_message_us,
            stale_after_seconds=settings.stale_after_seconds,
        )

        self._async_logger: AsyncLogger | None = None
        self._feed_task: asyncio.Task[None] | None = None
        self._is_setup = False
        self._stopped = False

    # =========================================================================
    # Setup
    # =========================================================================

    async def setup(self) -> None:
        """
        Build the engine and subscribe the feed.

        Raises:
            AntaresError: If the catalog yields no usable graph.
            CoinbaseClientError: If the catalog cannot be fetched.
        """
        if self._configure_logging:
            self._async_logger = setup_logging(
                level=self._settings.log_level,
                log_file=self._settings.log_file,
                console=not self._settings.dashboard,
            )
        logging.getLogger(APP_LOGGER).addHandler(self._engine.log_buffer)

        logger.info("Initializing arbitrage monitor...")

        try:
            pairs = await self._fetch_catalog()
            self._engine.load_catalog(pairs)

            removed = self._engine.prune()
            if removed:
                logger.info(f"Pruned {len(removed)} single-exit currencies: {', '.join(removed)}")

            self._engine.enumerate_cycles()
        except Exception as e:
            logger.error(f"Setup failed: {e}")
            raise

        pair_ids = self._engine.subscribed_pairs()
        self._feed.subscribe(pair_ids)
        self._feed.add_handler(self._on_events)
        self._engine.register_listener(self._dashboard.update)

        self._is_setup = True
        logger.info(f"Monitoring {len(self._engine.cycles)} cycles over {len(pair_ids)} pairs")

    async def _fetch_catalog(self) -> Sequence[TradingPair]:
        """Fetch the pair catalog from the configured source."""
        if self._catalog_source is not None:
            return list(await self._catalog_source.get_online_pairs())

        logger.info(f"Loading pair catalog from {self._settings.rest_url}")
        async with CoinbaseClient(base_url=self._settings.rest_url) as client:
            return await client.get_online_pairs()

    async def _on_events(self, events: list[MarketEvent]) -> None:
        """Feed handler: one message worth of events."""
        self._engine.process_events(events)

    # =========================================================================
    # Run Loop
    # =========================================================================

    async def run(self) -> None:
        """Run until a shutdown signal or until the feed task ends."""
        if not self._is_setup:
            await self.setup()

        self._running = True

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self.request_shutdown)

        try:
            logger.info("Starting market feed...")
            self._feed_task = self._feed.start()

            if self._settings.dashboard:
                self._dashboard.start(interval=self._settings.dashboard_interval)

            shutdown_wait = asyncio.create_task(self._shutdown_event.wait())
            done, _ = await asyncio.wait(
                {shutdown_wait, self._feed_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
            shutdown_wait.cancel()

            if self._feed_task in done and not self._feed_task.cancelled():
                error = self._feed_task.exception()
                if error is not None:
                    logger.error(f"Market feed failed: {error}")
                    raise error
                logger.warning("Market feed ended")

        finally:
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)
            await self.shutdown()

    def request_shutdown(self) -> None:
        """Handle shutdown signal."""
        logger.info("Shutdown signal received")
        self._running = False
        self._shutdown_event.set()

    async def shutdown(self) -> None:
        """Gracefully stop the feed and the dashboard. Safe to call twice."""
        if self._stopped:
            return
        self._stopped = True

        logger.info("Shutting down monitor...")
        self._running = False
        self._shutdown_event.set()

        self._dashboard.stop()

        if self._feed_task is not None:
            await self._feed.stop()
            self._feed_task = None

        if self._is_setup:
            self._dashboard.print_summary()
            self._is_setup = False

        logger.info("Monitor shutdown complete")
        logging.getLogger(APP_LOGGER).removeHandler(self._engine.log_buffer)

        if self._async_logger:
            self._async_logger.stop()
            self._async_logger = None

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def engine(self) -> ArbitrageEngine:
        """Get the arbitrage engine."""
        return self._engine

    @property
    def feed(self) -> MarketFeed:
        """Get the market feed."""
        return self._feed

    @property
    def dashboard(self) -> Dashboard:
        """Get the dashboard."""
        return self._dashboard

    @property
    def is_running(self) -> bool:
        """Check if the runner is running."""
        return self._running

    @property
    def metrics(self) -> MetricsCollector:
        """Get metrics collector."""
        return self._metrics


@asynccontextmanager
async def create_runner(settings: Settings) -> AsyncIterator[EngineRunner]:
    """
    Create and manage runner lifecycle.

    Usage:
        async with create_runner(settings) as runner:
            await runner.run()
    """
    runner = EngineRunner(settings)

    try:
        await runner.setup()
        yield runner
    finally:
        await runner.shutdown()
