"""
Market data simulator for demo mode.

Stands in for both the Coinbase pair catalog and the market feed, so
the full monitor can run offline. Prices follow a random walk around
fixed reference levels, with occasional mispricings that open a
profitable cycle.
"""

import asyncio
import logging
import random
from collections.abc import Callable, Coroutine, Iterable
from dataclasses import dataclass, field, replace
from typing import Any

from antares.config.constants import PAIR_STATUS_ONLINE
from antares.core.types import MarketEvent, QuoteSide
from antares.exchange.models import Product
from antares.utils.time import get_timestamp_us


logger = logging.getLogger(__name__)

EventHandler = Callable[[list[MarketEvent]], Coroutine[Any, Any, None]]


@dataclass
class SimulatedPair:
    """Configuration for a simulated trading pair."""

    pair_id: str
    base_price: float
    volatility: float = 0.0003  # Price change per tick (0.03%)
    spread_pct: float = 0.0004  # Bid-ask spread (0.04%)
    status: str = PAIR_STATUS_ONLINE
    current_price: float = field(init=False)

    def __post_init__(self) -> None:
        self.current_price = self.base_price

    @property
    def base(self) -> str:
        return self.pair_id.split("-", 1)[0]

    @property
    def quote(self) -> str:
        return self.pair_id.split("-", 1)[1]

    def to_product(self) -> Product:
        """Catalog entry for this pair."""
        return Product(
            id=self.pair_id,
            base_currency=self.base,
            quote_currency=self.quote,
            status=self.status,
            display_name=self.pair_id.replace("-", "/"),
        )


class MarketSimulator:
    """
    Simulates the Coinbase catalog and level 2 feed.

    Features:
    - Random walk price movements with mean reversion
    - A book snapshot per pair on the first tick, then batched updates
    - Occasional mispricings large enough to beat the taker fee
    - Seedable for reproducible runs
    """

    DEFAULT_PAIRS = [
        SimulatedPair("BTC-USD", 65000.0, 0.0003, 0.0002),
        SimulatedPair("ETH-USD", 3500.0, 0.0004, 0.0002),
        SimulatedPair("ETH-BTC", 0.0538, 0.0003, 0.0004),
        SimulatedPair("SOL-USD", 180.0, 0.0005, 0.0004),
        SimulatedPair("SOL-BTC", 0.00277, 0.0004, 0.0006),
        SimulatedPair("SOL-ETH", 0.0514, 0.0004, 0.0006),
        SimulatedPair("LINK-USD", 18.5, 0.0005, 0.0004),
        SimulatedPair("LINK-BTC", 0.000285, 0.0004, 0.0006),
        SimulatedPair("LINK-ETH", 0.00529, 0.0004, 0.0006),
        SimulatedPair("LTC-USD", 85.0, 0.0005, 0.0004),
        SimulatedPair("LTC-BTC", 0.00131, 0.0004, 0.0006),
        SimulatedPair("USDC-USD", 1.0, 0.00005, 0.0001),
        SimulatedPair("BTC-USDC", 65000.0, 0.0003, 0.0003),
        SimulatedPair("ETH-USDC", 3500.0, 0.0004, 0.0003),
        SimulatedPair("DOGE-USD", 0.15, 0.0006, 0.0006),
        # Filtered out by default settings
        SimulatedPair("BTC-EUR", 60000.0, 0.0003, 0.0003),
        SimulatedPair("ADA-USD", 0.65, 0.0005, 0.0004, status="delisted"),
    ]

    def __init__(
        self,
        pairs: Iterable[SimulatedPair] | None = None,
        tick_interval_ms: int = 200,
        updates_per_tick: int = 4,
        opportunity_frequency: float = 0.02,
        opportunity_profit_range: tuple[float, float] = (0.04, 0.08),
        seed: int | None = None,
    ) -> None:
        """
        Initialize market simulator.

        Args:
            pairs: Pairs to simulate (default: DEFAULT_PAIRS).
            tick_interval_ms: Milliseconds between messages.
            updates_per_tick: Pairs updated per message after the snapshots.
            opportunity_frequency: Probability of a mispricing per tick.
            opportunity_profit_range: Min/max relative mispricing.
            seed: Random seed for reproducible runs.
        """
        source = pairs if pairs is not None else self.DEFAULT_PAIRS
        # Per-instance copies of the pair configs
        self._pairs = {p.pair_id: replace(p) for p in source}
        self._tick_interval_ms = tick_interval_ms
        self._updates_per_tick = updates_per_tick
        self._opportunity_frequency = opportunity_frequency
        self._opportunity_profit_range = opportunity_profit_range
        self._rng = random.Random(seed)

        self._subscribed: list[str] = []
        self._handlers: list[EventHandler] = []
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._tick_count = 0
        self._message_count = 0
        self._last_message_us = 0
        self._snapshots_sent = False
        self._opportunities_created = 0

    # =========================================================================
    # Catalog
    # =========================================================================

    async def get_online_pairs(self) -> list[Product]:
        """Get the simulated catalog, offline entries included."""
        return [p.to_product() for p in self._pairs.values()]

    # =========================================================================
    # Feed Interface
    # =========================================================================

    def subscribe(self, product_ids: Iterable[str]) -> None:
        """Set the pairs to publish. Unknown ids are ignored."""
        self._subscribed = [pid for pid in product_ids if pid in self._pairs]
        self._snapshots_sent = False
        logger.info(f"Simulator publishing {len(self._subscribed)} pairs")

    def add_handler(self, handler: EventHandler) -> None:
        """Add an event handler."""
        self._handlers.append(handler)

    def remove_handler(self, handler: EventHandler) -> None:
        """Remove an event handler."""
        if handler in self._handlers:
            self._handlers.remove(handler)

    async def _dispatch(self, events: list[MarketEvent]) -> None:
        self._message_count += 1
        self._last_message_us = get_timestamp_us()
        for handler in self._handlers:
            try:
                await handler(events)
            except Exception as e:
                logger.error(f"Handler error: {e}")

    # =========================================================================
    # Price Generation
    # =========================================================================

    def _quote(self, pair: SimulatedPair) -> tuple[MarketEvent, MarketEvent]:
        """Best bid and best ask around the pair's current price."""
        half_spread = pair.current_price * pair.spread_pct / 2 * self._rng.uniform(0.8, 1.2)
        bid = pair.current_price - half_spread
        ask = pair.current_price + half_spread

        # A few thousand dollars of base on fiat books, a few units elsewhere
        base_size = self._rng.uniform(0.5, 5.0)
        if pair.quote in ("USD", "USDC"):
            base_size *= 1000.0 / pair.base_price

        return (
            MarketEvent(pair.pair_id, QuoteSide.BUY, round(bid, 10), round(base_size, 8)),
            MarketEvent(pair.pair_id, QuoteSide.SELL, round(ask, 10), round(base_size * 1.1, 8)),
        )

    def _step_price(self, pair: SimulatedPair) -> None:
        """Random walk with mean reversion toward the reference price."""
        shock = self._rng.gauss(0.0, pair.volatility)
        reversion = (pair.base_price - pair.current_price) / pair.base_price * 0.05
        pair.current_price *= 1.0 + shock + reversion

    def _maybe_create_opportunity(self) -> None:
        """Occasionally push one pair far enough off its reference to open a cycle."""
        if not self._subscribed or self._rng.random() > self._opportunity_frequency:
            return

        pair = self._pairs[self._rng.choice(self._subscribed)]
        skew = self._rng.uniform(*self._opportunity_profit_range)
        pair.current_price *= 1.0 + skew if self._rng.random() < 0.5 else 1.0 - skew
        self._opportunities_created += 1
        logger.debug(f"Simulated mispricing on {pair.pair_id} ({skew:.2%})")

    def generate_messages(self) -> list[list[MarketEvent]]:
        """
        Produce the messages of one tick.

        The first tick after subscribing yields one snapshot message per
        pair. Later ticks yield a single batched update message.
        """
        self._tick_count += 1

        if not self._snapshots_sent:
            self._snapshots_sent = True
            return [list(self._quote(self._pairs[pid])) for pid in self._subscribed]

        if not self._subscribed:
            return []

        self._maybe_create_opportunity()

        count = min(self._updates_per_tick, len(self._subscribed))
        events: list[MarketEvent] = []
        for pid in self._rng.sample(self._subscribed, count):
            pair = self._pairs[pid]
            self._step_price(pair)
            events.extend(self._quote(pair))

        return [events]

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def _tick(self) -> None:
        """Execute one simulation tick."""
        for events in self.generate_messages():
            await self._dispatch(events)

    async def run(self) -> None:
        """Run the simulation loop."""
        self._running = True

        while self._running:
            await self._tick()
            await asyncio.sleep(self._tick_interval_ms / 1000)

    def start(self) -> asyncio.Task[None]:
        """Start simulation as background task."""
        self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """Stop the simulation."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    # =========================================================================
    # Properties
    # =========================================================================

    def get_pair_ids(self) -> list[str]:
        """Get all simulated pair ids."""
        return list(self._pairs)

    def get_current_prices(self) -> dict[str, float]:
        """Get current prices for all pairs."""
        return {p.pair_id: p.current_price for p in self._pairs.values()}

    @property
    def tick_count(self) -> int:
        """Get number of ticks processed."""
        return self._tick_count

    @property
    def message_count(self) -> int:
        """Get number of messages published."""
        return self._message_count

    @property
    def last_message_us(self) -> int:
        """Get the publish time of the last message, 0 if none yet."""
        return self._last_message_us

    @property
    def opportunities_created(self) -> int:
        """Get number of artificial mispricings created."""
        return self._opportunities_created

    @property
    def is_running(self) -> bool:
        """Check if simulator is running."""
        return self._running
