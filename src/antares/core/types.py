"""
Type definitions for the arbitrage monitor.

This module contains the dataclasses, enums, TypedDicts, and Protocol
definitions used throughout the application. Using slots=True for
memory efficiency and faster attribute access on the hot path.
"""

import asyncio
import math
from collections.abc import Callable, Coroutine, Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple, Protocol, TypedDict


# =============================================================================
# Enums
# =============================================================================


class QuoteSide(str, Enum):
    """Order book side a quote comes from."""

    BUY = "buy"  # bid: base -> quote
    SELL = "sell"  # ask: quote -> base


class EngineState(str, Enum):
    """Engine lifecycle state."""

    BUILDING = "BUILDING"
    ENUMERATED = "ENUMERATED"
    LIVE = "LIVE"


class VisitAction(Enum):
    """Signal returned by a cycle visitor."""

    CONTINUE = "continue"
    STOP = "stop"


# =============================================================================
# Graph Types
# =============================================================================


@dataclass(slots=True)
class EdgeWeight:
    """
    Live weight of a directed edge.

    ``price`` is how many units of the target one unit of the source buys.
    ``size`` is the liquidity at the best quote, in source units.
    Mutated in place so cycles can hold direct references to it.
    """

    price: float = 0.0
    size: float = 0.0

    @property
    def is_populated(self) -> bool:
        """Check if a market event has set this edge."""
        return self.price > 0.0


@dataclass(slots=True, frozen=True)
class Cycle:
    """
    Closed walk through the currency graph.

    ``nodes`` repeats the start at the end: ``(USD, BTC, ETH, USD)``.
    Computed once at startup and shared read-only by the engine.
    """

    nodes: tuple[str, ...]
    id: str = field(init=False, compare=False)

    def __post_init__(self) -> None:
        """Validate closure and compute the identifier."""
        if len(self.nodes) < 2 or self.nodes[0] != self.nodes[-1]:
            raise ValueError(f"Cycle must start and end on the same node: {self.nodes}")
        object.__setattr__(self, "id", "-".join(self.nodes[:-1]))

    @classmethod
    def from_path(cls, path: tuple[str, ...] | list[str]) -> "Cycle":
        """Build a cycle from an open path by closing it to its first node."""
        return cls(nodes=(*path, path[0]))

    @property
    def start(self) -> str:
        """Currency the cycle starts and ends in."""
        return self.nodes[0]

    @property
    def length(self) -> int:
        """Number of edges (trades) in the cycle."""
        return len(self.nodes) - 1

    @property
    def edges(self) -> tuple[tuple[str, str], ...]:
        """Consecutive (source, target) pairs, including the closing edge."""
        return tuple(zip(self.nodes, self.nodes[1:]))

    def describe(self) -> str:
        """Human readable path, e.g. ``USD > BTC > ETH > USD``."""
        return " > ".join(self.nodes)

    def __repr__(self) -> str:
        return f"Cycle({self.describe()})"


# =============================================================================
# Gain / Opportunity Types
# =============================================================================


class GainResult(NamedTuple):
    """
    Gain of a cycle against current weights.

    Tuple ordering gives the ranking: multiplier first, bottleneck size
    breaks ties.
    """

    multiplier: float
    bottleneck_size: float

    @property
    def is_comparable(self) -> bool:
        """Check that neither component is NaN."""
        return not (math.isnan(self.multiplier) or math.isnan(self.bottleneck_size))


@dataclass(slots=True, frozen=True)
class Opportunity:
    """
    Reporting projection of a ranked cycle.

    ``size`` is the bottleneck, denominated in the cycle's start currency.
    That currency is where every loop starts and ends, so ``size`` plays the
    role of a size in quote currency with ``size_currency`` naming the unit.
    """

    multiplier: float
    size: float
    size_currency: str
    path: str
    cycle: Cycle
    timestamp_us: int

    @property
    def is_profitable(self) -> bool:
        """Check if the cycle returns more than it costs after fees."""
        return self.multiplier > 1.0

    @property
    def profit_pct(self) -> float:
        """Return over one loop, in percent."""
        return (self.multiplier - 1.0) * 100.0


# =============================================================================
# Market Data Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class MarketEvent:
    """
    New best price/size for one side of a pair.

    The uniform event produced by every feed, whatever the transport shape.
    """

    pair_id: str
    side: QuoteSide
    price: float
    size: float

    @property
    def base(self) -> str:
        """Base currency of ``BASE-QUOTE``."""
        return self.pair_id.split("-", 1)[0]

    @property
    def quote(self) -> str:
        """Quote currency of ``BASE-QUOTE``."""
        return self.pair_id.split("-", 1)[-1]


@dataclass(slots=True, frozen=True)
class PairInfo:
    """Internal record of a usable catalog pair."""

    pair_id: str
    base: str
    quote: str


# =============================================================================
# Engine Snapshot
# =============================================================================


@dataclass(slots=True, frozen=True)
class EngineSnapshot:
    """
    Read-only projection of engine state for rendering.

    Pushed after every recompute; never mutated afterwards.
    """

    state: EngineState
    node_count: int
    edge_count: int
    cycle_count: int
    edges_populated: int
    messages_processed: int
    opportunities: tuple[Opportunity, ...]
    current_best: Opportunity | None
    best_ever: Opportunity | None
    logs: tuple[str, ...]
    timestamp_us: int
    currencies: tuple[str, ...] = ()

    @property
    def is_ready(self) -> bool:
        """Check if every edge has received at least one quote."""
        return self.edge_count > 0 and self.edges_populated >= self.edge_count


# =============================================================================
# TypedDicts for Feed Messages
# =============================================================================


class L2SnapshotData(TypedDict):
    """Coinbase ``snapshot`` message on the level2 channels."""

    type: str
    product_id: str
    bids: list[list[str]]  # [price, size]
    asks: list[list[str]]  # [price, size]


class L2UpdateData(TypedDict):
    """Coinbase ``l2update`` message on the level2 channels."""

    type: str
    product_id: str
    changes: list[list[str]]  # [side, price, size]
    time: str


# =============================================================================
# Protocols (Interfaces)
# =============================================================================


class TradingPair(Protocol):
    """A catalog entry: one tradable ``BASE-QUOTE`` product."""

    @property
    def id(self) -> str: ...

    @property
    def base_currency(self) -> str: ...

    @property
    def quote_currency(self) -> str: ...

    @property
    def status(self) -> str: ...


class PairCatalogSource(Protocol):
    """Protocol for pair catalog implementations."""

    async def get_online_pairs(self) -> Sequence[TradingPair]:
        """Fetch the active tradable pairs."""
        ...


class MarketFeed(Protocol):
    """Protocol for market data feeds (live or simulated)."""

    def subscribe(self, product_ids: Iterable[str]) -> None: ...

    def add_handler(
        self, handler: Callable[[list[MarketEvent]], Coroutine[Any, Any, None]]
    ) -> None: ...

    def start(self) -> "asyncio.Task[None]": ...

    async def stop(self) -> None: ...

    @property
    def message_count(self) -> int: ...

    @property
    def last_message_us(self) -> int: ...


class SnapshotListener(Protocol):
    """Protocol for consumers of engine snapshots."""

    def __call__(self, snapshot: EngineSnapshot) -> None: ...
