"""
Arbitrage engine core.

Owns the currency graph, the cycle set and the ranking. Drives the
build -> enumerate -> live lifecycle and publishes an immutable
EngineSnapshot after every recompute.

The engine is synchronous: the runner feeds it one message worth of
events at a time, and each batch is applied and re-ranked before the
next one is read.
"""

import logging
import math
from collections.abc import Callable, Iterable

from antares.config.engine import EngineConfig
from antares.core.errors import (
    CatalogError,
    EngineStateError,
    GraphError,
    InvalidQuote,
)
from antares.core.types import (
    Cycle,
    EdgeWeight,
    EngineSnapshot,
    EngineState,
    GainResult,
    MarketEvent,
    Opportunity,
    QuoteSide,
    TradingPair,
)
from antares.market.symbols import PairCatalog
from antares.strategy.calculator import GainCalculator
from antares.strategy.cycles import CycleEnumerator
from antares.strategy.graph import GraphModel, build_from_catalog
from antares.strategy.opportunity import OpportunityRanker
from antares.telemetry.logger import LogBuffer
from antares.telemetry.metrics import MetricsCollector
from antares.utils.time import LatencyTimer, format_duration_us, get_timestamp_us


logger = logging.getLogger(__name__)

Edge = tuple[str, str]
SnapshotCallback = Callable[[EngineSnapshot], None]


class ArbitrageEngine:
    """
    Cycle arbitrage detector.

    Lifecycle:
    - BUILDING: load_catalog(), prune()
    - ENUMERATED: enumerate_cycles() has frozen the graph
    - LIVE: at least one feed message has been processed
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            config: Engine parameters. Defaults to EngineConfig().
            metrics: Collector for counters and latencies.
        """
        self._config = config or EngineConfig()
        self._metrics = metrics or MetricsCollector()
        self._log_buffer = LogBuffer(self._config.log_buffer_size)

        self._calculator = GainCalculator(self._config.fee_rate)
        self._ranker = OpportunityRanker(
            report_threshold=self._config.report_threshold,
            top_n=self._config.top_n,
        )

        self._state = EngineState.BUILDING
        self._catalog: PairCatalog | None = None
        self._graph = GraphModel()

        # Populated by enumerate_cycles()
        self._cycles: list[Cycle] = []
        self._cycle_edges: list[tuple[EdgeWeight, ...]] = []
        self._cycles_by_edge: dict[Edge, list[int]] = {}
        self._gains: list[GainResult | None] = []

        # Live state
        self._edges_populated = 0
        self._messages_processed = 0
        self._current_best: Opportunity | None = None
        self._opportunities: tuple[Opportunity, ...] = ()
        self._listeners: list[SnapshotCallback] = []

    # =========================================================================
    # Build Phase
    # =========================================================================

    def load_catalog(self, pairs: Iterable[TradingPair]) -> int:
        """
        Build the currency graph from the pair catalog.

        Args:
            pairs: Raw catalog entries.

        Returns:
            Number of usable pairs.

        Raises:
            CatalogError: If no pair survives filtering.
            EngineStateError: If cycles were already enumerated.
        """
        if self._state is not EngineState.BUILDING:
            raise EngineStateError("Catalog can only be loaded before enumeration")

        catalog = PairCatalog(self._config.excluded_currencies)
        count = catalog.load(pairs)
        if count == 0:
            raise CatalogError("Pair catalog yielded no usable pairs")

        self._catalog = catalog
        self._graph = build_from_catalog(catalog)
        self._edges_populated = 0

        logger.info(f"Loaded {count} usable pairs")
        return count

    def prune(self) -> list[str]:
        """
        Drop currencies with a single way out.

        Returns:
            The removed currencies.
        """
        self._require_catalog()
        if self._state is not EngineState.BUILDING:
            raise EngineStateError("Graph can only be pruned before enumeration")
        return self._graph.prune_single_exit_nodes()

    def enumerate_cycles(self) -> list[Cycle]:
        """
        Freeze the graph and find every cycle in the length window.

        Also resolves each cycle's edge weights and indexes cycles by
        edge, so live updates only touch the cycles they affect.

        Returns:
            The cycles, in discovery order.
        """
        self._require_catalog()
        if self._state is not EngineState.BUILDING:
            raise EngineStateError("Cycles have already been enumerated")

        self._graph.freeze()
        enumerator = CycleEnumerator(
            self._graph,
            min_len=self._config.min_cycle_len,
            max_len=self._config.max_cycle_len,
            budget=self._config.enumeration_budget,
        )

        with LatencyTimer() as timer:
            cycles = enumerator.cycles()

        by_edge: dict[Edge, list[int]] = {}
        cycle_edges: list[tuple[EdgeWeight, ...]] = []
        for i, cycle in enumerate(cycles):
            edges = cycle.edges
            cycle_edges.append(tuple(self._graph.edge(source, target) for source, target in edges))
            for edge in edges:
                by_edge.setdefault(edge, []).append(i)

        self._cycles = cycles
        self._cycle_edges = cycle_edges
        self._cycles_by_edge = by_edge
        self._gains = [None] * len(cycles)
        self._refresh(range(len(cycles)))
        self._state = EngineState.ENUMERATED

        logger.info(
            f"Found {len(cycles)} cycles of {self._config.min_cycle_len}-"
            f"{self._config.max_cycle_len} hops across "
            f"{enumerator.components_searched} components "
            f"in {format_duration_us(timer.latency_us)}"
        )
        if enumerator.overflowed_components:
            logger.warning(
                f"{enumerator.overflowed_components} components exceeded the "
                f"enumeration budget; their cycle lists are partial"
            )
        if not cycles:
            logger.warning("No cycles found; nothing to monitor")

        return list(cycles)

    def subscribed_pairs(self) -> list[str]:
        """Get the pair ids whose two currencies survived pruning."""
        catalog = self._require_catalog()
        return catalog.pair_ids_within(self._graph.nodes())

    # =========================================================================
    # Live Phase
    # =========================================================================

    def apply_update(
        self,
        pair_id: str,
        side: QuoteSide | str,
        price: float,
        size: float,
    ) -> Edge:
        """
        Apply one best-quote update to the graph.

        A bid sets ``base -> quote`` to ``(price, size)``. An ask sets
        ``quote -> base`` to ``(1 / price, size * price)``. Fees are not
        applied here.

        Returns:
            The updated edge.

        Raises:
            InvalidQuote: For a non-finite or non-positive price or size.
            UnknownNode: If a currency is not in the graph.
            UnknownEdge: If the pair has no edge in the graph.
        """
        self._require_enumerated()

        if not (math.isfinite(price) and math.isfinite(size)) or price <= 0.0 or size <= 0.0:
            raise InvalidQuote(f"Invalid quote for {pair_id}: price={price} size={size}", pair_id)

        try:
            side = QuoteSide(side)
        except ValueError:
            raise InvalidQuote(f"Invalid side for {pair_id}: {side!r}", pair_id) from None

        base, quote = self._resolve_pair(pair_id)
        if side is QuoteSide.BUY:
            source, target, edge_price, edge_size = base, quote, price, size
        else:
            source, target, edge_price, edge_size = quote, base, 1.0 / price, size * price

        was_populated = self._graph.has_edge(source, target) and self._graph.edge(
            source, target
        ).is_populated
        self._graph.update_edge(source, target, edge_price, edge_size)

        if not was_populated:
            self._edges_populated += 1
            if self._edges_populated == self._graph.edge_count:
                logger.info(f"All {self._edges_populated} edges populated")

        return (source, target)

    def process_event(self, event: MarketEvent) -> EngineSnapshot:
        """Process a single event as its own message."""
        return self.process_events((event,))

    def process_events(self, events: Iterable[MarketEvent]) -> EngineSnapshot:
        """
        Process one feed message worth of events.

        Every event is applied in order; a rejected event is logged and
        skipped. Then only the cycles touching a changed edge are
        re-evaluated, the ranking is rebuilt and listeners are notified.

        Returns:
            The snapshot published for this message.
        """
        self._require_enumerated()

        changed: set[Edge] = set()
        for event in events:
            try:
                changed.add(self.apply_update(event.pair_id, event.side, event.price, event.size))
                self._metrics.increment_counter("events_applied")
            except InvalidQuote as e:
                self._metrics.increment_counter("invalid_quotes")
                logger.warning(f"Rejected quote: {e}")
            except GraphError as e:
                logger.warning(f"Ignored update for {event.pair_id}: {e}")

        self._messages_processed += 1
        self._metrics.increment_counter("messages")
        self._state = EngineState.LIVE

        with LatencyTimer() as timer:
            self._refresh(sorted({i for edge in changed for i in self._cycles_by_edge.get(edge, ())}))
            snapshot = self._rank()
        self._metrics.record_latency("recompute", timer.latency_us)

        self._notify(snapshot)
        return snapshot

    def recompute_best(self) -> EngineSnapshot:
        """
        Re-evaluate every cycle and rebuild the ranking.

        Returns:
            The published snapshot.
        """
        self._require_enumerated()

        with LatencyTimer() as timer:
            self._refresh(range(len(self._cycles)))
            snapshot = self._rank()
        self._metrics.record_latency("recompute", timer.latency_us)

        self._notify(snapshot)
        return snapshot

    def _refresh(self, indices: Iterable[int]) -> None:
        """Recompute the gains of the given cycles; unrankable ones become None."""
        for i in indices:
            try:
                self._gains[i] = self._evaluate(i)
            except InvalidQuote as e:
                self._gains[i] = None
                self._metrics.increment_counter("invalid_quotes")
                logger.warning(f"{e}; excluded from ranking")

    def _evaluate(self, index: int) -> GainResult:
        """
        Compute one cycle's gain.

        Raises:
            InvalidQuote: If the gain has a NaN component.
        """
        gain = self._calculator.calculate(self._cycle_edges[index])
        if not gain.is_comparable:
            raise InvalidQuote(f"Gain of {self._cycles[index].describe()} is NaN")
        return gain

    def _rank(self) -> EngineSnapshot:
        """Rank the current gains and build a snapshot."""
        timestamp = get_timestamp_us()
        ranked = self._ranker.rank(self._cycles, self._gains, timestamp)

        self._current_best = ranked.current_best
        self._opportunities = ranked.opportunities
        self._metrics.record_pass(
            ranked.current_best.multiplier if ranked.current_best else None,
            ranked.is_reportable,
        )
        return self._build_snapshot(timestamp)

    # =========================================================================
    # Snapshots & Listeners
    # =========================================================================

    def snapshot(self) -> EngineSnapshot:
        """Build a snapshot of the current state without recomputing."""
        return self._build_snapshot(get_timestamp_us())

    def _build_snapshot(self, timestamp_us: int) -> EngineSnapshot:
        return EngineSnapshot(
            state=self._state,
            node_count=self._graph.node_count,
            edge_count=self._graph.edge_count,
            cycle_count=len(self._cycles),
            edges_populated=self._edges_populated,
            messages_processed=self._messages_processed,
            opportunities=self._opportunities,
            current_best=self._current_best,
            best_ever=self._ranker.best_ever,
            logs=self._log_buffer.lines(),
            timestamp_us=timestamp_us,
            currencies=tuple(self._graph.nodes()),
        )

    def register_listener(self, callback: SnapshotCallback) -> None:
        """Register a callback for published snapshots."""
        self._listeners.append(callback)

    def unregister_listener(self, callback: SnapshotCallback) -> None:
        """Unregister a callback."""
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self, snapshot: EngineSnapshot) -> None:
        for callback in self._listeners:
            try:
                callback(snapshot)
            except Exception as e:
                logger.error(f"Listener error: {e}")

    # =========================================================================
    # Internal
    # =========================================================================

    def _require_catalog(self) -> PairCatalog:
        if self._catalog is None:
            raise EngineStateError("No catalog loaded")
        return self._catalog

    def _require_enumerated(self) -> None:
        if self._state is EngineState.BUILDING:
            raise EngineStateError("Cycles must be enumerated before processing events")

    def _resolve_pair(self, pair_id: str) -> Edge:
        """Get (base, quote) for a pair id."""
        info = self._catalog.get(pair_id) if self._catalog else None
        if info is not None:
            return info.base, info.quote

        base, sep, quote = pair_id.partition("-")
        if not sep or not base or not quote:
            raise InvalidQuote(f"Malformed pair id: {pair_id!r}", pair_id)
        return base, quote

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def state(self) -> EngineState:
        """Get lifecycle state."""
        return self._state

    @property
    def graph(self) -> GraphModel:
        """Get the currency graph."""
        return self._graph

    @property
    def cycles(self) -> list[Cycle]:
        """Get the enumerated cycles, in discovery order."""
        return list(self._cycles)

    @property
    def best_ever(self) -> Opportunity | None:
        """Get the best reportable opportunity seen this session."""
        return self._ranker.best_ever

    @property
    def current_best(self) -> Opportunity | None:
        """Get the top ranked cycle of the last pass, reportable or not."""
        return self._current_best

    @property
    def opportunities(self) -> tuple[Opportunity, ...]:
        """Get the reportable opportunities of the last pass, best first."""
        return self._opportunities

    @property
    def messages_processed(self) -> int:
        return self._messages_processed

    @property
    def edges_populated(self) -> int:
        """Get the number of edges that have received a quote."""
        return self._edges_populated

    @property
    def is_ready(self) -> bool:
        """Check if every edge has received at least one quote."""
        return self._graph.edge_count > 0 and self._edges_populated >= self._graph.edge_count

    @property
    def log_buffer(self) -> LogBuffer:
        """Get the recent log lines handler."""
        return self._log_buffer

    @property
    def metrics(self) -> MetricsCollector:
        """Get metrics collector."""
        return self._metrics
