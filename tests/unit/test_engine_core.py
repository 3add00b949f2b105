"""
Unit tests for ArbitrageEngine.

Tests the build/enumerate/live lifecycle, quote application, error
isolation and the ranking published in snapshots.
"""

import math

import pytest

from antares.config.engine import EngineConfig
from antares.core.engine import ArbitrageEngine
from antares.core.errors import CatalogError, EngineStateError, InvalidQuote, UnknownNode
from antares.core.types import EngineSnapshot, EngineState, MarketEvent, QuoteSide
from antares.exchange.models import Product
from tests.mocks.exchange import make_product


def quote(pair_id: str, bid: float, ask: float, size: float = 10.0) -> list[MarketEvent]:
    """Best bid and best ask of a pair."""
    return [
        MarketEvent(pair_id, QuoteSide.BUY, bid, size),
        MarketEvent(pair_id, QuoteSide.SELL, ask, size),
    ]


def flat_market(engine: ArbitrageEngine, eth_btc_bid: float = 0.0499) -> EngineSnapshot:
    """
    Quote all three triangle pairs, one message each.

    With the default bid both loops return about 0.998.
    """
    engine.process_events(quote("BTC-USD", 50000.0, 50000.0, 1.0))
    engine.process_events(quote("ETH-USD", 2500.0, 2500.0))
    return engine.process_events(quote("ETH-BTC", eth_btc_bid, 0.0501))


class TestLifecycle:
    """Tests for lifecycle ordering."""

    def test_initial_state(self) -> None:
        engine = ArbitrageEngine()

        assert engine.state is EngineState.BUILDING
        assert engine.cycles == []
        assert engine.best_ever is None

    def test_empty_catalog_is_fatal(self) -> None:
        """Test that a catalog with no usable pairs aborts startup."""
        engine = ArbitrageEngine()

        with pytest.raises(CatalogError):
            engine.load_catalog([make_product("ADA-USD", status="delisted")])

    def test_enumerate_requires_catalog(self) -> None:
        with pytest.raises(EngineStateError):
            ArbitrageEngine().enumerate_cycles()

    def test_events_require_enumeration(self, triangle_products: list[Product]) -> None:
        """Test that the live phase cannot start before cycles exist."""
        engine = ArbitrageEngine()
        engine.load_catalog(triangle_products)

        with pytest.raises(EngineStateError):
            engine.process_events(quote("BTC-USD", 50000.0, 50010.0))
        with pytest.raises(EngineStateError):
            engine.apply_update("BTC-USD", QuoteSide.BUY, 50000.0, 1.0)

    def test_no_rebuild_after_enumeration(
        self, engine: ArbitrageEngine, triangle_products: list[Product]
    ) -> None:
        """Test that topology operations are rejected once enumerated."""
        with pytest.raises(EngineStateError):
            engine.load_catalog(triangle_products)
        with pytest.raises(EngineStateError):
            engine.prune()
        with pytest.raises(EngineStateError):
            engine.enumerate_cycles()

    def test_state_transitions(self, triangle_products: list[Product]) -> None:
        engine = ArbitrageEngine(EngineConfig(fee_rate=0.0))
        engine.load_catalog(triangle_products)
        assert engine.state is EngineState.BUILDING

        engine.enumerate_cycles()
        assert engine.state is EngineState.ENUMERATED
        assert engine.graph.is_frozen

        engine.process_events(quote("BTC-USD", 50000.0, 50010.0))
        assert engine.state is EngineState.LIVE

    def test_enumerated_triangle(self, engine: ArbitrageEngine) -> None:
        snapshot = engine.snapshot()

        assert len(engine.cycles) == 2
        assert snapshot.node_count == 3
        assert snapshot.edge_count == 6
        assert snapshot.cycle_count == 2
        assert snapshot.edges_populated == 0
        assert not snapshot.is_ready
        assert sorted(snapshot.currencies) == ["BTC", "ETH", "USD"]

    def test_subscribed_pairs_follow_pruning(
        self, zero_fee_config: EngineConfig, catalog_products: list[Product]
    ) -> None:
        """Test that only pairs between surviving currencies are subscribed."""
        engine = ArbitrageEngine(zero_fee_config)
        engine.load_catalog(catalog_products)

        assert engine.prune() == ["DOGE"]
        engine.enumerate_cycles()

        assert engine.subscribed_pairs() == ["BTC-USD", "ETH-USD", "ETH-BTC", "SOL-USD", "SOL-BTC"]
        assert sorted(engine.snapshot().currencies) == ["BTC", "ETH", "SOL", "USD"]


class TestApplyUpdate:
    """Tests for quote application."""

    def test_bid_sets_base_to_quote(self, engine: ArbitrageEngine) -> None:
        edge = engine.apply_update("BTC-USD", QuoteSide.BUY, 50000.0, 1.5)

        assert edge == ("BTC", "USD")
        weight = engine.graph.edge("BTC", "USD")
        assert weight.price == 50000.0
        assert weight.size == 1.5

    def test_ask_sets_quote_to_base(self, engine: ArbitrageEngine) -> None:
        """Test that an ask is inverted into the quote currency's edge."""
        edge = engine.apply_update("BTC-USD", "sell", 50000.0, 2.0)

        assert edge == ("USD", "BTC")
        weight = engine.graph.edge("USD", "BTC")
        assert weight.price == pytest.approx(1 / 50000.0)
        assert weight.size == pytest.approx(100000.0)

    @pytest.mark.parametrize(
        "price,size",
        [
            (0.0, 1.0),
            (-1.0, 1.0),
            (1.0, 0.0),
            (float("nan"), 1.0),
            (float("inf"), 1.0),
            (1.0, float("nan")),
        ],
    )
    def test_invalid_quote(self, engine: ArbitrageEngine, price: float, size: float) -> None:
        with pytest.raises(InvalidQuote) as exc_info:
            engine.apply_update("BTC-USD", QuoteSide.BUY, price, size)

        assert exc_info.value.pair_id == "BTC-USD"
        assert not engine.graph.edge("BTC", "USD").is_populated

    def test_invalid_side(self, engine: ArbitrageEngine) -> None:
        with pytest.raises(InvalidQuote):
            engine.apply_update("BTC-USD", "hold", 50000.0, 1.0)

    def test_unknown_currency(self, engine: ArbitrageEngine) -> None:
        with pytest.raises(UnknownNode):
            engine.apply_update("XRP-USD", QuoteSide.BUY, 0.5, 100.0)

    def test_edges_populated_counts_once(self, engine: ArbitrageEngine) -> None:
        """Test that re-quoting an edge does not count it again."""
        engine.apply_update("BTC-USD", QuoteSide.BUY, 50000.0, 1.0)
        engine.apply_update("BTC-USD", QuoteSide.BUY, 50001.0, 1.0)

        assert engine.edges_populated == 1
        assert engine.graph.populated_edge_count() == 1


class TestProcessEvents:
    """Tests for message processing and ranking."""

    def test_all_edges_populated(self, engine: ArbitrageEngine) -> None:
        snapshot = flat_market(engine)

        assert snapshot.edges_populated == 6
        assert snapshot.is_ready
        assert engine.is_ready
        assert snapshot.messages_processed == 3

    def test_flat_market_not_reportable(self, engine: ArbitrageEngine) -> None:
        """Test that the current best is tracked even below the threshold."""
        snapshot = flat_market(engine)

        assert snapshot.opportunities == ()
        assert snapshot.current_best is not None
        assert snapshot.current_best.multiplier == pytest.approx(0.998, rel=1e-3)
        assert snapshot.best_ever is None

    def test_profitable_cycle_reported(self, engine: ArbitrageEngine) -> None:
        """Test that a mispriced ETH-BTC bid opens BTC > USD > ETH > BTC."""
        snapshot = flat_market(engine, eth_btc_bid=0.051)

        assert len(snapshot.opportunities) == 1
        best = snapshot.opportunities[0]
        assert best.multiplier == pytest.approx(1.02)
        assert best.cycle.edges[-1] == ("ETH", "BTC")
        assert best.size_currency == best.cycle.start
        assert snapshot.current_best == best
        assert snapshot.best_ever == best
        assert engine.metrics.get_counter("reportable_passes") == 1

    def test_bottleneck_in_start_currency(self, engine: ArbitrageEngine) -> None:
        snapshot = flat_market(engine, eth_btc_bid=0.051)

        # USD -> ETH caps the loop at 25000 USD, i.e. 10 ETH
        assert snapshot.opportunities[0].size == pytest.approx(0.51)

    def test_invalid_event_isolated(self, engine: ArbitrageEngine) -> None:
        """Test that a bad event in a message does not stop the others."""
        events = [
            MarketEvent("BTC-USD", QuoteSide.BUY, float("nan"), 1.0),
            MarketEvent("XRP-USD", QuoteSide.BUY, 0.5, 1.0),
            MarketEvent("ETH-USD", QuoteSide.BUY, 2500.0, 1.0),
        ]

        snapshot = engine.process_events(events)

        assert snapshot.edges_populated == 1
        assert snapshot.messages_processed == 1
        assert engine.metrics.get_counter("invalid_quotes") == 1
        assert engine.metrics.get_counter("events_applied") == 1

    def test_idempotent_update(self, engine: ArbitrageEngine) -> None:
        """Test that repeating a message leaves the ranking unchanged."""
        first = flat_market(engine, eth_btc_bid=0.051)
        second = engine.process_events(quote("ETH-BTC", 0.051, 0.0501))

        assert [o.multiplier for o in second.opportunities] == [
            o.multiplier for o in first.opportunities
        ]
        assert second.current_best.cycle == first.current_best.cycle
        assert second.best_ever == first.best_ever

    def test_best_ever_is_monotonic(self, engine: ArbitrageEngine) -> None:
        """Test that the best-ever record only moves up."""
        flat_market(engine, eth_btc_bid=0.051)
        record = engine.best_ever
        assert record is not None

        engine.process_events(quote("ETH-BTC", 0.0505, 0.0501))
        assert engine.best_ever is record
        assert engine.current_best.multiplier == pytest.approx(1.01)

        engine.process_events(quote("ETH-BTC", 0.049, 0.0501))
        assert engine.best_ever is record
        assert engine.opportunities == ()

        engine.process_events(quote("ETH-BTC", 0.0515, 0.0501))
        assert engine.best_ever is not record
        assert engine.best_ever.multiplier == pytest.approx(1.03)

    def test_top_n_limits_opportunities(self, triangle_products: list[Product]) -> None:
        """Test that only the best ``top_n`` reportable cycles are kept."""
        engine = ArbitrageEngine(EngineConfig(fee_rate=0.0, top_n=1))
        engine.load_catalog(triangle_products)
        engine.enumerate_cycles()

        # Crossed BTC-USD book: both directions clear 1.0
        engine.process_events(quote("BTC-USD", 50000.0, 49000.0, 1.0))
        engine.process_events(quote("ETH-USD", 2500.0, 2500.0))
        snapshot = engine.process_events(quote("ETH-BTC", 0.051, 0.05))

        assert len(snapshot.opportunities) == 1
        assert snapshot.opportunities[0].multiplier == pytest.approx(50000.0 / 49000.0)
        assert snapshot.current_best == snapshot.opportunities[0]

    def test_fee_removes_opportunity(self, triangle_products: list[Product]) -> None:
        """Test that a 2% edge does not survive three 1.2% fees."""
        engine = ArbitrageEngine(EngineConfig())
        engine.load_catalog(triangle_products)
        engine.enumerate_cycles()

        snapshot = flat_market(engine, eth_btc_bid=0.051)

        assert snapshot.opportunities == ()
        assert snapshot.current_best.multiplier == pytest.approx(1.02 * 0.988**3)

    def test_nan_gain_excluded(self, engine: ArbitrageEngine) -> None:
        """Test that a cycle with a NaN gain drops out of the ranking."""
        flat_market(engine, eth_btc_bid=0.051)
        engine.graph.edge("BTC", "USD").price = float("nan")

        snapshot = engine.recompute_best()

        assert snapshot.current_best is not None
        assert ("BTC", "USD") not in snapshot.current_best.cycle.edges
        assert not math.isnan(snapshot.current_best.multiplier)
        assert snapshot.opportunities == ()
        assert engine.metrics.get_counter("invalid_quotes") == 1

    def test_unquoted_cycles_rank_last(self, engine: ArbitrageEngine) -> None:
        snapshot = engine.recompute_best()

        assert snapshot.current_best.multiplier == 0.0
        assert snapshot.opportunities == ()

    def test_recompute_latency_recorded(self, engine: ArbitrageEngine) -> None:
        flat_market(engine)

        assert engine.metrics.get_latency_stats("recompute").count == 3


class TestListeners:
    """Tests for snapshot listeners."""

    def test_listener_receives_snapshots(self, engine: ArbitrageEngine) -> None:
        received: list[EngineSnapshot] = []
        engine.register_listener(received.append)

        snapshot = engine.process_events(quote("BTC-USD", 50000.0, 50010.0))

        assert received == [snapshot]

    def test_failing_listener_isolated(self, engine: ArbitrageEngine) -> None:
        """Test that one broken listener does not starve the others."""
        received: list[EngineSnapshot] = []

        def broken(snapshot: EngineSnapshot) -> None:
            raise RuntimeError("boom")

        engine.register_listener(broken)
        engine.register_listener(received.append)

        engine.process_events(quote("BTC-USD", 50000.0, 50010.0))

        assert len(received) == 1

    def test_unregister(self, engine: ArbitrageEngine) -> None:
        received: list[EngineSnapshot] = []
        engine.register_listener(received.append)
        engine.unregister_listener(received.append)

        engine.process_events(quote("BTC-USD", 50000.0, 50010.0))

        assert received == []
