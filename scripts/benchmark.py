#!/usr/bin/env python3
"""
Latency Benchmark Script.

Measures cycle enumeration time and per-message recompute latency on a
synthetic, fully connected currency graph.
"""

import itertools
import random
import statistics
import sys
from pathlib import Path

# Add src to path for direct execution
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from antares.config.engine import EngineConfig
from antares.core.engine import ArbitrageEngine
from antares.core.types import MarketEvent, QuoteSide
from antares.exchange.models import Product
from antares.strategy.cycles import CycleEnumerator
from antares.strategy.graph import build_from_pairs
from antares.utils.time import format_duration_us, get_timestamp_us


def dense_catalog(currencies: int) -> list[Product]:
    """One pair for every two currencies."""
    names = [f"C{i:02d}" for i in range(currencies)]
    return [
        Product(id=f"{base}-{quote}", base_currency=base, quote_currency=quote, status="online")
        for base, quote in itertools.combinations(names, 2)
    ]


def summarize(latencies: list[int]) -> dict[str, float]:
    return {
        "min": min(latencies),
        "max": max(latencies),
        "avg": statistics.mean(latencies),
        "p50": statistics.median(latencies),
        "p99": sorted(latencies)[int(len(latencies) * 0.99)],
    }


def benchmark_enumeration(currencies: int, max_len: int, runs: int = 3) -> tuple[int, dict[str, float]]:
    """Benchmark cycle enumeration on a complete graph."""
    graph = build_from_pairs(dense_catalog(currencies))
    graph.freeze()

    latencies: list[int] = []
    count = 0
    for _ in range(runs):
        enumerator = CycleEnumerator(graph, min_len=3, max_len=max_len)
        start = get_timestamp_us()
        count = len(enumerator.cycles())
        latencies.append(get_timestamp_us() - start)

    return count, summarize(latencies)


def benchmark_recompute(
    currencies: int, max_len: int, iterations: int = 2000
) -> tuple[int, dict[str, float]]:
    """Benchmark one two-event message through the engine."""
    pairs = dense_catalog(currencies)
    engine = ArbitrageEngine(
        EngineConfig(fee_rate=0.006, max_cycle_len=max_len, excluded_currencies=frozenset())
    )
    engine.load_catalog(pairs)
    engine.enumerate_cycles()

    rng = random.Random(7)
    for pair in pairs:
        engine.process_events(
            [
                MarketEvent(pair.id, QuoteSide.BUY, 0.999, 10.0),
                MarketEvent(pair.id, QuoteSide.SELL, 1.001, 10.0),
            ]
        )

    latencies: list[int] = []
    for _ in range(iterations):
        pair = rng.choice(pairs)
        mid = rng.uniform(0.98, 1.02)
        events = [
            MarketEvent(pair.id, QuoteSide.BUY, mid * 0.999, rng.uniform(1.0, 20.0)),
            MarketEvent(pair.id, QuoteSide.SELL, mid * 1.001, rng.uniform(1.0, 20.0)),
        ]

        start = get_timestamp_us()
        engine.process_events(events)
        latencies.append(get_timestamp_us() - start)

    return len(engine.cycles), summarize(latencies)


def format_stats(stats: dict[str, float]) -> str:
    """Format stats for display."""
    return (
        f"min={format_duration_us(int(stats['min']))}, "
        f"avg={format_duration_us(int(stats['avg']))}, "
        f"p50={format_duration_us(int(stats['p50']))}, "
        f"p99={format_duration_us(int(stats['p99']))}, "
        f"max={format_duration_us(int(stats['max']))}"
    )


def main() -> int:
    """Run all benchmarks."""
    print("=" * 70)
    print("  LATENCY BENCHMARK")
    print("=" * 70)
    print()

    # Warm up
    print("Warming up...")
    benchmark_enumeration(6, 4, runs=1)
    benchmark_recompute(6, 4, iterations=100)
    print()

    print("Running benchmarks...")
    print()

    print("1. Cycle Enumeration (complete graph, 3-5 hops)")
    for currencies in (8, 12, 16):
        count, stats = benchmark_enumeration(currencies, 5)
        print(f"   {currencies:2} currencies, {count:>8,} cycles: {format_stats(stats)}")
    print()

    print("2. Message Recompute (2,000 messages, 3-4 hops)")
    for currencies in (8, 12, 16):
        count, stats = benchmark_recompute(currencies, 4)
        print(f"   {currencies:2} currencies, {count:>8,} cycles: {format_stats(stats)}")
    print()

    print("=" * 70)
    print("  SUMMARY")
    print("=" * 70)
    print()
    print("Target: message recompute well under the feed's batch interval (50ms)")
    print()

    return 0


if __name__ == "__main__":
    sys.exit(main())
