#!/usr/bin/env python3
"""
Cycle Discovery Script.

Fetches the pair catalog, builds and prunes the currency graph and lists
every cycle the monitor would watch, without subscribing to market data.
"""

import argparse
import asyncio
import sys
from pathlib import Path

import orjson

# Add src to path for direct execution
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from antares.config.settings import get_settings
from antares.core.types import Cycle, VisitAction
from antares.exchange.client import CoinbaseClient, CoinbaseClientError
from antares.market.symbols import PairCatalog
from antares.simulation.market import MarketSimulator
from antares.strategy.cycles import CycleEnumerator
from antares.strategy.graph import build_from_catalog
from antares.utils.time import LatencyTimer, format_duration_us


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="List the arbitrage cycles of the pair catalog")
    parser.add_argument("--limit", type=int, default=None, help="stop after this many cycles")
    parser.add_argument("--show", type=int, default=50, help="cycles to print (default: 50)")
    parser.add_argument(
        "--output", type=Path, default=Path("cycles.json"), help="JSON export path"
    )
    parser.add_argument(
        "--simulate", action="store_true", help="use the simulator catalog instead of Coinbase"
    )
    return parser.parse_args()


async def main() -> int:
    """Discover and display cycles."""
    args = parse_args()

    print("=" * 60)
    print("  CYCLE DISCOVERY")
    print("=" * 60)
    print()

    settings = get_settings()

    # Load catalog
    print("Loading pair catalog...")
    if args.simulate or settings.simulate:
        pairs = await MarketSimulator().get_online_pairs()
    else:
        try:
            async with CoinbaseClient(base_url=settings.rest_url) as client:
                pairs = await client.get_online_pairs()
        except CoinbaseClientError as e:
            print(f"Error loading catalog: {e}")
            return 1

    catalog = PairCatalog(settings.excluded_currencies)
    count = catalog.load(pairs)
    print(f"Loaded {count} usable pairs")

    # Build graph
    graph = build_from_catalog(catalog)
    removed = graph.prune_single_exit_nodes()
    graph.freeze()
    print(f"Graph: {graph.node_count} currencies, {graph.edge_count} edges")
    if removed:
        print(f"Pruned: {', '.join(removed)}")
    print()

    # Enumerate cycles
    print(f"Enumerating {settings.min_cycle_len}-{settings.max_cycle_len} hop cycles...")
    enumerator = CycleEnumerator(
        graph,
        min_len=settings.min_cycle_len,
        max_len=settings.max_cycle_len,
        budget=settings.enumeration_budget,
    )
    cycles: list[Cycle] = []

    def collect(cycle: Cycle) -> VisitAction:
        cycles.append(cycle)
        if args.limit is not None and len(cycles) >= args.limit:
            return VisitAction.STOP
        return VisitAction.CONTINUE

    with LatencyTimer() as timer:
        stopped = enumerator.visit_cycles(collect)

    print(f"Found {len(cycles)} cycles in {format_duration_us(timer.latency_us)}")
    if stopped:
        print(f"Stopped early at --limit {args.limit}")
    if enumerator.overflowed_components:
        print(f"{enumerator.overflowed_components} components exceeded the enumeration budget")
    print()

    # Display cycles
    print("=" * 60)
    print("  DISCOVERED CYCLES")
    print("=" * 60)
    print()

    for i, cycle in enumerate(cycles[: args.show], 1):
        print(f"{i:4}. [{cycle.length}] {cycle.describe()}")
    if len(cycles) > args.show:
        print(f"      ... {len(cycles) - args.show} more")
    print()

    # Summary
    by_length: dict[int, int] = {}
    for cycle in cycles:
        by_length[cycle.length] = by_length.get(cycle.length, 0) + 1

    print("=" * 60)
    print("  SUMMARY")
    print("=" * 60)
    print()
    print(f"Total cycles:  {len(cycles)}")
    for length in sorted(by_length):
        print(f"  {length} hops:     {by_length[length]}")
    print(f"Pairs watched: {len(catalog.pair_ids_within(graph.nodes()))}")
    print()

    # Export to JSON
    export = {
        "currencies": graph.nodes(),
        "edge_count": graph.edge_count,
        "pruned": removed,
        "complete": not stopped and not enumerator.overflowed_components,
        "cycles": [
            {"id": cycle.id, "length": cycle.length, "path": list(cycle.nodes)} for cycle in cycles
        ],
    }
    args.output.write_bytes(orjson.dumps(export, option=orjson.OPT_INDENT_2))
    print(f"Exported to: {args.output}")

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
