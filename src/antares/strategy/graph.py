"""
Currency graph model.

Uses NetworkX for the graph structure. Each directed edge carries a
mutable EdgeWeight in its attribute dict so the hot path can overwrite
price and size in place, and cycles resolved at startup keep seeing the
live values.
"""

import logging
from collections.abc import Iterable, Iterator

import networkx as nx

from antares.core.errors import TopologyFrozenError, UnknownEdge, UnknownNode
from antares.core.types import EdgeWeight, TradingPair
from antares.market.symbols import PairCatalog


logger = logging.getLogger(__name__)

WEIGHT_KEY = "weight"


class GraphModel:
    """
    Directed currency graph with live edge weights.

    Nodes are currency symbols. There is at most one edge per ordered
    pair. After ``freeze()`` the topology is fixed and only weights change.
    """

    __slots__ = ("_graph", "_frozen")

    def __init__(self) -> None:
        self._graph: nx.DiGraph = nx.DiGraph()
        self._frozen = False

    # =========================================================================
    # Topology
    # =========================================================================

    def add_node(self, node: str) -> str:
        """Add a currency. Adding an existing currency is a no-op."""
        self._check_mutable()
        self._graph.add_node(node)
        return node

    def add_edge(self, source: str, target: str, weight: EdgeWeight | None = None) -> None:
        """
        Insert or replace the edge ``source -> target``.

        Replacing keeps the existing EdgeWeight object and overwrites its
        values.

        Raises:
            UnknownNode: If either endpoint is not in the graph.
            TopologyFrozenError: If the graph is frozen.
        """
        self._check_mutable()
        self._require_node(source)
        self._require_node(target)

        weight = weight if weight is not None else EdgeWeight()
        existing = self._graph.succ[source].get(target)
        if existing is not None:
            current: EdgeWeight = existing[WEIGHT_KEY]
            current.price = weight.price
            current.size = weight.size
        else:
            self._graph.add_edge(source, target, **{WEIGHT_KEY: weight})

    def prune_single_exit_nodes(self) -> list[str]:
        """
        Remove every node whose out-degree is exactly 1.

        This is one pass over the degrees observed at call time. Nodes whose
        out-degree drops to 1 because of the removal are kept.

        Returns:
            The removed currencies, in graph order.
        """
        self._check_mutable()
        removed = [node for node, degree in self._graph.out_degree() if degree == 1]
        self._graph.remove_nodes_from(removed)

        if removed:
            logger.info(
                f"Pruned {len(removed)} single-exit currencies, "
                f"{self.node_count} remain"
            )
        return removed

    def freeze(self) -> None:
        """Fix the topology. Only weight updates are allowed afterwards."""
        self._frozen = True

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    # =========================================================================
    # Weights
    # =========================================================================

    def update_edge(self, source: str, target: str, price: float, size: float) -> None:
        """
        Overwrite the weight of an existing edge.

        Raises:
            UnknownNode: If either endpoint is not in the graph.
            UnknownEdge: If the ordered pair has no edge.
        """
        try:
            data = self._graph.succ[source][target]
        except KeyError:
            self._require_node(source)
            self._require_node(target)
            raise UnknownEdge(source, target) from None

        weight: EdgeWeight = data[WEIGHT_KEY]
        weight.price = price
        weight.size = size

    def edge(self, source: str, target: str) -> EdgeWeight:
        """
        Get the live weight object of an edge.

        Raises:
            UnknownEdge: If the ordered pair has no edge.
        """
        try:
            return self._graph.succ[source][target][WEIGHT_KEY]
        except KeyError:
            raise UnknownEdge(source, target) from None

    # =========================================================================
    # Queries
    # =========================================================================

    def lookup_node(self, node: str) -> str | None:
        """Get the node handle for a currency, or None if absent."""
        return node if node in self._graph else None

    def has_node(self, node: str) -> bool:
        return node in self._graph

    def has_edge(self, source: str, target: str) -> bool:
        return self._graph.has_edge(source, target)

    def successors(self, node: str) -> list[str]:
        """Get the targets of a node's outgoing edges, in insertion order."""
        self._require_node(node)
        return list(self._graph.successors(node))

    def out_degree(self, node: str) -> int:
        self._require_node(node)
        return int(self._graph.out_degree(node))

    def nodes(self) -> list[str]:
        """Get all currencies, in insertion order."""
        return list(self._graph.nodes)

    def edges(self) -> Iterator[tuple[str, str, EdgeWeight]]:
        """Iterate over ``(source, target, weight)`` triples."""
        for source, target, weight in self._graph.edges(data=WEIGHT_KEY):
            yield source, target, weight

    def populated_edge_count(self) -> int:
        """Count edges that have received at least one quote."""
        return sum(1 for _, _, weight in self.edges() if weight.is_populated)

    @property
    def node_count(self) -> int:
        return int(self._graph.number_of_nodes())

    @property
    def edge_count(self) -> int:
        return int(self._graph.number_of_edges())

    def to_networkx(self) -> nx.DiGraph:
        """Get a structural copy of the graph (no weights)."""
        return nx.DiGraph(self._graph.edges())

    def __len__(self) -> int:
        return self.node_count

    def __contains__(self, node: object) -> bool:
        return node in self._graph

    def __repr__(self) -> str:
        return (
            f"GraphModel(nodes={self.node_count}, edges={self.edge_count}, "
            f"frozen={self._frozen})"
        )

    # =========================================================================
    # Internal
    # =========================================================================

    def _check_mutable(self) -> None:
        if self._frozen:
            raise TopologyFrozenError("Graph topology is frozen")

    def _require_node(self, node: str) -> None:
        if node not in self._graph:
            raise UnknownNode(node)


def build_from_catalog(catalog: PairCatalog) -> GraphModel:
    """
    Build the currency graph from an already filtered catalog.

    All currencies are added first, then both directed edges of every
    pair with placeholder weights.
    """
    pairs = catalog.get_all()
    graph = GraphModel()

    for info in pairs:
        graph.add_node(info.base)
        graph.add_node(info.quote)

    for info in pairs:
        graph.add_edge(info.base, info.quote)
        graph.add_edge(info.quote, info.base)

    logger.info(
        f"Built graph with {graph.node_count} currencies, "
        f"{graph.edge_count} edges from {len(pairs)} pairs"
    )
    return graph


def build_from_pairs(
    pairs: Iterable[TradingPair],
    excluded_currencies: Iterable[str] = (),
) -> GraphModel:
    """
    Build the currency graph from a raw pair catalog.

    Pairs that are not online, that touch an excluded currency, or that
    trade a currency against itself are skipped.

    Args:
        pairs: Catalog entries.
        excluded_currencies: Currencies to leave out of the graph.

    Returns:
        The populated, unfrozen graph.
    """
    catalog = PairCatalog(excluded_currencies)
    catalog.load(pairs)
    return build_from_catalog(catalog)
