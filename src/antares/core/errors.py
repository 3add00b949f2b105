"""
Exception hierarchy for the arbitrage monitor.

Build-time errors (catalog, graph topology) are fatal and abort startup.
Live-phase errors (``InvalidQuote``) are isolated to the offending event
or cycle and only ever surface as log entries.
"""


class AntaresError(Exception):
    """Base exception for all engine errors."""


# =============================================================================
# Graph Errors
# =============================================================================


class GraphError(AntaresError):
    """Base exception for graph topology errors."""


class UnknownNode(GraphError):
    """An edge references a currency absent from the graph."""

    def __init__(self, node: str) -> None:
        super().__init__(f"Unknown node: {node!r}")
        self.node = node


class UnknownEdge(GraphError):
    """An update targets an ordered pair with no edge in the frozen graph."""

    def __init__(self, source: str, target: str) -> None:
        super().__init__(f"Unknown edge: {source!r} -> {target!r}")
        self.source = source
        self.target = target


class TopologyFrozenError(GraphError):
    """A structural mutation was attempted after cycle enumeration."""


# =============================================================================
# Market Data Errors
# =============================================================================


class InvalidQuote(AntaresError):
    """A non-finite or non-positive price or size, or an incomparable gain."""

    def __init__(self, message: str, pair_id: str | None = None) -> None:
        super().__init__(message)
        self.pair_id = pair_id


# =============================================================================
# Enumeration / Lifecycle Errors
# =============================================================================


class EnumerationOverflow(AntaresError):
    """A component's circuit search exceeded its work budget."""

    def __init__(self, component_size: int, steps: int) -> None:
        super().__init__(
            f"Cycle search over {component_size} nodes exceeded budget after {steps} steps"
        )
        self.component_size = component_size
        self.steps = steps


class CatalogError(AntaresError):
    """The pair catalog is malformed or yields no usable pairs."""


class EngineStateError(AntaresError):
    """An engine operation was called out of lifecycle order."""
