"""Core module containing the engine types and the error hierarchy."""

from antares.core.errors import (
    AntaresError,
    CatalogError,
    EngineStateError,
    EnumerationOverflow,
    GraphError,
    InvalidQuote,
    TopologyFrozenError,
    UnknownEdge,
    UnknownNode,
)
from antares.core.types import (
    Cycle,
    EdgeWeight,
    EngineSnapshot,
    EngineState,
    GainResult,
    MarketEvent,
    Opportunity,
    PairInfo,
    QuoteSide,
    VisitAction,
)


__all__ = [
    "AntaresError",
    "CatalogError",
    "Cycle",
    "EdgeWeight",
    "EngineSnapshot",
    "EngineState",
    "EngineStateError",
    "EnumerationOverflow",
    "GainResult",
    "GraphError",
    "InvalidQuote",
    "MarketEvent",
    "Opportunity",
    "PairInfo",
    "QuoteSide",
    "TopologyFrozenError",
    "UnknownEdge",
    "UnknownNode",
    "VisitAction",
]
