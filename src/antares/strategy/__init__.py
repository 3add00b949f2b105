"""Strategy module for cycle discovery and gain ranking."""

from antares.strategy.calculator import GainCalculator
from antares.strategy.cycles import CycleEnumerator, strongly_connected_components
from antares.strategy.graph import GraphModel, build_from_catalog, build_from_pairs
from antares.strategy.opportunity import OpportunityRanker, RankedPass


__all__ = [
    "CycleEnumerator",
    "GainCalculator",
    "GraphModel",
    "OpportunityRanker",
    "RankedPass",
    "build_from_catalog",
    "build_from_pairs",
    "strongly_connected_components",
]
