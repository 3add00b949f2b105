"""Simulation module for demo mode without a network connection."""

from antares.simulation.market import MarketSimulator, SimulatedPair


__all__ = [
    "MarketSimulator",
    "SimulatedPair",
]
