"""
Antares: live cycle arbitrage monitor.

Models the tradable pairs of Coinbase Exchange as a directed graph,
enumerates every short elementary cycle once, and re-evaluates their
gain on each streamed order book update.
"""

__version__ = "0.2.0"
__author__ = "Tim"
