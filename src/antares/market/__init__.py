"""Market data module for the pair catalog and the live feed."""

from antares.market.parser import parse_feed_message
from antares.market.symbols import PairCatalog
from antares.market.websocket import CoinbaseFeed, ConnectionState


__all__ = [
    "CoinbaseFeed",
    "ConnectionState",
    "PairCatalog",
    "parse_feed_message",
]
