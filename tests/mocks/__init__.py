"""Mock implementations for testing."""

from tests.mocks.exchange import MockCoinbaseClient, make_product
from tests.mocks.websocket import MockFeed


__all__ = [
    "MockCoinbaseClient",
    "MockFeed",
    "make_product",
]
