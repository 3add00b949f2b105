"""
Mock Coinbase exchange client for testing.

Serves a fixed product catalog without network calls.
"""

from collections.abc import Iterable

from antares.exchange.client import CoinbaseClientError
from antares.exchange.models import Product


def make_product(pair_id: str, status: str = "online") -> Product:
    """Build a catalog entry from a ``BASE-QUOTE`` id."""
    base, quote = pair_id.split("-", 1)
    return Product(id=pair_id, base_currency=base, quote_currency=quote, status=status)


class MockCoinbaseClient:
    """
    Mock Coinbase client for testing.

    Implements the catalog source interface over an in-memory product list.
    """

    def __init__(self, products: Iterable[Product] = (), fail: bool = False) -> None:
        """
        Initialize mock client.

        Args:
            products: Catalog to serve.
            fail: Raise CoinbaseClientError on every request.
        """
        self._products = list(products)
        self._fail = fail
        self.requests = 0
        self.closed = False

    async def get_products(self) -> list[Product]:
        """Mock product catalog."""
        self.requests += 1
        if self._fail:
            raise CoinbaseClientError("Request failed: connection refused")
        return list(self._products)

    async def get_online_pairs(self) -> list[Product]:
        """Mock online product catalog."""
        return [p for p in await self.get_products() if p.is_online]

    async def close(self) -> None:
        self.closed = True

    async def __aenter__(self) -> "MockCoinbaseClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
