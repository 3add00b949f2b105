"""Exchange integration module for Coinbase."""

from antares.exchange.client import CoinbaseAPIError, CoinbaseClient, CoinbaseClientError
from antares.exchange.models import ErrorResponse, Product


__all__ = [
    "CoinbaseAPIError",
    "CoinbaseClient",
    "CoinbaseClientError",
    "ErrorResponse",
    "Product",
]
