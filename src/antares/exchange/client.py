"""
Async Coinbase Exchange REST API client.

Only the public product catalog is needed, so there is no signing or
rate limiting. Features:
- Connection pooling and keep-alive
- Fast JSON parsing with orjson
- Pydantic validation of every catalog entry
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import aiohttp
import orjson
from pydantic import ValidationError

from antares import __version__
from antares.config.constants import COINBASE_REST_URL, ENDPOINT_PRODUCTS, HTTP_TIMEOUT
from antares.exchange.models import ErrorResponse, Product


logger = logging.getLogger(__name__)


class CoinbaseClientError(Exception):
    """Base exception for Coinbase client errors."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class CoinbaseAPIError(CoinbaseClientError):
    """Exception for Coinbase API errors (HTTP status >= 400)."""

    pass


class CoinbaseClient:
    """
    Async Coinbase Exchange REST client.

    Usage:
        async with CoinbaseClient() as client:
            pairs = await client.get_online_pairs()
    """

    def __init__(
        self,
        base_url: str = COINBASE_REST_URL,
        timeout: float = HTTP_TIMEOUT,
    ) -> None:
        """
        Initialize the Coinbase client.

        Args:
            base_url: REST API base URL.
            timeout: Total request timeout in seconds.
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=10,
                keepalive_timeout=30,
                enable_cleanup_closed=True,
            )
            headers = {
                "User-Agent": f"antares/{__version__}",
                "Accept": "application/json",
            }
            self._session = aiohttp.ClientSession(
                connector=connector,
                headers=headers,
                timeout=self._timeout,
                json_serialize=lambda x: orjson.dumps(x).decode(),
            )

        return self._session

    async def close(self) -> None:
        """Close the client session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "CoinbaseClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    @asynccontextmanager
    async def _request_context(self) -> AsyncIterator[aiohttp.ClientSession]:
        """Context manager for making requests."""
        session = await self._get_session()
        try:
            yield session
        except (aiohttp.ClientError, TimeoutError) as e:
            raise CoinbaseClientError(f"Network error: {e}") from e

    async def _get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """
        Make a GET request.

        Args:
            endpoint: API endpoint.
            params: Query parameters.

        Returns:
            Parsed JSON response.

        Raises:
            CoinbaseAPIError: On API error response.
            CoinbaseClientError: On network or other errors.
        """
        url = f"{self._base_url}{endpoint}"

        async with self._request_context() as session:
            async with session.get(url, params=params or {}) as response:
                return await self._handle_response(response)

    async def _handle_response(self, response: aiohttp.ClientResponse) -> Any:
        """Parse and validate response."""
        body = await response.read()

        try:
            data = orjson.loads(body)
        except orjson.JSONDecodeError as e:
            if response.status >= 400:
                raise CoinbaseAPIError(
                    f"API error {response.status}: {body[:200]!r}", code=response.status
                ) from e
            raise CoinbaseClientError(f"Invalid JSON response: {e}") from e

        if response.status >= 400:
            message = ErrorResponse.model_validate(data).message if isinstance(data, dict) else ""
            raise CoinbaseAPIError(
                f"API error {response.status}: {message or response.reason}",
                code=response.status,
            )

        return data

    # =========================================================================
    # Public Endpoints
    # =========================================================================

    async def get_products(self) -> list[Product]:
        """
        Get the full product catalog.

        Entries that fail validation are skipped with a warning.

        Raises:
            CoinbaseClientError: If the response is not a list.
        """
        data = await self._get(ENDPOINT_PRODUCTS)
        if not isinstance(data, list):
            raise CoinbaseClientError(f"Expected a list of products, got {type(data).__name__}")

        products: list[Product] = []
        for entry in data:
            try:
                products.append(Product.model_validate(entry))
            except ValidationError as e:
                logger.warning(f"Skipping malformed product entry: {e.error_count()} errors")

        logger.info(f"Fetched {len(products)} products")
        return products

    async def get_online_pairs(self) -> list[Product]:
        """Get the products whose status is online."""
        products = await self.get_products()
        online = [p for p in products if p.is_online]
        logger.info(f"{len(online)} of {len(products)} products are online")
        return online
