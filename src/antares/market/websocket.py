"""
WebSocket feed for real-time Coinbase market data.

One connection carries every subscribed pair on the level 2 batch
channel, with:
- Auto-reconnection with exponential backoff
- Re-subscription after every reconnect
- In-order dispatch of parsed events
- Staleness tracking via the last message timestamp
"""

import asyncio
import logging
from collections.abc import Callable, Coroutine, Iterable
from enum import Enum, auto
from typing import Any

import aiohttp
import orjson

from antares.config.constants import (
    COINBASE_WS_URL,
    FEED_CHANNEL,
    MAX_RECONNECT_DELAY,
    MIN_RECONNECT_DELAY,
    RECONNECT_MULTIPLIER,
    WS_CLOSE_TIMEOUT,
    WS_MAX_MESSAGE_SIZE,
    WS_PING_INTERVAL,
    WS_RECEIVE_TIMEOUT,
)
from antares.core.types import MarketEvent
from antares.market.parser import parse_feed_message
from antares.utils.time import get_timestamp_us


logger = logging.getLogger(__name__)


# Type aliases
EventHandler = Callable[[list[MarketEvent]], Coroutine[Any, Any, None]]


class ConnectionState(Enum):
    """WebSocket connection state."""

    DISCONNECTED = auto()
    CONNECTING = auto()
    CONNECTED = auto()
    RECONNECTING = auto()
    CLOSED = auto()


def build_subscribe_message(product_ids: Iterable[str], channel: str = FEED_CHANNEL) -> dict[str, Any]:
    """Build the subscribe request for a set of pairs."""
    return {
        "type": "subscribe",
        "product_ids": list(product_ids),
        "channels": [channel],
    }


class CoinbaseFeed:
    """
    Coinbase Exchange market feed.

    Handlers receive the events of one message at a time and are awaited
    before the next message is read, so per-message atomicity and
    ordering carry through to the engine.
    """

    def __init__(
        self,
        url: str = COINBASE_WS_URL,
        product_ids: Iterable[str] = (),
        channel: str = FEED_CHANNEL,
    ) -> None:
        """
        Initialize the feed.

        Args:
            url: WebSocket feed URL.
            product_ids: Pairs to subscribe to.
            channel: Coinbase channel name.
        """
        self._url = url
        self._product_ids: list[str] = list(product_ids)
        self._channel = channel
        self._handlers: list[EventHandler] = []

        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._session: aiohttp.ClientSession | None = None
        self._state = ConnectionState.DISCONNECTED
        self._reconnect_delay = MIN_RECONNECT_DELAY
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._message_count = 0
        self._last_message_us = 0
        self._reconnects = 0

    # =========================================================================
    # Subscription & Handlers
    # =========================================================================

    def subscribe(self, product_ids: Iterable[str]) -> None:
        """
        Set the pairs to subscribe to.

        Takes effect on the next (re)connect.
        """
        self._product_ids = list(product_ids)
        logger.info(f"Feed will subscribe to {len(self._product_ids)} pairs")

    def add_handler(self, handler: EventHandler) -> None:
        """
        Add an event handler.

        Args:
            handler: Async callback for the events of one message.
        """
        self._handlers.append(handler)

    def remove_handler(self, handler: EventHandler) -> None:
        """Remove an event handler."""
        if handler in self._handlers:
            self._handlers.remove(handler)

    async def _dispatch(self, events: list[MarketEvent]) -> None:
        """Dispatch events to all handlers."""
        for handler in self._handlers:
            try:
                await handler(events)
            except Exception as e:
                logger.error(f"Handler error: {e}")

    # =========================================================================
    # Connection Lifecycle
    # =========================================================================

    async def connect(self) -> bool:
        """
        Establish the connection and subscribe.

        Returns:
            True if connected successfully.
        """
        if self._state == ConnectionState.CONNECTED:
            return True

        self._state = ConnectionState.CONNECTING

        try:
            if self._session is None or self._session.closed:
                self._session = aiohttp.ClientSession()

            logger.info(f"Connecting to {self._url}")
            self._ws = await self._session.ws_connect(
                self._url,
                heartbeat=WS_PING_INTERVAL,
                receive_timeout=WS_RECEIVE_TIMEOUT,
                max_msg_size=WS_MAX_MESSAGE_SIZE,
            )

            message = build_subscribe_message(self._product_ids, self._channel)
            await self._ws.send_str(orjson.dumps(message).decode())

            self._state = ConnectionState.CONNECTED
            self._reconnect_delay = MIN_RECONNECT_DELAY
            logger.info(f"Subscribed to {len(self._product_ids)} pairs on {self._channel}")
            return True

        except (aiohttp.ClientError, OSError, TimeoutError) as e:
            logger.error(f"Connection failed: {e}")
            self._state = ConnectionState.DISCONNECTED
            return False

    async def disconnect(self) -> None:
        """Close the connection."""
        self._running = False
        self._state = ConnectionState.CLOSED

        if self._ws and not self._ws.closed:
            await self._ws.close()

        if self._session and not self._session.closed:
            await self._session.close()

        self._ws = None
        self._session = None

    async def _reconnect(self) -> None:
        """Attempt reconnection with exponential backoff."""
        self._state = ConnectionState.RECONNECTING

        while self._running and self._state != ConnectionState.CONNECTED:
            logger.info(f"Reconnecting in {self._reconnect_delay:.1f}s")
            await asyncio.sleep(self._reconnect_delay)

            if await self.connect():
                self._reconnects += 1
                break

            self._reconnect_delay = next_reconnect_delay(self._reconnect_delay)

    # =========================================================================
    # Message Loop
    # =========================================================================

    async def _handle_message(self, msg: aiohttp.WSMessage) -> bool:
        """
        Process a WebSocket message.

        Args:
            msg: WebSocket message.

        Returns:
            False if connection should be closed.
        """
        if msg.type == aiohttp.WSMsgType.TEXT:
            try:
                data = orjson.loads(msg.data)
            except orjson.JSONDecodeError as e:
                logger.warning(f"Invalid JSON: {e}")
                return True

            self._message_count += 1
            self._last_message_us = get_timestamp_us()

            events = parse_feed_message(data)
            if events:
                await self._dispatch(events)

        elif msg.type == aiohttp.WSMsgType.ERROR:
            logger.error(f"WebSocket error: {msg.data}")
            return False

        elif msg.type in (aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSING, aiohttp.WSMsgType.CLOSED):
            logger.warning("Connection closed by server")
            return False

        return True

    async def run(self) -> None:
        """Main message loop with auto-reconnection."""
        self._running = True

        while self._running:
            if self._state != ConnectionState.CONNECTED:
                if not await self.connect():
                    await self._reconnect()
                    continue

            try:
                if self._ws is None:
                    await self._reconnect()
                    continue

                async for msg in self._ws:
                    if not self._running:
                        break

                    if not await self._handle_message(msg):
                        break

            except asyncio.CancelledError:
                raise
            except (aiohttp.ClientError, TimeoutError) as e:
                logger.error(f"Error in message loop: {e}")

            if self._running:
                self._state = ConnectionState.DISCONNECTED
                await self._reconnect()

    def start(self) -> asyncio.Task[None]:
        """Start the message loop as a task."""
        self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """Stop the message loop and disconnect."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await asyncio.wait_for(self._task, timeout=WS_CLOSE_TIMEOUT)
            except (TimeoutError, asyncio.CancelledError):
                pass
            self._task = None

        await self.disconnect()
        logger.info(f"Feed stopped after {self._message_count} messages")

    async def wait_connected(self, timeout: float = 30.0) -> bool:
        """
        Wait for the connection to be established.

        Args:
            timeout: Maximum wait time in seconds.

        Returns:
            True if connected within timeout.
        """
        loop = asyncio.get_running_loop()
        start = loop.time()

        while loop.time() - start < timeout:
            if self._state == ConnectionState.CONNECTED:
                return True
            await asyncio.sleep(0.1)

        return False

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def state(self) -> ConnectionState:
        """Get current connection state."""
        return self._state

    @property
    def message_count(self) -> int:
        """Get total messages received."""
        return self._message_count

    @property
    def last_message_us(self) -> int:
        """Get the receive time of the last message, 0 if none yet."""
        return self._last_message_us

    @property
    def reconnects(self) -> int:
        """Get the number of successful reconnects."""
        return self._reconnects

    @property
    def product_ids(self) -> list[str]:
        return list(self._product_ids)

    @property
    def is_running(self) -> bool:
        """Check if the message loop is running."""
        return self._running

    async def __aenter__(self) -> "CoinbaseFeed":
        """Async context manager entry."""
        self.start()
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.stop()


def next_reconnect_delay(current: float) -> float:
    """Get the backoff delay following ``current``."""
    return min(current * RECONNECT_MULTIPLIER, MAX_RECONNECT_DELAY)
