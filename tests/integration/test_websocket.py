"""
Integration tests for the Coinbase feed.

Tests the flow from raw WebSocket frames to dispatched market events.
"""

import aiohttp
import orjson
import pytest

from antares.config.constants import FEED_CHANNEL, MAX_RECONNECT_DELAY, MIN_RECONNECT_DELAY
from antares.core.types import MarketEvent, QuoteSide
from antares.market.websocket import (
    CoinbaseFeed,
    ConnectionState,
    build_subscribe_message,
    next_reconnect_delay,
)


def text_frame(payload: object) -> aiohttp.WSMessage:
    """WebSocket text frame carrying a JSON payload."""
    return aiohttp.WSMessage(aiohttp.WSMsgType.TEXT, orjson.dumps(payload).decode(), None)


class TestCoinbaseFeed:
    """Integration tests for WebSocket frame -> event flow."""

    @pytest.fixture
    def received(self) -> list[list[MarketEvent]]:
        return []

    @pytest.fixture
    def feed(self, received: list[list[MarketEvent]]) -> CoinbaseFeed:
        feed = CoinbaseFeed(product_ids=["BTC-USD"])

        async def handler(events: list[MarketEvent]) -> None:
            received.append(events)

        feed.add_handler(handler)
        return feed

    @pytest.mark.asyncio
    async def test_snapshot_frame_dispatched(
        self, feed: CoinbaseFeed, received: list[list[MarketEvent]]
    ) -> None:
        frame = text_frame(
            {
                "type": "snapshot",
                "product_id": "BTC-USD",
                "bids": [["50000.00", "1.5"]],
                "asks": [["50010.00", "1.2"]],
            }
        )

        assert await feed._handle_message(frame)

        assert received == [
            [
                MarketEvent("BTC-USD", QuoteSide.BUY, 50000.0, 1.5),
                MarketEvent("BTC-USD", QuoteSide.SELL, 50010.0, 1.2),
            ]
        ]
        assert feed.message_count == 1
        assert feed.last_message_us > 0

    @pytest.mark.asyncio
    async def test_frames_dispatched_in_order(
        self, feed: CoinbaseFeed, received: list[list[MarketEvent]]
    ) -> None:
        for price in ("100", "101", "102"):
            await feed._handle_message(
                text_frame(
                    {
                        "type": "l2update",
                        "product_id": "BTC-USD",
                        "changes": [["buy", price, "1"]],
                    }
                )
            )

        assert [batch[0].price for batch in received] == [100.0, 101.0, 102.0]

    @pytest.mark.asyncio
    async def test_control_messages_counted_not_dispatched(
        self, feed: CoinbaseFeed, received: list[list[MarketEvent]]
    ) -> None:
        """Test that subscription acks refresh liveness without events."""
        await feed._handle_message(text_frame({"type": "subscriptions", "channels": []}))

        assert received == []
        assert feed.message_count == 1

    @pytest.mark.asyncio
    async def test_invalid_json_ignored(
        self, feed: CoinbaseFeed, received: list[list[MarketEvent]]
    ) -> None:
        frame = aiohttp.WSMessage(aiohttp.WSMsgType.TEXT, "{not json", None)

        assert await feed._handle_message(frame)
        assert received == []
        assert feed.message_count == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "msg_type",
        [aiohttp.WSMsgType.ERROR, aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSED],
    )
    async def test_terminal_frames_end_loop(
        self, feed: CoinbaseFeed, msg_type: aiohttp.WSMsgType
    ) -> None:
        assert not await feed._handle_message(aiohttp.WSMessage(msg_type, None, None))

    @pytest.mark.asyncio
    async def test_handler_error_does_not_stop_dispatch(
        self, feed: CoinbaseFeed, received: list[list[MarketEvent]]
    ) -> None:
        """Test that a failing handler is logged and later handlers still run."""
        calls: list[int] = []

        async def failing(events: list[MarketEvent]) -> None:
            raise RuntimeError("boom")

        async def counting(events: list[MarketEvent]) -> None:
            calls.append(len(events))

        feed.add_handler(failing)
        feed.add_handler(counting)
        await feed._handle_message(
            text_frame(
                {"type": "l2update", "product_id": "BTC-USD", "changes": [["sell", "1", "2"]]}
            )
        )

        assert len(received) == 1
        assert calls == [1]

    def test_subscribe_replaces_pairs(self, feed: CoinbaseFeed) -> None:
        feed.subscribe(["ETH-USD", "ETH-BTC"])

        assert feed.product_ids == ["ETH-USD", "ETH-BTC"]
        assert feed.state is ConnectionState.DISCONNECTED
        assert not feed.is_running


def test_build_subscribe_message() -> None:
    message = build_subscribe_message(["BTC-USD", "ETH-USD"])

    assert message == {
        "type": "subscribe",
        "product_ids": ["BTC-USD", "ETH-USD"],
        "channels": [FEED_CHANNEL],
    }


def test_reconnect_backoff_is_capped() -> None:
    """Test exponential backoff up to the maximum delay."""
    delay = MIN_RECONNECT_DELAY
    delays = []
    for _ in range(20):
        delay = next_reconnect_delay(delay)
        delays.append(delay)

    assert delays[0] > MIN_RECONNECT_DELAY
    assert delays == sorted(delays)
    assert delays[-1] == MAX_RECONNECT_DELAY
