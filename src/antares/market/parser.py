"""
Coinbase feed message parsing.

Turns raw level 2 channel payloads into uniform MarketEvents:

- ``snapshot``: one BUY event for the best bid and one SELL event for
  the best ask.
- ``l2update``: one event per change. Zero-size changes remove a level
  and are dropped.
- ``subscriptions`` / ``heartbeat``: no events.
- ``error``: logged, no events.
"""

import logging
from typing import Any

from antares.core.types import L2SnapshotData, L2UpdateData, MarketEvent, QuoteSide


logger = logging.getLogger(__name__)

MSG_SNAPSHOT = "snapshot"
MSG_L2UPDATE = "l2update"
MSG_ERROR = "error"
SILENT_TYPES = frozenset({"subscriptions", "heartbeat"})


def parse_feed_message(data: Any) -> list[MarketEvent]:
    """
    Parse one feed message.

    Args:
        data: Decoded JSON message.

    Returns:
        The market events carried by the message, possibly empty.
    """
    if not isinstance(data, dict):
        logger.warning(f"Ignoring non-object feed message: {type(data).__name__}")
        return []

    msg_type = data.get("type")

    try:
        if msg_type == MSG_L2UPDATE:
            return _parse_l2update(data)  # type: ignore[arg-type]
        if msg_type == MSG_SNAPSHOT:
            return _parse_snapshot(data)  # type: ignore[arg-type]
    except (KeyError, IndexError, TypeError, ValueError) as e:
        logger.warning(f"Malformed {msg_type} message for {data.get('product_id')}: {e!r}")
        return []

    if msg_type == MSG_ERROR:
        logger.warning(f"Feed error: {data.get('message', '')} {data.get('reason', '')}".rstrip())
    elif msg_type not in SILENT_TYPES:
        logger.debug(f"Ignoring feed message of type {msg_type!r}")

    return []


def _parse_snapshot(data: L2SnapshotData) -> list[MarketEvent]:
    """Best bid and best ask of a book snapshot."""
    pair_id = data["product_id"]
    events: list[MarketEvent] = []

    bids = data["bids"]
    if bids:
        price, size = bids[0][0], bids[0][1]
        events.append(MarketEvent(pair_id, QuoteSide.BUY, float(price), float(size)))

    asks = data["asks"]
    if asks:
        price, size = asks[0][0], asks[0][1]
        events.append(MarketEvent(pair_id, QuoteSide.SELL, float(price), float(size)))

    return events


def _parse_l2update(data: L2UpdateData) -> list[MarketEvent]:
    """One event per non-removal change."""
    pair_id = data["product_id"]
    events: list[MarketEvent] = []

    for change in data["changes"]:
        side, price, size = change[0], float(change[1]), float(change[2])
        if size == 0.0:
            continue
        events.append(MarketEvent(pair_id, QuoteSide(side), price, size))

    return events
