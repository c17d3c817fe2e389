"""
Snapshot normalization.

Server payloads encode an order either as a [price, size] pair or as a
{price, size} record. The shape is resolved once here; everything downstream
sees Order.

Never raises: a bad side becomes an empty side, a bad entry is skipped.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

import structlog

from ..types import Order, OrderBookSnapshot

logger = structlog.get_logger(__name__)

# Largest magnitude a JSON number can carry as a double (~1.8e308). Beyond it
# a JS client reads Infinity; keeping the bound also leaves price * size and
# running sums well inside the decimal context.
MAX_ADJUSTED_EXPONENT = 308


class EntryShape(Enum):
    PAIR = "pair"        # [price, size]
    RECORD = "record"    # {"price": ..., "size": ...}
    INVALID = "invalid"


def classify_entry(entry: Any) -> EntryShape:
    """Resolve the wire encoding of a single order entry."""
    if isinstance(entry, (list, tuple)):
        return EntryShape.PAIR if len(entry) == 2 else EntryShape.INVALID
    if isinstance(entry, Mapping):
        if "price" in entry and "size" in entry:
            return EntryShape.RECORD
    return EntryShape.INVALID


def parse_decimal(value: Any) -> Decimal | None:
    """Parse a wire number (str/int/float/Decimal). None if not finite or out of range."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        value = str(value)
    if not isinstance(value, (str, int, Decimal)):
        return None
    try:
        result = Decimal(value)
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    if result and result.adjusted() > MAX_ADJUSTED_EXPONENT:
        return None
    return result


def _sum_text(value: Any) -> str:
    if value is None:
        return "0"
    return value if isinstance(value, str) else str(value)


class SnapshotNormalizer:
    """
    Converts raw payloads into OrderBookSnapshot.

    Keeps counters for data-quality diagnostics.
    """

    __slots__ = ('snapshots', 'malformed_sides', 'skipped_entries')

    def __init__(self) -> None:
        self.snapshots: int = 0
        self.malformed_sides: int = 0
        self.skipped_entries: int = 0

    def normalize(self, raw: Any) -> OrderBookSnapshot:
        self.snapshots += 1

        if not isinstance(raw, Mapping):
            self.malformed_sides += 2
            logger.warning("malformed_payload", payload_type=type(raw).__name__)
            return OrderBookSnapshot()

        return OrderBookSnapshot(
            bids=self._normalize_side(raw.get("bids"), "bids"),
            asks=self._normalize_side(raw.get("asks"), "asks"),
            bid_sum=_sum_text(raw.get("bidSum")),
            ask_sum=_sum_text(raw.get("askSum")),
        )

    def _normalize_side(self, side: Any, name: str) -> tuple[Order, ...]:
        if side is None:
            return ()
        if not isinstance(side, (list, tuple)):
            self.malformed_sides += 1
            logger.warning("malformed_side", side=name, side_type=type(side).__name__)
            return ()

        orders: list[Order] = []
        for entry in side:
            order = self._read_entry(entry)
            if order is None:
                self.skipped_entries += 1
                logger.debug("skipped_entry", side=name, entry=repr(entry)[:80])
                continue
            orders.append(order)
        return tuple(orders)

    @staticmethod
    def _read_entry(entry: Any) -> Order | None:
        shape = classify_entry(entry)
        if shape is EntryShape.PAIR:
            raw_price, raw_size = entry
        elif shape is EntryShape.RECORD:
            raw_price, raw_size = entry["price"], entry["size"]
        else:
            return None

        price = parse_decimal(raw_price)
        size = parse_decimal(raw_size)
        if price is None or size is None:
            return None
        if price <= 0 or size < 0:
            return None
        return Order(price, size)


_default = SnapshotNormalizer()


def normalize(raw: Any) -> OrderBookSnapshot:
    """Normalize with the module-level normalizer."""
    return _default.normalize(raw)
