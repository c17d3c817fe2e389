"""
Data types for the order book viewer.

Notes:
- Using NamedTuple for immutable, memory-efficient structures
- Prices and sizes are Decimal end to end; floats only appear at the UI edge
- Snapshot sides are tuples so an accepted snapshot can be shared, never mutated
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import NamedTuple

ZERO = Decimal(0)
TOTAL_QUANTUM = Decimal("0.00000001")


class Order(NamedTuple):
    """Single price level from the order book."""
    price: Decimal
    size: Decimal


class OrderBookSnapshot(NamedTuple):
    """
    Complete replacement description of the book.

    bids are best-first (descending price), asks best-first (ascending price).
    bid_sum / ask_sum are server figures carried through as text.
    """
    bids: tuple[Order, ...] = ()
    asks: tuple[Order, ...] = ()
    bid_sum: str = "0"
    ask_sum: str = "0"

    @property
    def best_bid(self) -> Decimal | None:
        return self.bids[0].price if self.bids else None

    @property
    def best_ask(self) -> Decimal | None:
        return self.asks[0].price if self.asks else None

    @property
    def mid_price(self) -> Decimal | None:
        bb, ba = self.best_bid, self.best_ask
        if bb is not None and ba is not None:
            return (bb + ba) / 2
        return bb if bb is not None else ba

    @property
    def spread_bps(self) -> Decimal:
        """Spread in basis points of mid. 0 if either side is empty."""
        bb, ba = self.best_bid, self.best_ask
        if bb is None or ba is None:
            return ZERO
        mid = (bb + ba) / 2
        return (ba - bb) / mid * 10000


class DepthPoint(NamedTuple):
    """One point of the depth chart. Only one of the two volumes is non-zero."""
    price: Decimal
    cumulative_bid_volume: Decimal  # 0 if this is an ask point
    cumulative_ask_volume: Decimal  # 0 if this is a bid point


# Sorted ascending by price, both sides on one axis
DepthCurve = tuple[DepthPoint, ...]


class ConnectionStatus(str, Enum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"
    DISCONNECTED = "disconnected"


class DepthMode(str, Enum):
    FULL = "full"
    CAPPED = "capped"


class BookState(NamedTuple):
    """
    What presentation reads from the store.

    Replaced as a whole so snapshot and depth_curve always belong together.
    version increments on every replacement.
    """
    snapshot: OrderBookSnapshot | None
    depth_curve: DepthCurve
    status: ConnectionStatus
    version: int = 0


EMPTY_SNAPSHOT = OrderBookSnapshot()


def order_total(order: Order) -> Decimal:
    """Notional of one level (price x size), 8 decimal places."""
    total = order.price * order.size
    try:
        return total.quantize(TOTAL_QUANTUM)
    except InvalidOperation:
        # Too many digits for the context precision
        return total
