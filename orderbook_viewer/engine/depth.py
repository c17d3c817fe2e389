"""
Depth curve aggregation.

Turns the two sides of a snapshot into one cumulative curve on a single
ascending price axis, ready for a depth chart.

Modes:
- FULL: cumulative size on both sides, every level
- CAPPED: near-the-money only. Bids accumulate notional (price x size) up
  to notional_cap, asks accumulate size up to size_cap. The level that
  crosses the cap is kept, everything after it is dropped.

All functions are pure: same input and caps, same curve.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from typing import Callable

from ..types import ZERO, DepthCurve, DepthMode, DepthPoint, Order

DEFAULT_NOTIONAL_CAP = Decimal(5)
DEFAULT_SIZE_CAP = Decimal(150)


def _accumulate(
    orders: Sequence[Order],
    weight: Callable[[Order], Decimal],
    cap: Decimal | None = None,
) -> list[tuple[Decimal, Decimal]]:
    """
    Walk a side best-to-worst, returning (price, running_total) per level.

    With a cap, stops after the first level whose running total exceeds it.
    """
    result: list[tuple[Decimal, Decimal]] = []
    running = ZERO
    for order in orders:
        running += weight(order)
        result.append((order.price, running))
        if cap is not None and running > cap:
            break
    return result


def _size(order: Order) -> Decimal:
    return order.size


def _notional(order: Order) -> Decimal:
    return order.price * order.size


def _merge(
    bid_totals: list[tuple[Decimal, Decimal]],
    ask_totals: list[tuple[Decimal, Decimal]],
) -> DepthCurve:
    points = [DepthPoint(price, total, ZERO) for price, total in bid_totals]
    points.extend(DepthPoint(price, ZERO, total) for price, total in ask_totals)
    # sorted() is stable: on a price tie bids stay ahead of asks
    return tuple(sorted(points, key=lambda p: p.price))


def compute_full_depth(bids: Sequence[Order], asks: Sequence[Order]) -> DepthCurve:
    """Cumulative size on both sides, every level."""
    return _merge(_accumulate(bids, _size), _accumulate(asks, _size))


def compute_capped_depth(
    bids: Sequence[Order],
    asks: Sequence[Order],
    notional_cap: Decimal = DEFAULT_NOTIONAL_CAP,
    size_cap: Decimal = DEFAULT_SIZE_CAP,
) -> DepthCurve:
    """
    Near-the-money curve.

    Bid volumes are cumulative notional, ask volumes cumulative size.
    The asymmetry is deliberate: capital on the bid side, units on the ask side.
    """
    return _merge(
        _accumulate(bids, _notional, notional_cap),
        _accumulate(asks, _size, size_cap),
    )


class DepthAggregator:
    """Depth computation bound to a mode and its caps. Stateless."""

    __slots__ = ('mode', 'notional_cap', 'size_cap')

    def __init__(
        self,
        mode: DepthMode = DepthMode.FULL,
        notional_cap: Decimal = DEFAULT_NOTIONAL_CAP,
        size_cap: Decimal = DEFAULT_SIZE_CAP,
    ) -> None:
        self.mode = DepthMode(mode)
        self.notional_cap = Decimal(notional_cap)
        self.size_cap = Decimal(size_cap)

    @classmethod
    def from_settings(cls, settings) -> DepthAggregator:
        return cls(settings.depth_mode, settings.notional_cap, settings.size_cap)

    def compute(self, bids: Sequence[Order], asks: Sequence[Order]) -> DepthCurve:
        if self.mode is DepthMode.CAPPED:
            return compute_capped_depth(bids, asks, self.notional_cap, self.size_cap)
        return compute_full_depth(bids, asks)

    def __repr__(self) -> str:
        return (
            f"DepthAggregator(mode={self.mode.value}, "
            f"notional_cap={self.notional_cap}, size_cap={self.size_cap})"
        )
