"""Shared test fixtures."""

from __future__ import annotations

import asyncio
from decimal import Decimal

import pytest

from orderbook_viewer.types import Order, OrderBookSnapshot


class ManualHandle:
    def __init__(self, when: float, callback, args: tuple) -> None:
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualLoop:
    """Just enough of an event loop for call_later, driven by advance()."""

    def __init__(self) -> None:
        self.now = 0.0
        self.handles: list[ManualHandle] = []

    def time(self) -> float:
        return self.now

    def call_later(self, delay: float, callback, *args) -> ManualHandle:
        handle = ManualHandle(self.now + delay, callback, args)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> list[ManualHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due callbacks in time order."""
        target = self.now + seconds
        while True:
            due = [h for h in self.pending if h.when <= target + 1e-9]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self.now = max(self.now, handle.when)
            handle.fired = True
            handle.callback(*handle.args)
        self.now = target


@pytest.fixture
def manual_loop() -> ManualLoop:
    return ManualLoop()


def _orders(levels) -> tuple[Order, ...]:
    return tuple(Order(Decimal(str(p)), Decimal(str(s))) for p, s in levels)


@pytest.fixture
def make_snapshot():
    """Build a snapshot from (price, size) pairs."""
    def _make(bids=(), asks=(), bid_sum="0", ask_sum="0") -> OrderBookSnapshot:
        return OrderBookSnapshot(_orders(bids), _orders(asks), bid_sum, ask_sum)
    return _make


@pytest.fixture
def wait_until():
    """Poll a predicate on the running loop until true or timeout."""
    async def _wait(predicate, timeout: float = 3.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met in time")
            await asyncio.sleep(0.01)
    return _wait
