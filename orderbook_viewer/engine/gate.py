"""
Update gate: trailing-edge throttle + dedup in front of the store.

Snapshots can arrive faster than anything downstream can use them.
The gate holds one pending candidate and one timer:

1. First submit on an idle gate arms a timer of window_sec (no emit yet)
2. Later submits inside the window just replace the candidate
3. When the timer fires, the candidate is emitted unless it equals
   the last emitted snapshot
4. The gate is idle again until the next submit

At most one emission per window. Superseded candidates are never seen
downstream. Single-threaded: relies on run-to-completion of loop callbacks.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Callable

import structlog

from ..types import Order, OrderBookSnapshot

logger = structlog.get_logger(__name__)

DEFAULT_WINDOW_SEC = 1.0


def _sides_equal(a: tuple[Order, ...], b: tuple[Order, ...]) -> bool:
    if len(a) != len(b):
        return False
    for left, right in zip(a, b):
        if left.price != right.price or left.size != right.size:
            return False
    return True


def snapshots_equal(a: OrderBookSnapshot | None, b: OrderBookSnapshot | None) -> bool:
    """Field-by-field structural equality of two snapshots."""
    if a is None or b is None:
        return a is b
    return (
        a.bid_sum == b.bid_sum
        and a.ask_sum == b.ask_sum
        and _sides_equal(a.bids, b.bids)
        and _sides_equal(a.asks, b.asks)
    )


@dataclass
class GateStats:
    submitted: int = 0
    emitted: int = 0
    suppressed: int = 0   # equal to last emitted
    superseded: int = 0   # replaced while pending


class UpdateGate:
    """
    Latest-wins, bounded-frequency delivery of snapshots.

    Args:
        on_emit: Called with each accepted snapshot
        window_sec: Throttle window W
        loop: Event loop used for call_later (defaults to the running loop)
    """

    def __init__(
        self,
        on_emit: Callable[[OrderBookSnapshot], None],
        window_sec: float = DEFAULT_WINDOW_SEC,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        if window_sec <= 0:
            raise ValueError("window_sec must be positive")
        self._on_emit = on_emit
        self.window_sec = window_sec
        self._loop = loop

        self._pending: OrderBookSnapshot | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._generation: int = 0
        self._closed: bool = False

        self.last_emitted: OrderBookSnapshot | None = None
        self.stats = GateStats()

    @property
    def is_idle(self) -> bool:
        return self._timer is None

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, snapshot: OrderBookSnapshot) -> None:
        """Offer a snapshot. Never blocks; replaces any pending candidate."""
        if self._closed:
            return

        self.stats.submitted += 1
        if self._pending is not None:
            self.stats.superseded += 1
        self._pending = snapshot

        if self._timer is None:
            loop = self._loop or asyncio.get_running_loop()
            self._timer = loop.call_later(self.window_sec, self._fire, self._generation)

    def _fire(self, generation: int) -> None:
        # Stale timer from before close()
        if self._closed or generation != self._generation:
            return

        self._timer = None
        candidate, self._pending = self._pending, None
        if candidate is None:
            return

        try:
            unchanged = snapshots_equal(candidate, self.last_emitted)
        except Exception:
            logger.warning("snapshot_compare_failed", exc_info=True)
            unchanged = False

        if unchanged:
            self.stats.suppressed += 1
            return

        try:
            self._on_emit(candidate)
        except Exception:
            # Not recorded as emitted, so the same book can be retried
            logger.exception("gate_listener_failed")
            return
        self.last_emitted = candidate
        self.stats.emitted += 1

    def close(self) -> None:
        """Cancel the pending timer and drop the candidate. Idempotent."""
        self._closed = True
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._pending = None
