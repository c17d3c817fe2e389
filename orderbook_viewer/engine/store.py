"""
Order book store: the single source of truth for presentation.

Holds one BookState (snapshot + depth curve + connection status). Every
write replaces the whole state in one assignment, so a reader can never see
a depth curve paired with a different snapshot.

Writers:
- apply_snapshot(): called by the update gate on acceptance
- set_status(): called by the feed connector on lifecycle events

Thread-safety: NOT thread-safe. Designed for single-threaded async use.
"""

from __future__ import annotations

from typing import Callable

import structlog

from ..types import BookState, ConnectionStatus, OrderBookSnapshot
from .depth import DepthAggregator

logger = structlog.get_logger(__name__)

Listener = Callable[[BookState], None]

# Allowed connection status transitions. The feed retries forever, so
# there is no terminal state.
TRANSITIONS: dict[ConnectionStatus, frozenset[ConnectionStatus]] = {
    ConnectionStatus.CONNECTING: frozenset({ConnectionStatus.CONNECTED, ConnectionStatus.ERROR}),
    ConnectionStatus.CONNECTED: frozenset({ConnectionStatus.ERROR, ConnectionStatus.DISCONNECTED}),
    ConnectionStatus.ERROR: frozenset({ConnectionStatus.CONNECTING}),
    ConnectionStatus.DISCONNECTED: frozenset({ConnectionStatus.CONNECTING}),
}


class OrderBookStore:
    """Latest accepted snapshot, its depth curve, and the connection status."""

    def __init__(self, aggregator: DepthAggregator | None = None) -> None:
        self.aggregator = aggregator or DepthAggregator()
        self._state = BookState(
            snapshot=None,
            depth_curve=(),
            status=ConnectionStatus.CONNECTING,
        )
        self._listeners: list[Listener] = []

    @property
    def state(self) -> BookState:
        return self._state

    @property
    def snapshot(self) -> OrderBookSnapshot | None:
        return self._state.snapshot

    @property
    def status(self) -> ConnectionStatus:
        return self._state.status

    def apply_snapshot(self, snapshot: OrderBookSnapshot) -> None:
        """Replace the current snapshot and recompute its depth curve."""
        curve = self.aggregator.compute(snapshot.bids, snapshot.asks)
        old = self._state
        self._state = BookState(snapshot, curve, old.status, old.version + 1)
        self._notify()

    def set_status(self, status: ConnectionStatus) -> bool:
        """
        Move the connection status. Returns True if it changed.

        Disallowed transitions are logged and ignored. The snapshot is kept
        whatever the status, so the last known book stays visible.
        """
        status = ConnectionStatus(status)
        old = self._state
        if status is old.status:
            return False
        if status not in TRANSITIONS[old.status]:
            logger.debug("status_transition_ignored", current=old.status.value, requested=status.value)
            return False

        logger.info("connection_status", previous=old.status.value, status=status.value)
        self._state = old._replace(status=status, version=old.version + 1)
        self._notify()
        return True

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        state = self._state
        # Copy: a listener may unsubscribe while we iterate
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("store_listener_failed", listener=repr(listener))
