"""
Wires the pieces together. Data flows one way:

    FeedConnector -> SnapshotNormalizer -> UpdateGate -> OrderBookStore -> UI
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from .config import Settings
from .datafeed.feed_client import FeedConnector
from .datafeed.normalizer import SnapshotNormalizer
from .engine.depth import DepthAggregator
from .engine.gate import UpdateGate
from .engine.store import OrderBookStore

logger = structlog.get_logger(__name__)


class OrderBookPipeline:
    """Owns one feed, one gate and one store."""

    def __init__(
        self,
        settings: Settings,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.settings = settings
        self.normalizer = SnapshotNormalizer()
        self.store = OrderBookStore(DepthAggregator.from_settings(settings))
        self.gate = UpdateGate(
            self.store.apply_snapshot,
            window_sec=settings.throttle_window_sec,
            loop=loop,
        )
        self.connector = FeedConnector(
            settings,
            on_payload=self.handle_payload,
            on_status=self.store.set_status,
        )

    def handle_payload(self, raw: Any) -> None:
        """Entry point for every raw snapshot, pushed or polled."""
        self.gate.submit(self.normalizer.normalize(raw))

    async def run(self) -> None:
        logger.info(
            "pipeline_started",
            push_url=self.settings.push_url,
            poll_url=self.settings.orderbook_url,
            window_ms=self.settings.throttle_window_ms,
            depth=repr(self.store.aggregator),
        )
        try:
            await self.connector.run()
        finally:
            self.stop()

    def stop(self) -> None:
        """Release the feed and clear pending timers. Safe to call twice."""
        if not self.gate.closed:
            logger.info("pipeline_stopped", **vars(self.gate.stats))
        self.connector.stop()
        self.gate.close()
