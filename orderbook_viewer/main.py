#!/usr/bin/env python3
"""
Order Book Viewer - live order book and depth chart.

Usage:
    python -m orderbook_viewer.main
    python -m orderbook_viewer.main --depth-mode capped
    python -m orderbook_viewer.main --headless

Backend address, throttle window and depth caps come from ORDERBOOK_*
environment variables (see config.Settings).

Controls:
    q - Quit
"""

from __future__ import annotations

import argparse
import asyncio
import sys

import structlog

from .types import BookState, DepthMode

DEFAULT_TUI_LOG_FILE = "orderbook_viewer.log"


def log_state(state: BookState) -> None:
    """Headless listener: one log line per published state."""
    logger = structlog.get_logger("orderbook_viewer.headless")
    snap = state.snapshot
    if snap is None:
        logger.info("state", status=state.status.value, version=state.version)
        return
    logger.info(
        "state",
        status=state.status.value,
        version=state.version,
        bids=len(snap.bids),
        asks=len(snap.asks),
        best_bid=str(snap.best_bid),
        best_ask=str(snap.best_ask),
        bid_sum=snap.bid_sum,
        ask_sum=snap.ask_sum,
        depth_points=len(state.depth_curve),
    )


async def main(settings, headless: bool = False) -> None:
    """Main entry point - runs data feed and UI concurrently."""

    # Import here to avoid slow startup for --help
    from .pipeline import OrderBookPipeline

    pipeline = OrderBookPipeline(settings)

    async def run_feed() -> None:
        try:
            await pipeline.run()
        except asyncio.CancelledError:
            pass

    if headless:
        pipeline.store.subscribe(log_state)
        await run_feed()
        return

    from .ui.book_view import run_ui

    feed_task = asyncio.create_task(run_feed())

    try:
        # Run UI (blocks until quit)
        await run_ui(pipeline)
    finally:
        # Cleanup
        pipeline.stop()
        feed_task.cancel()
        try:
            await feed_task
        except asyncio.CancelledError:
            pass


def cli() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Order Book Viewer - live order book and depth chart",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    ORDERBOOK_BASE_URL=http://localhost:3000 orderbook-viewer
    orderbook-viewer --depth-mode capped
    ORDERBOOK_THROTTLE_WINDOW_MS=5000 orderbook-viewer --headless
        """
    )

    parser.add_argument(
        "--depth-mode",
        choices=[m.value for m in DepthMode],
        default=None,
        help="Depth chart mode (default: ORDERBOOK_DEPTH_MODE or full)"
    )

    parser.add_argument(
        "--headless",
        action="store_true",
        help="Log accepted snapshots instead of running the TUI"
    )

    args = parser.parse_args()

    from .config import get_settings
    from .log import setup_logging

    settings = get_settings()
    if args.depth_mode is not None:
        settings = settings.model_copy(update={"depth_mode": DepthMode(args.depth_mode)})

    log_file = settings.log_file
    if not args.headless and log_file is None:
        # The TUI owns the terminal
        log_file = DEFAULT_TUI_LOG_FILE
    setup_logging(settings.log_level, log_file=log_file, json_logs=settings.json_logs)

    # Run
    try:
        asyncio.run(main(settings, headless=args.headless))
    except KeyboardInterrupt:
        print("\nShutdown requested.")
        sys.exit(0)


if __name__ == "__main__":
    cli()
