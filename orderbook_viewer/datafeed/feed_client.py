"""
Order book feed client with async orchestration.

Handles:
1. Persistent WebSocket push connection, reconnecting forever on a fixed delay
2. Lifecycle reporting (connecting / connected / error / disconnected)
3. REST polling fallback while push is down
4. Framing: picks the update event out of the push stream

Raw payloads are handed to on_payload untouched; normalization happens
downstream. Read-only: nothing is ever sent to the server.

Notes:
- Uses orjson for fast JSON parsing
- Transport failures are logged and reported as status, never raised
- All I/O is non-blocking (pure asyncio)
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any, Callable

import aiohttp
import orjson
import structlog

from ..config import Settings
from ..types import ConnectionStatus

logger = structlog.get_logger(__name__)

HEARTBEAT_SEC = 20.0


def json_loads(data: bytes | str) -> Any:
    return orjson.loads(data)


class FeedConnector:
    """
    Async feed client for order book snapshots.

    Usage:
        connector = FeedConnector(settings, on_payload=..., on_status=...)
        task = asyncio.create_task(connector.run())
        ...
        connector.stop()
        task.cancel()
    """

    def __init__(
        self,
        settings: Settings,
        on_payload: Callable[[Any], None],
        on_status: Callable[[ConnectionStatus], Any],
    ) -> None:
        self.settings = settings
        self.push_url = settings.push_url
        self.poll_url = settings.orderbook_url
        self.update_event = settings.update_event

        self._on_payload = on_payload
        self._on_status = on_status

        # State
        self._running = False
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._close_task: asyncio.Task | None = None
        self.status = ConnectionStatus.CONNECTING

        # Counters
        self.messages_received: int = 0
        self.payloads_delivered: int = 0
        self.polls: int = 0
        self.poll_failures: int = 0

    @property
    def running(self) -> bool:
        return self._running

    def _set_status(self, status: ConnectionStatus) -> None:
        self.status = status
        self._on_status(status)

    def _deliver(self, payload: Any) -> None:
        self.payloads_delivered += 1
        self._on_payload(payload)

    # Push

    def handle_message(self, raw: str | bytes) -> None:
        """
        Handle one push frame.

        Accepted framings:
            {"event": "<name>", "data": {...}}
            ["<name>", {...}]
            {...}   bare payload, treated as an update
        """
        self.messages_received += 1
        try:
            message = json_loads(raw)
        except orjson.JSONDecodeError:
            logger.warning("undecodable_frame", size=len(raw))
            return

        if isinstance(message, Mapping) and "event" in message:
            event, payload = message.get("event"), message.get("data")
        elif isinstance(message, list) and len(message) == 2 and isinstance(message[0], str):
            event, payload = message
        else:
            event, payload = self.update_event, message

        if event != self.update_event:
            logger.debug("ignored_event", name=event)
            return
        self._deliver(payload)

    async def _push_loop(self, session: aiohttp.ClientSession) -> None:
        """Connect, read until the socket drops, wait, repeat. Forever."""
        attempt = 0
        while self._running:
            attempt += 1
            self._set_status(ConnectionStatus.CONNECTING)
            failed = False
            try:
                async with session.ws_connect(self.push_url, heartbeat=HEARTBEAT_SEC) as ws:
                    self._ws = ws
                    attempt = 0
                    logger.info("push_connected", url=self.push_url)
                    self._set_status(ConnectionStatus.CONNECTED)

                    async for msg in ws:
                        if msg.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                            self.handle_message(msg.data)
                        elif msg.type == aiohttp.WSMsgType.ERROR:
                            logger.warning("push_error", error=str(ws.exception()))
                            failed = True
                            break
            except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as exc:
                logger.warning("push_connect_failed", url=self.push_url, attempt=attempt, error=str(exc))
                failed = True
            finally:
                self._ws = None

            if not self._running:
                return
            if failed:
                self._set_status(ConnectionStatus.ERROR)
            else:
                logger.info("push_disconnected", url=self.push_url)
                self._set_status(ConnectionStatus.DISCONNECTED)

            await asyncio.sleep(self.settings.reconnect_delay)

    # Poll

    async def fetch_snapshot(self, session: aiohttp.ClientSession) -> Any:
        """Fetch one order book snapshot via REST."""
        timeout = aiohttp.ClientTimeout(total=self.settings.request_timeout)
        async with session.get(self.poll_url, timeout=timeout) as resp:
            resp.raise_for_status()
            data = await resp.read()
            return json_loads(data)

    async def _poll_loop(self, session: aiohttp.ClientSession) -> None:
        """Fetch immediately, then every poll_interval while push is down."""
        while self._running:
            if self.status is not ConnectionStatus.CONNECTED:
                self.polls += 1
                try:
                    payload = await self.fetch_snapshot(session)
                except (aiohttp.ClientError, asyncio.TimeoutError, orjson.JSONDecodeError) as exc:
                    self.poll_failures += 1
                    logger.warning("poll_failed", url=self.poll_url, error=str(exc))
                else:
                    self._deliver(payload)
            await asyncio.sleep(self.settings.poll_interval)

    async def run(self) -> None:
        """
        Main run loop. Runs push and poll side by side until stop() or cancel.
        """
        self._running = True
        async with aiohttp.ClientSession() as session:
            poll_task = asyncio.create_task(self._poll_loop(session))
            try:
                await self._push_loop(session)
            finally:
                self._running = False
                poll_task.cancel()
                try:
                    await poll_task
                except asyncio.CancelledError:
                    pass
                close_task, self._close_task = self._close_task, None
                if close_task is not None:
                    await close_task

    def stop(self) -> None:
        """Signal the client to stop. Closes an open socket so the read loop ends."""
        self._running = False
        ws = self._ws
        if ws is not None and not ws.closed and self._close_task is None:
            self._close_task = asyncio.create_task(ws.close())
