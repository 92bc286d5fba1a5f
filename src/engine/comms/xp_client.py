# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""XP relay client — receives coding-activity XP broadcasts from the relay.

Architecture
------------
A small reconnect state machine independent of the simulation:

    DISCONNECTED --connect()--> CONNECTING --open--> CONNECTED
         ^                          |                    |
         +------- close/error ------+--------------------+

After a drop, one reconnect is scheduled (a second scheduling request
while one is pending is ignored).  The delay starts at 3 s and doubles
up to 30 s; a successful connect resets it.

Each broadcast is decoded into an XPDelivery and handed to
``on_delivery`` and/or published on the EventBus as ``xp_delivery``.
Malformed messages are logged and dropped.

The client runs on its own asyncio loop in a daemon thread (start()/stop())
or can be awaited directly (run()).  stop() joins the worker thread and
closes its loop.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

import websockets
from websockets.exceptions import WebSocketException

if TYPE_CHECKING:
    from engine.comms.event_bus import EventBus

logger = logging.getLogger("engine.xp_client")

DEFAULT_URL = "ws://localhost:3001"
INITIAL_RECONNECT_DELAY = 3.0
MAX_RECONNECT_DELAY = 30.0
DEFAULT_SOURCE_LABEL = "CODE"
DEFAULT_SOURCE_COLOR = "#ffffff"


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass(frozen=True)
class XPDelivery:
    """One XP grant delivered by the relay."""

    xp_amount: int
    source_label: str = DEFAULT_SOURCE_LABEL
    source_color: str = DEFAULT_SOURCE_COLOR
    event_type: str = "unknown"


def decode_message(raw: str | bytes) -> XPDelivery | None:
    """Parse a relay broadcast.  Returns None for anything malformed."""
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError, UnicodeDecodeError) as e:
        logger.warning(f"Failed to parse XP event: {e}")
        return None
    if not isinstance(data, dict):
        logger.warning("XP event is not an object")
        return None
    amount = data.get("amount")
    if isinstance(amount, bool) or not isinstance(amount, (int, float)) or amount < 0:
        logger.warning(f"XP event has invalid amount: {amount!r}")
        return None
    return XPDelivery(
        xp_amount=int(amount),
        source_label=str(data.get("sourceName") or DEFAULT_SOURCE_LABEL),
        source_color=str(data.get("sourceColor") or DEFAULT_SOURCE_COLOR),
        event_type=str(data.get("type") or "unknown"),
    )


class Backoff:
    """Exponential reconnect delay: initial, x2, ... capped at maximum."""

    def __init__(self, initial: float = INITIAL_RECONNECT_DELAY, maximum: float = MAX_RECONNECT_DELAY) -> None:
        self.initial = initial
        self.maximum = maximum
        self.current = initial

    def next_delay(self) -> float:
        delay = self.current
        self.current = min(self.current * 2, self.maximum)
        return delay

    def reset(self) -> None:
        self.current = self.initial


class XPRelayClient:
    """Reconnecting WebSocket subscriber for relay XP broadcasts."""

    def __init__(
        self,
        url: str = DEFAULT_URL,
        on_delivery: Callable[[XPDelivery], None] | None = None,
        event_bus: EventBus | None = None,
        backoff: Backoff | None = None,
        connector: Callable[[str], Any] | None = None,
    ) -> None:
        self.url = url
        self._on_delivery = on_delivery
        self._event_bus = event_bus
        self.backoff = backoff or Backoff()
        self._connector = connector or websockets.connect

        self._state = ConnectionState.DISCONNECTED
        self._reconnect_pending = False
        self._stopped = False
        self._stop_event: asyncio.Event | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None

        self.deliveries_received = 0

    # -- state ----------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_pending

    def schedule_reconnect(self) -> float | None:
        """Reserve the next reconnect.  Returns its delay, or None if one is already pending."""
        if self._reconnect_pending:
            return None
        self._reconnect_pending = True
        return self.backoff.next_delay()

    # -- messages -------------------------------------------------------------

    def handle_message(self, raw: str | bytes) -> XPDelivery | None:
        delivery = decode_message(raw)
        if delivery is None:
            return None
        self.deliveries_received += 1
        logger.debug(f"XP event: {delivery.event_type} +{delivery.xp_amount} [{delivery.source_label}]")
        if self._on_delivery is not None:
            self._on_delivery(delivery)
        if self._event_bus is not None:
            self._event_bus.publish("xp_delivery", delivery)
        return delivery

    # -- connection -----------------------------------------------------------

    async def connect_once(self) -> bool:
        """Open one connection and consume it until it closes.

        Returns False immediately if a connection is already open or in
        progress; True once an opened connection has closed.
        """
        if self._state is not ConnectionState.DISCONNECTED:
            return False
        self._state = ConnectionState.CONNECTING
        self._reconnect_pending = False
        opened = False
        try:
            async with self._connector(self.url) as ws:
                opened = True
                self._state = ConnectionState.CONNECTED
                self.backoff.reset()
                logger.info(f"Connected to XP relay at {self.url}")
                self._publish_state()
                async for raw in ws:
                    self.handle_message(raw)
        except (OSError, WebSocketException, asyncio.TimeoutError) as e:
            logger.debug(f"XP relay not available ({e})")
        finally:
            self._state = ConnectionState.DISCONNECTED
            if opened:
                logger.info("Disconnected from XP relay")
                self._publish_state()
        return opened

    async def run(self) -> None:
        """Connect, and reconnect with backoff, until stop() is called."""
        if self._stop_event is None:
            self._stop_event = asyncio.Event()
        stop_wait = asyncio.ensure_future(self._stop_event.wait())
        try:
            while not self._stopped:
                conn = asyncio.ensure_future(self.connect_once())
                await asyncio.wait({conn, stop_wait}, return_when=asyncio.FIRST_COMPLETED)
                if not conn.done():
                    conn.cancel()
                    await asyncio.gather(conn, return_exceptions=True)
                if self._stopped:
                    break
                delay = self.schedule_reconnect()
                if delay is None:
                    continue
                await asyncio.wait({stop_wait}, timeout=delay)
        finally:
            stop_wait.cancel()
            self._reconnect_pending = False
            self._stop_event = None

    def start(self) -> None:
        """Run the client on a daemon thread with its own event loop."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stopped = False
        self._stop_event = asyncio.Event()
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._loop.run_until_complete,
            args=(self.run(),),
            name="xp-relay-client",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        """Stop the run loop; when started with start(), join the thread and close its loop."""
        self._stopped = True
        event = self._stop_event
        if event is not None:
            if self._loop is not None and not self._loop.is_closed():
                self._loop.call_soon_threadsafe(event.set)
            else:
                event.set()
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return
        thread.join(timeout)
        if thread.is_alive():
            logger.warning("XP relay client thread did not stop in time")
            return
        self._thread = None
        if self._loop is not None:
            self._loop.close()
            self._loop = None

    def _publish_state(self) -> None:
        if self._event_bus is not None:
            self._event_bus.publish("xp_relay_state", {"state": self._state.value})
