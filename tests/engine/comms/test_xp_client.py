# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Unit tests for the XP relay client — decoding, backoff and the reconnect state machine.

Uses asyncio.run() with an injected fake connector instead of a live server.
"""

from __future__ import annotations

import asyncio
import json
import time

import pytest

from engine.comms.xp_client import (
    Backoff,
    ConnectionState,
    XPDelivery,
    XPRelayClient,
    decode_message,
)

pytestmark = pytest.mark.unit


class FakeSocket:
    """Async context manager + async iterator standing in for a websocket."""

    def __init__(self, messages, on_open=None):
        self._messages = list(messages)
        self._on_open = on_open

    async def __aenter__(self):
        if self._on_open is not None:
            await self._on_open()
        return self

    async def __aexit__(self, *exc):
        return False

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._messages:
            raise StopAsyncIteration
        return self._messages.pop(0)


class RefusedSocket:
    async def __aenter__(self):
        raise ConnectionRefusedError("refused")

    async def __aexit__(self, *exc):
        return False


def _broadcast(amount=15, name="CLAUDE", color="#00ffff", type_="message"):
    return json.dumps({"type": type_, "amount": amount, "source": "claude",
                       "sourceName": name, "sourceColor": color, "timestamp": 1})


class TestDecodeMessage:
    def test_valid(self):
        assert decode_message(_broadcast()) == XPDelivery(15, "CLAUDE", "#00ffff", "message")

    def test_defaults_for_missing_source(self):
        d = decode_message(json.dumps({"amount": 5}))
        assert (d.source_label, d.source_color, d.event_type) == ("CODE", "#ffffff", "unknown")

    @pytest.mark.parametrize("raw", [
        "not json", "[1, 2]", json.dumps({"amount": "5"}),
        json.dumps({"amount": -1}), json.dumps({"amount": True}), json.dumps({}),
    ])
    def test_malformed_is_dropped(self, raw):
        assert decode_message(raw) is None


class TestBackoff:
    def test_doubles_to_cap(self):
        b = Backoff()
        assert [b.next_delay() for _ in range(6)] == [3.0, 6.0, 12.0, 24.0, 30.0, 30.0]

    def test_reset(self):
        b = Backoff()
        b.next_delay()
        b.next_delay()
        b.reset()
        assert b.next_delay() == 3.0


class TestReconnectGuard:
    def test_only_one_pending_reconnect(self):
        client = XPRelayClient()
        assert client.schedule_reconnect() == 3.0
        assert client.schedule_reconnect() is None
        assert client.reconnect_pending


class TestConnectOnce:
    def test_delivers_messages_and_disconnects(self, bus):
        delivered = []
        states = bus.subscribe("xp_relay_state")
        bus_deliveries = bus.subscribe("xp_delivery")
        client = XPRelayClient(
            on_delivery=delivered.append,
            event_bus=bus,
            connector=lambda url: FakeSocket([_broadcast(10), "garbage", _broadcast(50)]),
        )
        client.backoff.next_delay()
        assert asyncio.run(client.connect_once()) is True
        assert [d.xp_amount for d in delivered] == [10, 50]
        assert client.deliveries_received == 2
        assert bus_deliveries.qsize() == 2
        assert client.state is ConnectionState.DISCONNECTED
        assert states.get_nowait() == {"state": "connected"}
        assert states.get_nowait() == {"state": "disconnected"}
        assert client.backoff.current == 3.0

    def test_second_attempt_while_connecting_is_ignored(self):
        seen = {}
        client = XPRelayClient()

        async def on_open():
            seen["state"] = client.state
            seen["second"] = await client.connect_once()

        client._connector = lambda url: FakeSocket([], on_open=on_open)
        asyncio.run(client.connect_once())
        assert seen["state"] is ConnectionState.CONNECTING
        assert seen["second"] is False

    def test_refused_connection(self):
        client = XPRelayClient(connector=lambda url: RefusedSocket())
        assert asyncio.run(client.connect_once()) is False
        assert client.state is ConnectionState.DISCONNECTED
        assert not client.connected

    def test_connect_clears_pending_reconnect(self):
        client = XPRelayClient(connector=lambda url: FakeSocket([]))
        client.schedule_reconnect()
        asyncio.run(client.connect_once())
        assert not client.reconnect_pending


class TestRunLoop:
    def test_run_exits_after_stop(self):
        attempts = []
        client = XPRelayClient()

        def connector(url):
            attempts.append(url)
            client.stop()
            return RefusedSocket()

        client._connector = connector
        asyncio.run(asyncio.wait_for(client.run(), timeout=5))
        assert attempts == ["ws://localhost:3001"]
        assert not client.reconnect_pending

    def test_run_backs_off_between_attempts(self):
        attempts = []
        client = XPRelayClient(backoff=Backoff(initial=0.01, maximum=0.02))

        def connector(url):
            attempts.append(client.backoff.current)
            if len(attempts) == 3:
                client.stop()
            return RefusedSocket()

        client._connector = connector
        asyncio.run(asyncio.wait_for(client.run(), timeout=5))
        assert attempts == [0.01, 0.02, 0.02]

    def test_stop_while_connected_ends_run(self):
        client = XPRelayClient()

        class HangingSocket(FakeSocket):
            async def __anext__(self):
                client.stop()
                await asyncio.sleep(10)

        client._connector = lambda url: HangingSocket([])
        asyncio.run(asyncio.wait_for(client.run(), timeout=5))
        assert client.state is ConnectionState.DISCONNECTED


class TestBackgroundThread:
    def test_stop_right_after_start_ends_thread(self):
        client = XPRelayClient(
            connector=lambda url: RefusedSocket(),
            backoff=Backoff(initial=0.01, maximum=0.01),
        )
        client.start()
        thread = client._thread
        client.stop()
        thread.join(timeout=1.0)
        assert not thread.is_alive()
        assert client._thread is None
        assert client._loop is None

    def test_stop_after_running_for_a_while(self):
        attempts = []
        client = XPRelayClient(backoff=Backoff(initial=0.01, maximum=0.01))

        def connector(url):
            attempts.append(url)
            return RefusedSocket()

        client._connector = connector
        client.start()
        thread = client._thread
        time.sleep(0.1)
        client.stop()
        assert not thread.is_alive()
        assert attempts

    def test_restart_after_stop(self):
        client = XPRelayClient(
            connector=lambda url: RefusedSocket(),
            backoff=Backoff(initial=0.01, maximum=0.01),
        )
        client.start()
        client.stop()
        client.start()
        thread = client._thread
        assert thread.is_alive()
        client.stop()
        assert not thread.is_alive()
