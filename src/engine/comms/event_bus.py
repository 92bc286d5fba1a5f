# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""EventBus -- topic-based publish/subscribe between the simulation and its observers.

Two subscription styles:
  - subscribe(topic) returns a Queue the caller drains on its own schedule
    (the presentation layer polls it once per frame).
  - on(topic, callback) invokes the callback synchronously on publish.

The topic "*" receives every message as ``{"topic": ..., "data": ...}``.
Subscriber lists are guarded by a lock so a relay client running on
another thread may publish safely.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Callable

logger = logging.getLogger("engine.event_bus")

WILDCARD = "*"


class EventBus:
    """Minimal thread-safe pub/sub."""

    def __init__(self) -> None:
        self._subscribers: dict[str, list[queue.Queue]] = {}
        self._callbacks: dict[str, list[Callable[[Any], None]]] = {}
        self._lock = threading.Lock()

    def publish(self, topic: str, data: Any = None) -> None:
        with self._lock:
            queues = list(self._subscribers.get(topic, []))
            wildcard = list(self._subscribers.get(WILDCARD, []))
            callbacks = list(self._callbacks.get(topic, []))

        for q in queues:
            q.put(data)
        for q in wildcard:
            q.put({"topic": topic, "data": data})
        for cb in callbacks:
            try:
                cb(data)
            except Exception as e:
                logger.warning(f"EventBus callback for '{topic}' failed: {e}")

    def subscribe(self, topic: str) -> queue.Queue:
        q: queue.Queue = queue.Queue()
        with self._lock:
            self._subscribers.setdefault(topic, []).append(q)
        return q

    def unsubscribe(self, topic: str, q: queue.Queue) -> None:
        with self._lock:
            subs = self._subscribers.get(topic, [])
            if q in subs:
                subs.remove(q)

    def on(self, topic: str, callback: Callable[[Any], None]) -> Callable[[], None]:
        """Register a synchronous callback.  Returns a function that removes it."""
        with self._lock:
            self._callbacks.setdefault(topic, []).append(callback)

        def _remove() -> None:
            with self._lock:
                cbs = self._callbacks.get(topic, [])
                if callback in cbs:
                    cbs.remove(callback)

        return _remove
