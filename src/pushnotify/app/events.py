"""Fan-out of store updates to Server-Sent-Event clients.

Each connected client owns a bounded queue.  :meth:`publish` never
blocks: a client that is not draining its queue simply misses events,
which is harmless because every event means "reload everything".
"""

from __future__ import annotations

import contextlib
import logging
import queue
import threading

log = logging.getLogger(__name__)

REFRESH_EVENT = "refresh"

_QUEUE_SIZE = 16


class EventBroadcaster:
    """Thread-safe publish/subscribe hub for live-update events."""

    def __init__(self) -> None:
        self._subscribers: set[queue.Queue] = set()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self) -> queue.Queue:
        """Register a new client and return its event queue."""
        q: queue.Queue = queue.Queue(maxsize=_QUEUE_SIZE)
        with self._lock:
            if self._closed:
                q.put_nowait(None)
            else:
                self._subscribers.add(q)
        log.debug("SSE client subscribed")
        return q

    def unsubscribe(self, q: queue.Queue) -> None:
        with self._lock:
            self._subscribers.discard(q)
        log.debug("SSE client unsubscribed")

    def publish(self, event: str = REFRESH_EVENT) -> None:
        """Queue *event* for every subscriber without blocking."""
        with self._lock:
            for q in self._subscribers:
                try:
                    q.put_nowait(event)
                except queue.Full:
                    log.debug("SSE client queue full, dropping '%s'", event)

    def close(self) -> None:
        """End every open stream; later subscribers end immediately."""
        # Held throughout so no publish can refill a queue between
        # freeing a slot and queueing the sentinel.
        with self._lock:
            self._closed = True
            for q in self._subscribers:
                try:
                    q.put_nowait(None)
                except queue.Full:
                    with contextlib.suppress(queue.Empty):
                        q.get_nowait()
                    q.put_nowait(None)
            self._subscribers.clear()
