"""Server-Sent-Events stream of live-update signals.

``GET /api/events`` keeps the connection open and emits a ``refresh``
event whenever the scheduler saves progress or an API mutation lands.
Clients reload whatever they display on each event.
"""

from __future__ import annotations

import logging
import queue
from typing import TYPE_CHECKING

from flask import Blueprint, Response, stream_with_context

from pushnotify.app.context import get_container

if TYPE_CHECKING:
    from collections.abc import Iterator

log = logging.getLogger(__name__)

events_bp = Blueprint("events", __name__)

KEEPALIVE_SECONDS = 15


def _format_event(event: str) -> str:
    return f"event: {event}\ndata: {{}}\n\n"


@events_bp.route("", methods=["GET"])
def stream_events() -> Response:
    broadcaster = get_container().broadcaster
    q = broadcaster.subscribe()

    def _generate() -> Iterator[str]:
        try:
            yield ": connected\n\n"
            while True:
                try:
                    event = q.get(timeout=KEEPALIVE_SECONDS)
                except queue.Empty:
                    yield ": keepalive\n\n"
                    continue
                if event is None:
                    break
                yield _format_event(event)
        finally:
            broadcaster.unsubscribe(q)

    response = Response(stream_with_context(_generate()), mimetype="text/event-stream")
    response.headers["Cache-Control"] = "no-cache"
    response.headers["X-Accel-Buffering"] = "no"
    return response
