"""Dependency container for pushnotify.

Created once during application startup and stored on the Flask app
via ``app.extensions["container"]``.  Accessible from any request
context with :func:`get_container`.

Usage::

    from pushnotify.app.context import get_container

    c = get_container()
    notification = c.store.get_notification(notification_id)
"""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

from flask import current_app

if TYPE_CHECKING:
    from collections.abc import Iterator

    from pushnotify.app.events import EventBroadcaster
    from pushnotify.app.shutdown import ShutdownCoordinator
    from pushnotify.config.settings import PushNotifySettings
    from pushnotify.metrics.collector import MetricsCollector
    from pushnotify.services.scheduler import SchedulerEngine
    from pushnotify.storage.json_store import JsonStore


class Container:
    """Application-wide dependency container.

    Holds the shared store and the collaborators request handlers need.
    The engine is optional so the API can be served (and tested)
    without a running scheduler.
    """

    def __init__(
        self,
        settings: PushNotifySettings,
        store: JsonStore,
        *,
        engine: SchedulerEngine | None = None,
        broadcaster: EventBroadcaster,
        metrics_collector: MetricsCollector | None = None,
        shutdown_coordinator: ShutdownCoordinator | None = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.engine = engine
        self.broadcaster = broadcaster
        self.metrics_collector = metrics_collector
        self.shutdown_coordinator = shutdown_coordinator

    @contextlib.contextmanager
    def track(self, name: str) -> Iterator[None]:
        """Track *name* as in-flight work for graceful shutdown."""
        if self.shutdown_coordinator is None:
            yield
            return
        with self.shutdown_coordinator.track(name):
            yield

    def notify_changed(self) -> None:
        """Wake the scheduler and tell live clients the store changed.

        Called by every API mutation after the store accepted it.
        """
        if self.engine is not None:
            self.engine.refresh()
        self.broadcaster.publish()


def get_container() -> Container:
    """Return the :class:`Container` from the current Flask app."""
    return current_app.extensions["container"]
