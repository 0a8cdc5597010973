"""Event-driven notification scheduler.

A single daemon thread evaluates every pending notification, delivers
the ones that are due, advances their retry state, persists the batch
once and then sleeps until the earliest next due instant.  API handlers
call :meth:`SchedulerEngine.refresh` after mutating the store so the
new state is picked up at once instead of at the next timer expiry.

Delivery slots are anchored: attempt *n* of a notification is due at
``truncate_to_minute(scheduled_time) + repeat_interval * n`` no matter
when earlier attempts actually ran.  A failed attempt stamps
``last_push_time`` but does not consume the slot.

Usage::

    engine = SchedulerEngine(store, pushover_factory(settings.pushover))
    engine.set_update_hook(broadcaster.publish)
    engine.start()
    ...
    engine.refresh()   # after any store mutation
    ...
    engine.stop()
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from pushnotify.core.durations import (
    DEFAULT_REPEAT_INTERVAL,
    DEFAULT_REPEAT_TIMES,
    format_duration,
    parse_duration,
    truncate_to_minute,
)
from pushnotify.core.errors import PersistenceError
from pushnotify.core.types import NotificationStatus

if TYPE_CHECKING:
    from collections.abc import Callable

    from pushnotify.delivery.base import DeliveryPort
    from pushnotify.metrics.collector import MetricsCollector
    from pushnotify.models import Notification, Settings
    from pushnotify.storage.json_store import JsonStore

log = logging.getLogger(__name__)

_FALLBACK_INTERVAL = parse_duration(DEFAULT_REPEAT_INTERVAL)
_MAX_ERROR_BACKOFF_SECONDS = 300
_SHUTDOWN_POLL_SECONDS = 1.0


def _utcnow() -> datetime:
    return datetime.now(UTC)


def slot_time(scheduled_time: datetime, interval: timedelta, attempt: int) -> datetime:
    """Return the anchored due instant of zero-based *attempt*."""
    return truncate_to_minute(scheduled_time) + interval * attempt


def resolve_policy(notification: Notification, settings: Settings) -> tuple[timedelta, int]:
    """Return the effective ``(repeat_interval, repeat_times)``.

    A notification's own values win; unset or invalid values fall back
    to the settings defaults and then to the built-in 30m / 3.
    """
    repeat_times = notification.repeat_times
    if repeat_times <= 0:
        repeat_times = settings.repeat_times if settings.repeat_times > 0 else DEFAULT_REPEAT_TIMES

    interval = None
    for candidate in (notification.repeat_interval, settings.repeat_interval):
        if not candidate:
            continue
        try:
            parsed = parse_duration(candidate)
        except ValueError:
            log.warning(
                "Invalid repeat interval %r for notification %s, falling back",
                candidate,
                notification.id,
            )
            continue
        if parsed > timedelta(0):
            interval = parsed
            break
    return interval or _FALLBACK_INTERVAL, repeat_times


class SchedulerEngine:
    """Single-threaded scheduling and dispatch loop.

    Parameters
    ----------
    store:
        The shared :class:`JsonStore`.
    delivery_factory:
        Builds a :class:`DeliveryPort` from the current settings
        (credentials).  Called once per evaluation pass.
    message_title:
        Title sent with every push.
    failure_retry_seconds:
        Minimum delay before the loop wakes again for a slot whose
        delivery just failed.  ``0`` wakes at the slot itself.
    clock:
        Returns the current timezone-aware time.
    metrics:
        Optional :class:`MetricsCollector`.

    """

    def __init__(
        self,
        store: JsonStore,
        delivery_factory: Callable[[Settings], DeliveryPort],
        *,
        message_title: str = "Reminder",
        failure_retry_seconds: float = 60,
        clock: Callable[[], datetime] | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._store = store
        self._delivery_factory = delivery_factory
        self._title = message_title
        self._failure_retry = timedelta(seconds=failure_retry_seconds)
        self._clock = clock or _utcnow
        self._metrics = metrics
        self._wake_event = threading.Event()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._update_hooks: list[Callable[[], None]] = []
        self._update_lock = threading.Lock()
        self._consecutive_failures = 0
        self._next_run: datetime | None = None

    # -- control surface -------------------------------------------------

    def refresh(self) -> None:
        """Ask the loop to re-evaluate now.

        Never blocks.  Any number of calls before the loop next checks
        collapse into a single re-evaluation.
        """
        self._wake_event.set()

    def set_update_hook(self, callback: Callable[[], None] | None) -> None:
        """Replace all update observers with *callback* (or none)."""
        with self._update_lock:
            self._update_hooks = [callback] if callback is not None else []

    def add_update_hook(self, callback: Callable[[], None]) -> None:
        """Register an additional observer called after each engine save."""
        with self._update_lock:
            self._update_hooks.append(callback)

    def start(self) -> None:
        """Run the loop on a daemon thread until :meth:`stop`."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self.run,
            args=(self._stop_event,),
            name="scheduler",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float = 10) -> None:
        """Signal the loop to exit and wait for it.

        An in-flight delivery runs to completion first.
        """
        self._stop_event.set()
        self._wake_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            log.info("Scheduler stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def next_run(self) -> datetime | None:
        """Instant the loop is currently sleeping towards, if any."""
        return self._next_run

    # -- loop --------------------------------------------------------------

    def run(self, shutdown_event: threading.Event) -> None:
        """Evaluate, sleep, repeat until *shutdown_event* is set.

        Blocks the calling thread.  Wakes on shutdown, on
        :meth:`refresh`, or when the earliest due instant arrives.
        """
        log.info("Scheduler started (event-driven)")

        while not shutdown_event.is_set():
            # Cleared before evaluating so a refresh during the pass
            # triggers one more pass.
            self._wake_event.clear()
            next_run = self._evaluate_guarded()
            self._next_run = next_run

            if next_run is None:
                timeout = None
                log.info("No pending notifications, scheduler idle")
            else:
                delay = max(next_run - self._clock(), timedelta(0))
                timeout = delay.total_seconds()
                log.info(
                    "Next check scheduled in %s at %s",
                    format_duration(delay),
                    next_run.isoformat(),
                )

            woken = self._sleep(shutdown_event, timeout)
            if shutdown_event.is_set():
                break
            if woken:
                log.info("Scheduler received update signal, re-evaluating")

        self._next_run = None
        log.info("Scheduler loop exited")

    def _sleep(self, shutdown_event: threading.Event, timeout: float | None) -> bool:
        """Block until a refresh, *timeout* seconds or *shutdown_event*.

        Returns ``True`` when woken by :meth:`refresh`.  The shutdown
        event is checked at least every ``_SHUTDOWN_POLL_SECONDS``.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while not shutdown_event.is_set():
            wait = _SHUTDOWN_POLL_SECONDS
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                wait = min(wait, remaining)
            if self._wake_event.wait(timeout=wait):
                return True
        return False

    def _evaluate_guarded(self) -> datetime | None:
        """Run one pass; on an unexpected error retry with backoff."""
        try:
            next_run = self.evaluate()
        except Exception:
            self._consecutive_failures += 1
            log.exception(
                "Scheduler pass failed (consecutive failures: %d)",
                self._consecutive_failures,
            )
            if self._metrics:
                self._metrics.increment("pushnotify_scheduler_errors_total")
            backoff = min(
                max(self._failure_retry.total_seconds(), 1) * (2**self._consecutive_failures),
                _MAX_ERROR_BACKOFF_SECONDS,
            )
            return self._clock() + timedelta(seconds=backoff)
        self._consecutive_failures = 0
        return next_run

    # -- evaluation pass ---------------------------------------------------

    def evaluate(self, now: datetime | None = None) -> datetime | None:
        """Run one evaluation pass and return the next wake instant.

        Delivers every due pending notification, persists all changes
        with a single save and notifies observers.  Returns ``None``
        when there is nothing left to wait for, including when no
        delivery credentials are configured.
        """
        now = now or self._clock()
        settings = self._store.get_settings()
        if not settings.has_credentials:
            log.debug("Delivery credentials not configured, nothing to do")
            return None

        transport = self._delivery_factory(settings)
        if self._metrics:
            self._metrics.increment("pushnotify_scheduler_passes_total")

        earliest: datetime | None = None
        changes: list[tuple[Notification, Notification]] = []

        for notification in self._store.get_pending():
            try:
                updated, candidate = self._process(notification, settings, transport, now)
            except Exception:
                log.exception("Failed to evaluate notification %s", notification.id)
                continue
            if updated != notification:
                changes.append((notification, updated))
            if candidate is not None and (earliest is None or candidate < earliest):
                earliest = candidate

        if changes:
            self._persist(changes)

        return earliest

    def _process(
        self,
        notification: Notification,
        settings: Settings,
        transport: DeliveryPort,
        now: datetime,
    ) -> tuple[Notification, datetime | None]:
        """Evaluate one notification.

        Returns the (possibly) updated record and its next due instant,
        or ``None`` once it is Done.
        """
        interval, repeat_times = resolve_policy(notification, settings)
        if notification.sends_count >= repeat_times:
            # Budget already used up, e.g. repeat_times lowered by an edit.
            return replace(notification, status=NotificationStatus.DONE), None

        due = slot_time(notification.scheduled_time, interval, notification.sends_count)
        if now < due:
            return notification, due

        log.info(
            "Sending notification %s (attempt %d/%d, scheduled %s, delay %s)",
            notification.id,
            notification.sends_count + 1,
            repeat_times,
            due.isoformat(),
            format_duration(now - due),
        )
        try:
            transport.send(self._title, notification.content)
        except Exception as exc:
            log.error(  # noqa: TRY400
                "Failed to deliver notification %s: %s",
                notification.id,
                exc,
            )
            if self._metrics:
                self._metrics.increment(
                    "pushnotify_deliveries_total",
                    labels={"outcome": "failure"},
                )
            updated = replace(notification, last_push_time=now)
            next_due = due
            if self._failure_retry > timedelta(0):
                next_due = max(due, now + self._failure_retry)
            return updated, next_due

        if self._metrics:
            self._metrics.increment(
                "pushnotify_deliveries_total",
                labels={"outcome": "success"},
            )
        updated = replace(
            notification,
            sends_count=notification.sends_count + 1,
            last_push_time=now,
        )
        if updated.sends_count >= repeat_times:
            return replace(updated, status=NotificationStatus.DONE), None
        return updated, slot_time(updated.scheduled_time, interval, updated.sends_count)

    def _persist(self, changes: list[tuple[Notification, Notification]]) -> None:
        try:
            applied = self._store.commit_progress(changes)
        except PersistenceError:
            log.exception("Failed to save store, changes kept in memory")
            if self._metrics:
                self._metrics.increment("pushnotify_store_save_errors_total")
            return

        if not applied:
            return

        for notification in applied:
            if notification.is_done:
                log.info(
                    "Notification %s marked as Done after %d sends",
                    notification.id,
                    notification.sends_count,
                )

        with self._update_lock:
            callbacks = list(self._update_hooks)
        for callback in callbacks:
            try:
                callback()
            except Exception:
                log.exception("Update hook %r raised", callback)
