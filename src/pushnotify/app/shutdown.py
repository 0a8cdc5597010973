"""Graceful shutdown coordinator.

Tracks in-flight API mutations and runs the registered stop callbacks
(HTTP server, scheduler, SSE streams) once, after in-flight work has
finished or the grace period expired.

Usage::

    from pushnotify.app.shutdown import ShutdownCoordinator

    coordinator = ShutdownCoordinator(graceful_timeout=10)
    coordinator.on_shutdown(engine.stop)

    with coordinator.track("update_notification"):
        store.update_notification(updated)

    coordinator.register_signals()
    coordinator.wait()          # blocks the main thread until SIGTERM
"""

from __future__ import annotations

import logging
import signal
import threading
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

log = logging.getLogger(__name__)


class ShutdownCoordinator:
    """Coordinates graceful shutdown by tracking in-flight operations.

    Parameters
    ----------
    graceful_timeout:
        Maximum seconds to wait for in-flight operations during shutdown.

    """

    def __init__(self, graceful_timeout: int = 10) -> None:
        self._graceful_timeout = graceful_timeout
        self._shutdown_flag = threading.Event()
        self._finished = threading.Event()
        self._in_flight = 0
        self._lock = threading.Lock()
        self._done = threading.Condition(self._lock)
        self._callbacks: list[Callable[[], None]] = []

    @property
    def is_shutting_down(self) -> bool:
        """True once :meth:`initiate` has been called."""
        return self._shutdown_flag.is_set()

    @property
    def shutdown_event(self) -> threading.Event:
        """Event set as soon as shutdown begins."""
        return self._shutdown_flag

    @property
    def in_flight_count(self) -> int:
        """Number of currently tracked operations."""
        with self._lock:
            return self._in_flight

    def on_shutdown(self, callback: Callable[[], None]) -> None:
        """Register *callback* to run (in registration order) on shutdown."""
        self._callbacks.append(callback)

    @contextmanager
    def track(self, name: str) -> Generator[None, None, None]:
        """Context manager to track an in-flight operation.

        If shutdown has already been initiated, the operation is still
        allowed to proceed, but a warning is logged.
        """
        if self._shutdown_flag.is_set():
            log.warning("Operation '%s' starting during shutdown", name)

        with self._lock:
            self._in_flight += 1

        try:
            yield
        finally:
            with self._done:
                self._in_flight -= 1
                if self._in_flight == 0:
                    self._done.notify_all()

    def initiate(self) -> None:
        """Begin graceful shutdown.

        Sets the shutdown flag, waits up to ``graceful_timeout`` seconds
        for in-flight operations to complete, then runs the registered
        callbacks.  Only the first call does any work.
        """
        with self._lock:
            if self._shutdown_flag.is_set():
                return
            self._shutdown_flag.set()
        log.info("Graceful shutdown initiated")

        with self._done:
            deadline = time.monotonic() + self._graceful_timeout
            while self._in_flight > 0:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    log.warning(
                        "Shutdown timeout expired with %d operations in flight",
                        self._in_flight,
                    )
                    break
                self._done.wait(timeout=remaining)

            if self._in_flight == 0:
                log.info("All in-flight operations completed")

        for callback in self._callbacks:
            try:
                callback()
            except Exception:
                log.exception("Shutdown callback %r failed", callback)

        self._finished.set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until shutdown has fully completed."""
        return self._finished.wait(timeout=timeout)

    def register_signals(self) -> None:
        """Register SIGTERM and SIGINT handlers to initiate shutdown.

        Must be called from the main thread.
        """
        try:
            signal.signal(signal.SIGTERM, self._signal_handler)
            signal.signal(signal.SIGINT, self._signal_handler)
        except (ValueError, OSError):
            log.debug("Could not register signal handlers (not main thread)")

    def _signal_handler(self, signum: int, frame) -> None:
        sig_name = signal.Signals(signum).name
        log.info("Received %s, initiating graceful shutdown", sig_name)
        # Run in a thread to avoid blocking the signal handler
        threading.Thread(
            target=self.initiate,
            name="shutdown-coordinator",
            daemon=True,
        ).start()
