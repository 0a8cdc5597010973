"""Serve subcommand: start the scheduler and the HTTP API."""

from __future__ import annotations

import logging
import threading

log = logging.getLogger(__name__)


def run_serve(config, args) -> int:
    """Run until SIGINT/SIGTERM.  Returns the process exit status."""
    from werkzeug.serving import make_server  # noqa: PLC0415

    from pushnotify.app import create_app  # noqa: PLC0415
    from pushnotify.app.shutdown import ShutdownCoordinator  # noqa: PLC0415
    from pushnotify.core.errors import CorruptStoreError, PersistenceError  # noqa: PLC0415
    from pushnotify.delivery.pushover import pushover_factory  # noqa: PLC0415
    from pushnotify.metrics.collector import MetricsCollector  # noqa: PLC0415
    from pushnotify.services.scheduler import SchedulerEngine  # noqa: PLC0415
    from pushnotify.storage.json_store import JsonStore  # noqa: PLC0415

    settings = config.settings

    store = JsonStore(settings.storage.file_path)
    try:
        store.load()
    except (CorruptStoreError, PersistenceError) as exc:
        if args.debug:
            raise
        log.critical("Cannot start: %s", exc)
        return 1

    metrics = MetricsCollector()
    coordinator = ShutdownCoordinator(graceful_timeout=settings.server.graceful_timeout)

    engine = None
    if settings.scheduler.enabled:
        engine = SchedulerEngine(
            store,
            pushover_factory(
                api_url=settings.pushover.api_url,
                timeout_seconds=settings.pushover.timeout_seconds,
            ),
            message_title=settings.scheduler.message_title,
            failure_retry_seconds=settings.scheduler.failure_retry_seconds,
            metrics=metrics,
        )
    else:
        log.warning("Scheduler disabled by configuration, notifications will not be sent")

    app = create_app(
        config,
        store,
        engine,
        metrics_collector=metrics,
        shutdown_coordinator=coordinator,
    )

    try:
        server = make_server(
            settings.server.bind,
            settings.server.port,
            app,
            threaded=True,
        )
    except OSError as exc:
        if args.debug:
            raise
        log.critical(
            "Cannot listen on %s:%d: %s",
            settings.server.bind,
            settings.server.port,
            exc,
        )
        return 1

    # Stop order: stop accepting requests, then stop the scheduler.
    coordinator.on_shutdown(server.shutdown)
    if engine is not None:
        coordinator.on_shutdown(engine.stop)
    coordinator.register_signals()

    if engine is not None:
        engine.start()

    http_thread = threading.Thread(
        target=server.serve_forever,
        name="http",
        daemon=True,
    )
    http_thread.start()
    log.info(
        "Serving on http://%s:%d (store %s)",
        settings.server.bind,
        settings.server.port,
        store.file_path,
    )

    coordinator.wait()
    server.server_close()
    log.info("pushnotify stopped")
    return 0
