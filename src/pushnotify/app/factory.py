"""Flask application factory for pushnotify.

Usage::

    from pushnotify.app import create_app
    from pushnotify.config import get_config

    store = JsonStore(get_config().settings.storage.file_path)
    store.load()
    app = create_app(config=get_config(), store=store, engine=engine)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from flask import Flask, jsonify, make_response

if TYPE_CHECKING:
    from flask.typing import ResponseReturnValue

    from pushnotify.app.shutdown import ShutdownCoordinator
    from pushnotify.config.pushnotify_config import PushNotifyConfig
    from pushnotify.metrics.collector import MetricsCollector
    from pushnotify.services.scheduler import SchedulerEngine
    from pushnotify.storage.json_store import JsonStore

log = logging.getLogger(__name__)


def create_app(
    config: PushNotifyConfig | None = None,
    store: JsonStore | None = None,
    engine: SchedulerEngine | None = None,
    *,
    metrics_collector: MetricsCollector | None = None,
    shutdown_coordinator: ShutdownCoordinator | None = None,
) -> Flask:
    """Create and configure the pushnotify Flask application.

    Parameters
    ----------
    config:
        Loaded :class:`PushNotifyConfig`.  Falls back to
        :func:`get_config` when ``None``.
    store:
        Loaded :class:`JsonStore`.  When ``None`` the app still starts
        with only the infrastructure endpoints (useful for
        ``--validate-only`` or testing).
    engine:
        Scheduler to wake after API mutations.  Its update hook is
        wired to the live-update broadcaster.

    Returns
    -------
    Flask
        Fully configured WSGI application.

    """
    if config is None:
        from pushnotify.config import get_config  # noqa: PLC0415

        config = get_config()

    settings = config.settings

    app = Flask("pushnotify")
    app.config["PUSHNOTIFY_SETTINGS"] = settings
    app.config["PUSHNOTIFY_CONFIG"] = config

    # -- Error handlers (RFC 7807) ------------------------------------------
    from pushnotify.app.errors import register_error_handlers  # noqa: PLC0415

    register_error_handlers(app)

    # -- Request lifecycle hooks --------------------------------------------
    from pushnotify.app.middleware import register_request_hooks  # noqa: PLC0415

    register_request_hooks(app)

    # -- Infrastructure endpoints -------------------------------------------
    _register_health(app)

    # -- Dependency container -----------------------------------------------
    if store is not None:
        from pushnotify.app.context import Container  # noqa: PLC0415
        from pushnotify.app.events import EventBroadcaster  # noqa: PLC0415

        broadcaster = EventBroadcaster()
        container = Container(
            settings,
            store,
            engine=engine,
            broadcaster=broadcaster,
            metrics_collector=metrics_collector,
            shutdown_coordinator=shutdown_coordinator,
        )
        app.extensions["container"] = container

        if engine is not None:
            engine.add_update_hook(broadcaster.publish)
        if shutdown_coordinator is not None:
            shutdown_coordinator.on_shutdown(broadcaster.close)

        # -- API routes -----------------------------------------------------
        from pushnotify.api import register_blueprints  # noqa: PLC0415

        register_blueprints(app)

    log.info("Flask application created")
    return app


# ---------------------------------------------------------------------------
# Infrastructure endpoints
# ---------------------------------------------------------------------------


def _register_health(app: Flask) -> None:
    """Register ``/livez``, ``/healthz`` and ``/metrics``."""
    from pushnotify import __version__  # noqa: PLC0415

    @app.route("/livez")
    def livez() -> ResponseReturnValue:
        """Return minimal liveness probe."""
        return jsonify({"alive": True, "version": __version__}), 200

    @app.route("/healthz")
    def healthz() -> ResponseReturnValue:
        """Return store and scheduler health."""
        result: dict = {"status": "ok", "version": __version__}
        checks: dict = {}

        container = app.extensions.get("container")
        if container is not None:
            try:
                snapshot = container.store.snapshot()
                checks["store"] = "readable"
                result["notifications"] = len(snapshot.notifications)
                result["credentials_configured"] = snapshot.settings.has_credentials
            except Exception:  # noqa: BLE001
                checks["store"] = "unreadable"
                result["status"] = "degraded"

            engine = container.engine
            if engine is not None:
                alive = engine.is_running
                checks["scheduler"] = "alive" if alive else "dead"
                if not alive:
                    result["status"] = "degraded"
                next_run = engine.next_run
                result["next_run"] = next_run.isoformat() if next_run else None

            if container.shutdown_coordinator is not None:
                result["shutting_down"] = container.shutdown_coordinator.is_shutting_down

        result["checks"] = checks
        status_code = 200 if result["status"] == "ok" else 503
        return jsonify(result), status_code

    @app.route("/metrics")
    def metrics() -> ResponseReturnValue:
        """Return metrics in Prometheus text exposition format."""
        container = app.extensions.get("container")
        collector = container.metrics_collector if container is not None else None
        if collector is None:
            return "# No metrics available\n", 200, {"Content-Type": "text/plain"}

        response = make_response(collector.export())
        response.headers["Content-Type"] = "text/plain; version=0.0.4; charset=utf-8"
        return response
