"""JSON API layer: Flask blueprint registration.

Call :func:`register_blueprints` during application startup to wire
all route blueprints into the Flask app.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from flask import Flask

log = logging.getLogger(__name__)

API_PREFIX = "/api"


def register_blueprints(app: Flask) -> None:
    """Register the notification, settings and event-stream blueprints."""
    from pushnotify.api.events import events_bp  # noqa: PLC0415
    from pushnotify.api.notifications import notifications_bp  # noqa: PLC0415
    from pushnotify.api.settings import settings_bp  # noqa: PLC0415

    app.register_blueprint(notifications_bp, url_prefix=API_PREFIX + "/notifications")
    app.register_blueprint(settings_bp, url_prefix=API_PREFIX + "/settings")
    app.register_blueprint(events_bp, url_prefix=API_PREFIX + "/events")

    log.info("API blueprints registered under %s", API_PREFIX)
