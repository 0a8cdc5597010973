"""Settings endpoints.

``GET /api/settings`` returns the settings with credentials masked.
``PUT /api/settings`` replaces the settings record.  Keys left out of
the body keep their current value, so a client never has to echo
secrets it was only ever shown masked.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from flask import Blueprint, jsonify, request

from pushnotify.api.serializers import (
    parse_repeat_interval,
    parse_repeat_times,
    parse_secret,
    require_json_object,
    serialize_settings,
)
from pushnotify.app.context import get_container
from pushnotify.app.errors import MALFORMED, ApiProblem
from pushnotify.models import Settings

if TYPE_CHECKING:
    from flask.typing import ResponseReturnValue

log = logging.getLogger(__name__)

settings_bp = Blueprint("settings", __name__)

_EDITABLE = frozenset(
    {"pushover_token", "pushover_user", "repeat_times", "repeat_interval", "password"},
)


@settings_bp.route("", methods=["GET"])
def get_settings() -> ResponseReturnValue:
    return jsonify(serialize_settings(get_container().store.get_settings()))


@settings_bp.route("", methods=["PUT"])
def put_settings() -> ResponseReturnValue:
    data = require_json_object(request.get_json(silent=True))
    unknown = sorted(set(data) - _EDITABLE)
    if unknown:
        raise ApiProblem(
            MALFORMED,
            f"Unknown settings field(s): {', '.join(unknown)}",
            400,
        )

    container = get_container()
    current = container.store.get_settings()
    new_settings = Settings(
        pushover_token=(
            parse_secret("pushover_token", data["pushover_token"])
            if "pushover_token" in data
            else current.pushover_token
        ),
        pushover_user=(
            parse_secret("pushover_user", data["pushover_user"])
            if "pushover_user" in data
            else current.pushover_user
        ),
        repeat_times=(
            parse_repeat_times(data["repeat_times"])
            if "repeat_times" in data
            else current.repeat_times
        ),
        repeat_interval=(
            parse_repeat_interval(data["repeat_interval"])
            if "repeat_interval" in data
            else current.repeat_interval
        ),
        password=(
            parse_secret("password", data["password"]) if "password" in data else current.password
        ),
    )

    with container.track("update_settings"):
        container.store.update_settings(new_settings)

    log.info("Settings updated (%s)", ", ".join(sorted(data)) or "no fields")
    container.notify_changed()
    return jsonify(serialize_settings(new_settings))
