"""Notification CRUD endpoints.

``GET    /api/notifications``          list (optionally ``?status=Pending``)
``POST   /api/notifications``          create
``GET    /api/notifications/<id>``     read one
``PUT    /api/notifications/<id>``     edit content, schedule or repeat policy
``DELETE /api/notifications/<id>``     delete
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from flask import Blueprint, jsonify, request

from pushnotify.api.serializers import (
    parse_content,
    parse_repeat_interval,
    parse_repeat_times,
    parse_scheduled_time,
    require_json_object,
    serialize_notification,
)
from pushnotify.app.context import get_container
from pushnotify.app.errors import MALFORMED, ApiProblem
from pushnotify.core.types import NotificationStatus
from pushnotify.models import Notification

if TYPE_CHECKING:
    from flask.typing import ResponseReturnValue

log = logging.getLogger(__name__)

notifications_bp = Blueprint("notifications", __name__)


@notifications_bp.route("", methods=["GET"])
def list_notifications() -> ResponseReturnValue:
    """List all notifications in store order."""
    container = get_container()
    status_filter = request.args.get("status")
    if status_filter is not None:
        try:
            wanted = NotificationStatus(status_filter)
        except ValueError:
            raise ApiProblem(
                MALFORMED,
                f"Unknown status '{status_filter}'. Must be 'Pending' or 'Done'",
                400,
            ) from None
    else:
        wanted = None

    settings = container.store.get_settings()
    items = [
        serialize_notification(n, settings)
        for n in container.store.get_all_notifications()
        if wanted is None or n.status == wanted
    ]
    return jsonify({"notifications": items})


@notifications_bp.route("", methods=["POST"])
def create_notification() -> ResponseReturnValue:
    """Create a Pending notification.

    Omitted repeat values are filled from the current settings so a
    later settings change does not alter existing reminders.
    """
    data = require_json_object(request.get_json(silent=True))
    container = get_container()
    settings = container.store.get_settings()

    notification = Notification(
        id=str(uuid.uuid4()),
        content=parse_content(data.get("content")),
        scheduled_time=parse_scheduled_time(data.get("scheduled_time")),
        repeat_times=(
            parse_repeat_times(data["repeat_times"])
            if data.get("repeat_times") is not None
            else settings.repeat_times
        ),
        repeat_interval=(
            parse_repeat_interval(data["repeat_interval"])
            if data.get("repeat_interval")
            else settings.repeat_interval
        ),
    )

    with container.track("create_notification"):
        container.store.add_notification(notification)
    log.info(
        "Notification %s created for %s",
        notification.id,
        notification.scheduled_time.isoformat(),
    )
    container.notify_changed()
    return jsonify(serialize_notification(notification, settings)), 201


@notifications_bp.route("/<notification_id>", methods=["GET"])
def get_notification(notification_id: str) -> ResponseReturnValue:
    container = get_container()
    notification = container.store.get_notification(notification_id)
    return jsonify(serialize_notification(notification, container.store.get_settings()))


@notifications_bp.route("/<notification_id>", methods=["PUT"])
def update_notification(notification_id: str) -> ResponseReturnValue:
    """Edit content, schedule or repeat policy.

    Delivery progress (status, sends count, last push) is left as is.
    """
    data = require_json_object(request.get_json(silent=True))
    container = get_container()
    current = container.store.get_notification(notification_id)

    changes: dict[str, Any] = {}
    if "content" in data:
        changes["content"] = parse_content(data["content"])
    if "scheduled_time" in data:
        changes["scheduled_time"] = parse_scheduled_time(data["scheduled_time"])
    if "repeat_times" in data:
        changes["repeat_times"] = parse_repeat_times(data["repeat_times"])
    if "repeat_interval" in data:
        changes["repeat_interval"] = parse_repeat_interval(data["repeat_interval"])
    if not changes:
        raise ApiProblem(
            MALFORMED,
            "Nothing to update. Editable fields: content, scheduled_time, "
            "repeat_times, repeat_interval",
            400,
        )

    updated = replace(current, **changes)
    with container.track("update_notification"):
        container.store.update_notification(updated)
    log.info("Notification %s updated (%s)", notification_id, ", ".join(sorted(changes)))
    container.notify_changed()
    return jsonify(serialize_notification(updated, container.store.get_settings()))


@notifications_bp.route("/<notification_id>", methods=["DELETE"])
def delete_notification(notification_id: str) -> ResponseReturnValue:
    container = get_container()
    with container.track("delete_notification"):
        container.store.delete_notification(notification_id)
    log.info("Notification %s deleted", notification_id)
    container.notify_changed()
    return "", 204
