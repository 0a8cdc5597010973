"""JSON encoding for the persisted :class:`AppSchema` document.

Times are written as RFC 3339 strings.  On read, naive timestamps are
taken to be in the local clock and the legacy zero time
(``0001-01-01T00:00:00Z``) means "never".
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pushnotify.core.types import NotificationStatus
from pushnotify.models import AppSchema, Notification, Settings

_ZERO_YEAR = 1


def encode_time(moment: datetime | None) -> str | None:
    if moment is None:
        return None
    return moment.isoformat()


def decode_time(value: Any) -> datetime | None:
    """Parse an RFC 3339 string, returning ``None`` for null/zero times."""
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        msg = f"expected a timestamp string, got {type(value).__name__}"
        raise ValueError(msg)
    moment = datetime.fromisoformat(value)
    if moment.year == _ZERO_YEAR:
        return None
    if moment.tzinfo is None:
        moment = moment.astimezone()
    return moment


def encode_settings(settings: Settings) -> dict[str, Any]:
    return {
        "pushover_token": settings.pushover_token,
        "pushover_user": settings.pushover_user,
        "repeat_times": settings.repeat_times,
        "repeat_interval": settings.repeat_interval,
        "password": settings.password,
    }


def decode_settings(data: dict[str, Any] | None) -> Settings:
    """Build :class:`Settings` from a raw dict.

    Missing keys are read as zero values so that the load-time
    migration can tell "unset" apart from the dataclass defaults.
    """
    d = data or {}
    return Settings(
        pushover_token=d.get("pushover_token") or "",
        pushover_user=d.get("pushover_user") or "",
        repeat_times=int(d.get("repeat_times") or 0),
        repeat_interval=d.get("repeat_interval") or "",
        password=d.get("password") or "",
    )


def encode_notification(notification: Notification) -> dict[str, Any]:
    return {
        "id": notification.id,
        "content": notification.content,
        "scheduled_time": encode_time(notification.scheduled_time),
        "status": notification.status.value,
        "sends_count": notification.sends_count,
        "last_push_time": encode_time(notification.last_push_time),
        "repeat_times": notification.repeat_times,
        "repeat_interval": notification.repeat_interval,
    }


def decode_notification(data: dict[str, Any]) -> Notification:
    """Build a :class:`Notification` from a raw dict.

    Raises :class:`ValueError` / :class:`KeyError` / :class:`TypeError`
    on structurally invalid input.
    """
    if not isinstance(data, dict):
        msg = f"expected a notification object, got {type(data).__name__}"
        raise TypeError(msg)
    scheduled = decode_time(data["scheduled_time"])
    if scheduled is None:
        msg = f"notification {data.get('id')!r} has no scheduled_time"
        raise ValueError(msg)
    return Notification(
        id=str(data["id"]),
        content=data.get("content") or "",
        scheduled_time=scheduled,
        status=NotificationStatus(data.get("status") or NotificationStatus.PENDING),
        sends_count=int(data.get("sends_count") or 0),
        last_push_time=decode_time(data.get("last_push_time")),
        repeat_times=int(data.get("repeat_times") or 0),
        repeat_interval=data.get("repeat_interval") or "",
    )


def encode_schema(schema: AppSchema) -> dict[str, Any]:
    return {
        "settings": encode_settings(schema.settings),
        "notifications": [encode_notification(n) for n in schema.notifications],
    }


def decode_schema(data: dict[str, Any]) -> AppSchema:
    """Decode the current document layout (settings + notifications)."""
    raw_notifications = data.get("notifications") or []
    if not isinstance(raw_notifications, list):
        msg = "'notifications' must be a list"
        raise TypeError(msg)
    raw_settings = data.get("settings")
    if raw_settings is not None and not isinstance(raw_settings, dict):
        msg = "'settings' must be an object"
        raise TypeError(msg)
    return AppSchema(
        settings=decode_settings(raw_settings),
        notifications=tuple(decode_notification(n) for n in raw_notifications),
    )


def decode_legacy(data: list[Any]) -> AppSchema:
    """Decode the legacy layout: a bare list of notifications.

    The result carries blank settings; the store's migration fills in
    the defaults afterwards.
    """
    return AppSchema(
        settings=decode_settings(None),
        notifications=tuple(decode_notification(n) for n in data),
    )
