"""Response serialization and request-field parsing for the JSON API.

Serializers take model entities and produce dictionaries suitable for
``flask.jsonify``.  Parsers validate one request field each and raise
:class:`ApiProblem` with a 400 status on bad input.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from pushnotify.app.errors import MALFORMED, ApiProblem
from pushnotify.core.durations import parse_duration, truncate_to_minute
from pushnotify.logging.sanitize import sanitize_settings
from pushnotify.services.scheduler import resolve_policy, slot_time
from pushnotify.storage.serializers import encode_notification

if TYPE_CHECKING:
    from pushnotify.models import Notification, Settings


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


def serialize_notification(notification: Notification, settings: Settings) -> dict:
    """Serialize a notification plus its effective repeat policy.

    ``next_due`` is the anchored instant of the next attempt, or
    ``None`` once the notification is Done.
    """
    result: dict[str, Any] = encode_notification(notification)
    interval, repeat_times = resolve_policy(notification, settings)
    result["effective_repeat_times"] = repeat_times
    result["next_due"] = (
        None
        if notification.is_done
        else slot_time(notification.scheduled_time, interval, notification.sends_count).isoformat()
    )
    return result


def serialize_settings(settings: Settings) -> dict:
    """Serialize settings with credentials masked."""
    return sanitize_settings(settings)


# ---------------------------------------------------------------------------
# Request fields
# ---------------------------------------------------------------------------


def require_json_object(data: Any) -> dict:  # noqa: ANN401
    if not isinstance(data, dict):
        raise ApiProblem(MALFORMED, "Request body must be a JSON object", 400)
    return data


def parse_content(value: Any) -> str:  # noqa: ANN401
    if not isinstance(value, str) or not value.strip():
        raise ApiProblem(MALFORMED, "'content' must be a non-empty string", 400)
    return value


def parse_scheduled_time(value: Any) -> datetime:  # noqa: ANN401
    """Parse an ISO 8601 timestamp truncated to the minute.

    A timestamp without an offset is read as local wall-clock time.
    """
    if not isinstance(value, str) or not value:
        raise ApiProblem(MALFORMED, "'scheduled_time' must be an ISO 8601 string", 400)
    try:
        moment = datetime.fromisoformat(value)
    except ValueError:
        raise ApiProblem(
            MALFORMED,
            f"'scheduled_time' is not a valid ISO 8601 timestamp: {value!r}",
            400,
        ) from None
    if moment.tzinfo is None:
        moment = moment.astimezone()
    return truncate_to_minute(moment)


def parse_repeat_times(value: Any) -> int:  # noqa: ANN401
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ApiProblem(MALFORMED, "'repeat_times' must be a positive integer", 400)
    return value


def parse_repeat_interval(value: Any) -> str:  # noqa: ANN401
    if not isinstance(value, str):
        raise ApiProblem(MALFORMED, "'repeat_interval' must be a duration string", 400)
    try:
        parsed = parse_duration(value)
    except ValueError:
        raise ApiProblem(
            MALFORMED,
            f"'repeat_interval' is not a valid duration: {value!r}",
            400,
        ) from None
    if parsed.total_seconds() <= 0:
        raise ApiProblem(MALFORMED, "'repeat_interval' must be greater than zero", 400)
    return value


def parse_secret(field: str, value: Any) -> str:  # noqa: ANN401
    if not isinstance(value, str):
        raise ApiProblem(MALFORMED, f"'{field}' must be a string", 400)
    return value.strip()
