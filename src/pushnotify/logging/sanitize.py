"""Credential redaction for log output and API responses.

The store's settings record carries the Pushover token, the user key
and the UI password.  None of them may appear in logs; API reads show
only whether a value is set plus its last few characters.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pushnotify.models import Settings

_SECRET_FIELDS = frozenset({"pushover_token", "pushover_user", "password", "token", "user"})

_VISIBLE_SUFFIX = 4


def mask_secret(value: str) -> str:
    """Return ``""`` for an empty secret, else a masked rendition.

    Long values keep their last four characters so operators can tell
    two keys apart.
    """
    if not value:
        return ""
    if len(value) <= _VISIBLE_SUFFIX * 2:
        return "[REDACTED]"
    return f"[REDACTED]{value[-_VISIBLE_SUFFIX:]}"


def sanitize_settings(settings: Settings) -> dict:
    """Return a JSON-ready dict of *settings* with secrets masked."""
    return {
        "pushover_token": mask_secret(settings.pushover_token),
        "pushover_user": mask_secret(settings.pushover_user),
        "repeat_times": settings.repeat_times,
        "repeat_interval": settings.repeat_interval,
        "password_set": bool(settings.password),
        "credentials_configured": settings.has_credentials,
    }


def sanitize_for_logs(data: Any) -> Any:  # noqa: ANN401
    """Recursively mask credential fields in *data*."""
    if isinstance(data, dict):
        return {
            k: mask_secret(v) if k in _SECRET_FIELDS and isinstance(v, str) else sanitize_for_logs(v)
            for k, v in data.items()
        }
    if isinstance(data, (list, tuple)):
        return type(data)(sanitize_for_logs(item) for item in data)
    return data
