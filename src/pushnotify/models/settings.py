"""Application settings and the root persisted aggregate."""

from __future__ import annotations

from dataclasses import dataclass, field

from pushnotify.core.durations import DEFAULT_REPEAT_INTERVAL, DEFAULT_REPEAT_TIMES
from pushnotify.models.notification import Notification


@dataclass(frozen=True)
class Settings:
    """User-editable settings, replaced wholesale on every update."""

    pushover_token: str = ""
    pushover_user: str = ""
    repeat_times: int = DEFAULT_REPEAT_TIMES
    repeat_interval: str = DEFAULT_REPEAT_INTERVAL
    password: str = ""

    @property
    def has_credentials(self) -> bool:
        """True when both delivery credentials are configured."""
        return bool(self.pushover_token) and bool(self.pushover_user)


@dataclass(frozen=True)
class AppSchema:
    """Root document: one :class:`Settings` plus ordered notifications."""

    settings: Settings = field(default_factory=Settings)
    notifications: tuple[Notification, ...] = ()
