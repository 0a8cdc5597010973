"""Notification entity."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pushnotify.core.types import NotificationStatus


@dataclass(frozen=True)
class Notification:
    id: str
    content: str
    scheduled_time: datetime
    status: NotificationStatus = NotificationStatus.PENDING
    sends_count: int = 0
    last_push_time: datetime | None = None
    repeat_times: int = 0
    repeat_interval: str = ""

    @property
    def is_done(self) -> bool:
        return self.status == NotificationStatus.DONE
