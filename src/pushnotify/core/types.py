"""Enumerated types for the pushnotify data model.

Enums inherit from :class:`enum.StrEnum` so their ``.value`` is the
plain string written to the JSON store.
"""

from __future__ import annotations

from enum import StrEnum


class NotificationStatus(StrEnum):
    PENDING = "Pending"
    DONE = "Done"
