"""Domain entities for pushnotify.

All entities are frozen dataclasses.  Updates go through
:func:`dataclasses.replace` and the store's replace-by-id operations.
"""

from pushnotify.models.notification import Notification
from pushnotify.models.settings import AppSchema, Settings

__all__ = ["AppSchema", "Notification", "Settings"]
