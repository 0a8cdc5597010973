"""File-backed persistence for settings and notifications.

Public API::

    from pushnotify.storage import JsonStore

    store = JsonStore("data/notifications.json")
    store.load()
"""

from pushnotify.storage.json_store import JsonStore

__all__ = ["JsonStore"]
