"""Logging subsystem for pushnotify.

Public API::

    from pushnotify.logging import configure_logging

    configure_logging(settings.logging)
"""

from pushnotify.logging.setup import configure_logging

__all__ = ["configure_logging"]
