"""Push delivery transports.

Public API::

    from pushnotify.delivery import DeliveryPort, PushoverClient
"""

from pushnotify.delivery.base import DeliveryPort
from pushnotify.delivery.pushover import PushoverClient

__all__ = ["DeliveryPort", "PushoverClient"]
