"""Abstract base class for delivery transports.

A transport has one job: try to deliver a titled message and report
the outcome.  Success is a normal return; any failure raises
:class:`~pushnotify.core.errors.DeliveryError`.  The scheduler treats
every exception the same way, whatever its cause.
"""

from __future__ import annotations

import abc


class DeliveryPort(abc.ABC):
    """Base class for push delivery transports."""

    @abc.abstractmethod
    def send(self, title: str, message: str) -> None:
        """Deliver *message* under *title*.

        Raises
        ------
        DeliveryError
            The message was not accepted (network, authentication,
            rate limit, ...).

        """
