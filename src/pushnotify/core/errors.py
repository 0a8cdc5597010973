"""Domain exceptions shared by the store, the engine and the API layer.

- :class:`NotFoundError`: id-keyed lookup found nothing
- :class:`CorruptStoreError`: backing file unparseable, no legacy fallback
- :class:`PersistenceError`: reading or writing the backing file failed
- :class:`DeliveryError`: the push transport rejected or lost a message
"""

from __future__ import annotations


class PushNotifyError(Exception):
    """Base class for all pushnotify domain errors."""


class NotFoundError(PushNotifyError):
    """Raised when a notification id is not present in the store."""

    def __init__(self, notification_id: str) -> None:
        self.notification_id = notification_id
        super().__init__(f"notification not found: {notification_id}")


class CorruptStoreError(PushNotifyError):
    """Raised when the store file cannot be parsed in any known schema."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"store file {path} is corrupt: {reason}")


class PersistenceError(PushNotifyError):
    """Raised when the store file cannot be read or written."""


class DeliveryError(PushNotifyError):
    """Raised by a delivery port when a message was not accepted.

    Parameters
    ----------
    message:
        Human-readable description.
    status:
        HTTP status code of the transport response, if one was received.
    body:
        Raw response body, kept for error context.

    """

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        body: str | None = None,
    ) -> None:
        self.status = status
        self.body = body
        super().__init__(message)
