"""Pushover messages API client.

Posts a form-encoded message to ``/1/messages.json``.  Any non-2xx
response or transport failure becomes a :class:`DeliveryError` that
carries the status and (truncated) response body.
"""

from __future__ import annotations

import contextlib
import logging
import urllib.error
import urllib.parse
import urllib.request

from pushnotify.core.errors import DeliveryError
from pushnotify.delivery.base import DeliveryPort

log = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.pushover.net/1/messages.json"

_MAX_BODY_CHARS = 500


class PushoverClient(DeliveryPort):
    """Delivery port backed by the Pushover HTTP API.

    Parameters
    ----------
    token:
        Application API token.
    user:
        User (or group) key of the recipient.
    api_url:
        Messages endpoint, overridable for testing or proxies.
    timeout_seconds:
        Socket timeout for the request.

    """

    def __init__(
        self,
        token: str,
        user: str,
        *,
        api_url: str = DEFAULT_API_URL,
        timeout_seconds: float = 10,
    ) -> None:
        self._token = token
        self._user = user
        self._api_url = api_url
        self._timeout = timeout_seconds

    def send(self, title: str, message: str) -> None:
        data = urllib.parse.urlencode(
            {
                "token": self._token,
                "user": self._user,
                "title": title,
                "message": message,
                "html": "1",
            }
        ).encode("utf-8")
        req = urllib.request.Request(
            self._api_url,
            data=data,
            method="POST",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:
                status = resp.status
                body = resp.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as exc:
            body = ""
            with contextlib.suppress(OSError):
                body = exc.read().decode("utf-8", errors="replace")[:_MAX_BODY_CHARS]
            msg = f"pushover api error: status {exc.code}, body {body}"
            raise DeliveryError(msg, status=exc.code, body=body) from exc
        except urllib.error.URLError as exc:
            msg = f"pushover request failed: {exc.reason}"
            raise DeliveryError(msg) from exc
        except OSError as exc:
            msg = f"pushover request failed: {exc}"
            raise DeliveryError(msg) from exc

        if not 200 <= status < 300:
            body = body[:_MAX_BODY_CHARS]
            msg = f"pushover api error: status {status}, body {body}"
            raise DeliveryError(msg, status=status, body=body)

        log.debug("Pushover accepted message (status=%d)", status)


def pushover_factory(
    api_url: str = DEFAULT_API_URL,
    timeout_seconds: float = 10,
):
    """Return a delivery factory that builds clients from store settings.

    The scheduler calls the factory on every pass so credential edits
    take effect without a restart.
    """

    def _factory(settings) -> PushoverClient:
        return PushoverClient(
            settings.pushover_token,
            settings.pushover_user,
            api_url=api_url,
            timeout_seconds=timeout_seconds,
        )

    return _factory
