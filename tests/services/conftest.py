"""Shared fixtures for scheduler tests."""

from __future__ import annotations

import pytest

from pushnotify.core.errors import DeliveryError
from pushnotify.delivery.base import DeliveryPort
from pushnotify.models import Settings


class FakeDelivery(DeliveryPort):
    """Records every send; fails while ``fail`` is set."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []
        self.fail = False

    def send(self, title: str, message: str) -> None:
        if self.fail:
            msg = "pushover api error: status 500, body oops"
            raise DeliveryError(msg, status=500, body="oops")
        self.sent.append((title, message))


@pytest.fixture()
def delivery() -> FakeDelivery:
    return FakeDelivery()


@pytest.fixture()
def credentialed_store(store):
    store.update_settings(Settings(pushover_token="tok", pushover_user="usr"))
    return store
