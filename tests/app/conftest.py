"""Fixtures for the Flask application tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from pushnotify.app.factory import create_app
from pushnotify.config import PushNotifyConfig
from pushnotify.metrics.collector import MetricsCollector


@pytest.fixture()
def config(tmp_config_file):
    return PushNotifyConfig(config_file=tmp_config_file)


@pytest.fixture()
def engine():
    """Stand-in scheduler: records refreshes, reports itself alive."""
    mock = MagicMock()
    mock.is_running = True
    mock.next_run = None
    return mock


@pytest.fixture()
def metrics():
    return MetricsCollector()


@pytest.fixture()
def app(config, store, engine, metrics):
    application = create_app(config, store, engine, metrics_collector=metrics)
    application.config["TESTING"] = True
    return application


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def container(app):
    return app.extensions["container"]
