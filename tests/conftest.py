"""Root conftest for the pushnotify test suite."""

from __future__ import annotations

import sys
from datetime import UTC, datetime
from pathlib import Path

import pytest
import yaml

# ---------------------------------------------------------------------------
# Make ``src/`` importable without installing the package
# ---------------------------------------------------------------------------
_SRC = str(Path(__file__).resolve().parent.parent / "src")
if _SRC not in sys.path:
    sys.path.insert(0, _SRC)


# ---------------------------------------------------------------------------
# Shared data
# ---------------------------------------------------------------------------

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture()
def now() -> datetime:
    """A fixed, timezone-aware "current time"."""
    return FIXED_NOW


@pytest.fixture()
def minimal_config_data(tmp_path: Path) -> dict:
    """Return a small but complete config dict pointing into *tmp_path*."""
    return {
        "server": {"bind": "127.0.0.1", "port": 18080},
        "storage": {"file_path": str(tmp_path / "data" / "notifications.json")},
        "logging": {"level": "INFO", "format": "text"},
    }


@pytest.fixture()
def tmp_config_file(tmp_path: Path, minimal_config_data: dict) -> Path:
    """Write *minimal_config_data* to a temp YAML file and return its path."""
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        yaml.safe_dump(minimal_config_data, default_flow_style=False, sort_keys=False),
        encoding="utf-8",
    )
    return cfg


@pytest.fixture()
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "notifications.json"


# ---------------------------------------------------------------------------
# Config singleton cleanup: autouse so every test gets a fresh slate
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def fresh_config():
    """Reset the PushNotifyConfig singleton before and after every test."""
    from pushnotify.config.pushnotify_config import PushNotifyConfig

    PushNotifyConfig.reset()
    yield
    PushNotifyConfig.reset()


# ---------------------------------------------------------------------------
# Model and store factories
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_notification():
    """Return a factory building a Pending notification with overrides."""
    from pushnotify.models import Notification

    def _make(notification_id: str = "n1", **overrides):
        fields = {
            "id": notification_id,
            "content": f"reminder {notification_id}",
            "scheduled_time": datetime(2024, 5, 1, 9, 0, tzinfo=UTC),
            "repeat_times": 3,
            "repeat_interval": "30m",
        }
        fields.update(overrides)
        return Notification(**fields)

    return _make


@pytest.fixture()
def store(store_path):
    """A loaded, empty JsonStore backed by a temp file."""
    from pushnotify.storage.json_store import JsonStore

    s = JsonStore(store_path)
    s.load()
    return s


# ---------------------------------------------------------------------------
# Logger state: configure_logging() detaches "pushnotify" from the root
# logger, which would hide records from caplog in later tests.
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def restore_pushnotify_logger():
    import logging

    saved = {}
    for name in ("pushnotify", "pushnotify.access", "werkzeug"):
        logger = logging.getLogger(name)
        saved[name] = (list(logger.handlers), logger.propagate, logger.level)
    yield
    for name, (handlers, propagate, level) in saved.items():
        logger = logging.getLogger(name)
        logger.handlers[:] = handlers
        logger.propagate = propagate
        logger.setLevel(level)
