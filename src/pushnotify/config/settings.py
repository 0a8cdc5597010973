"""Typed, frozen dataclasses for every configuration section.

This module is the **single source of truth** for default values.
JSON Schema defaults exist only for documentation; these builders
are what the application actually reads.

Access pattern::

    from pushnotify.config import get_config

    storage = get_config().settings.storage
    print(storage.file_path)
"""

from __future__ import annotations

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ServerSettings:
    """HTTP server configuration (bind address, port, shutdown grace)."""

    bind: str
    port: int
    graceful_timeout: int


def _build_server(data: dict | None) -> ServerSettings:
    d = data or {}
    return ServerSettings(
        bind=d.get("bind", "0.0.0.0"),  # noqa: S104
        port=d.get("port", 8080),
        graceful_timeout=d.get("graceful_timeout", 10),
    )


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StorageSettings:
    """Location of the JSON store file."""

    file_path: str


def _build_storage(data: dict | None) -> StorageSettings:
    d = data or {}
    return StorageSettings(
        file_path=d.get("file_path", "data/notifications.json"),
    )


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SchedulerSettings:
    """Scheduling engine behaviour."""

    enabled: bool
    failure_retry_seconds: int
    message_title: str


def _build_scheduler(data: dict | None) -> SchedulerSettings:
    d = data or {}
    return SchedulerSettings(
        enabled=d.get("enabled", True),
        failure_retry_seconds=d.get("failure_retry_seconds", 60),
        message_title=d.get("message_title", "Reminder"),
    )


# ---------------------------------------------------------------------------
# Pushover
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PushoverSettings:
    """Pushover transport settings (credentials live in the store)."""

    api_url: str
    timeout_seconds: int


def _build_pushover(data: dict | None) -> PushoverSettings:
    from pushnotify.delivery.pushover import DEFAULT_API_URL  # noqa: PLC0415

    d = data or {}
    return PushoverSettings(
        api_url=d.get("api_url", DEFAULT_API_URL),
        timeout_seconds=d.get("timeout_seconds", 10),
    )


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoggingSettings:
    """Application logging configuration (level, format)."""

    level: str
    format: str


def _build_logging(data: dict | None) -> LoggingSettings:
    d = data or {}
    return LoggingSettings(
        level=d.get("level", "INFO"),
        format=d.get("format", "json"),
    )


# ---------------------------------------------------------------------------
# Root settings aggregate
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PushNotifySettings:
    server: ServerSettings
    storage: StorageSettings
    scheduler: SchedulerSettings
    pushover: PushoverSettings
    logging: LoggingSettings


def build_settings(data: dict) -> PushNotifySettings:
    """Build the full typed settings tree from raw config data.

    Called once during :class:`PushNotifyConfig` initialization after
    schema validation and environment-variable resolution.
    """
    return PushNotifySettings(
        server=_build_server(data.get("server")),
        storage=_build_storage(data.get("storage")),
        scheduler=_build_scheduler(data.get("scheduler")),
        pushover=_build_pushover(data.get("pushover")),
        logging=_build_logging(data.get("logging")),
    )
