"""Configuration subsystem for pushnotify.

Public API::

    from pushnotify.config import get_config, PushNotifyConfig

    # At startup (CLI only):
    PushNotifyConfig(config_file="config.yaml")

    # Everywhere else:
    cfg  = get_config()
    port = cfg.settings.server.port       # typed access
    url  = cfg.get("pushover.api_url")    # dynamic dot-path
"""

from pushnotify.config.pushnotify_config import (
    ConfigValidationError,
    PushNotifyConfig,
    get_config,
)
from pushnotify.config.settings import (
    LoggingSettings,
    PushNotifySettings,
    PushoverSettings,
    SchedulerSettings,
    ServerSettings,
    StorageSettings,
)

__all__ = [
    "ConfigValidationError",
    "LoggingSettings",
    "PushNotifyConfig",
    "PushNotifySettings",
    "PushoverSettings",
    "SchedulerSettings",
    "ServerSettings",
    "StorageSettings",
    "get_config",
]
