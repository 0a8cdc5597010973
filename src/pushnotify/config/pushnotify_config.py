"""pushnotify configuration loader.

Lifecycle::

    # 1. CLI creates the singleton (once, at startup)
    PushNotifyConfig(config_file="/etc/pushnotify/config.yaml")

    # 2. Any module retrieves it afterwards
    from pushnotify.config import get_config
    cfg = get_config()
    cfg.settings.server.port  # typed access

    # 3. Dynamic access
    cfg.get("pushover.api_url", default="https://api.pushover.net/1/messages.json")
"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any

import jsonschema
import yaml

from pushnotify.config.settings import PushNotifySettings, build_settings

_SCHEMA_PATH = Path(__file__).parent / "schema.json"

_ENV_RE = re.compile(
    r"^\$\{([^}:]+?)(?::-(.*))?\}$",
    re.DOTALL,
)

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Module-level singleton reference
# ---------------------------------------------------------------------------
_instance: PushNotifyConfig | None = None


def get_config() -> PushNotifyConfig:
    """Return the initialised configuration singleton.

    Raises :class:`RuntimeError` if :class:`PushNotifyConfig` has not
    been created yet (i.e. the CLI entry point has not run).
    """
    if _instance is None:
        msg = (
            "Configuration not initialised. "
            "PushNotifyConfig must be created with config_file= before calling get_config()."
        )
        raise RuntimeError(msg)
    return _instance


# ---------------------------------------------------------------------------
# Validation error collector
# ---------------------------------------------------------------------------


class ConfigValidationError(Exception):
    """Raised when loading or validation finds one or more problems."""

    def __init__(self, errors: list[str]) -> None:
        """Store *errors* and build a human-readable message."""
        self.errors = errors
        body = "\n".join(f"  - {e}" for e in errors)
        super().__init__(f"Configuration validation failed:\n{body}")


# ---------------------------------------------------------------------------
# Environment variable resolution
# ---------------------------------------------------------------------------


def _resolve_value(value: str, path: str) -> str:
    """Replace ``${VAR}`` or ``${VAR:-default}`` with env var value."""
    match = _ENV_RE.match(value)
    if match is None:
        return value
    var_name = match.group(1)
    fallback = match.group(2)
    resolved = os.environ.get(var_name)
    if resolved is not None:
        return resolved
    if fallback is not None:
        return fallback
    raise ConfigValidationError(
        [
            f"Environment variable '${{{var_name}}}' referenced "
            f"at '{path}' is not set and has no default",
        ],
    )


def _resolve_env_vars(
    data: Any,  # noqa: ANN401
    path: str = "",
) -> None:
    """Walk *data* in-place and resolve ``${VAR}``/``${VAR:-default}`` strings."""
    if isinstance(data, dict):
        for key in data:
            child_path = f"{path}.{key}" if path else key
            if isinstance(data[key], str):
                data[key] = _resolve_value(data[key], child_path)
            elif isinstance(data[key], (dict, list)):
                _resolve_env_vars(data[key], child_path)
    elif isinstance(data, list):
        for idx, item in enumerate(data):
            child_path = f"{path}[{idx}]"
            if isinstance(item, str):
                data[idx] = _resolve_value(item, child_path)
            elif isinstance(item, (dict, list)):
                _resolve_env_vars(item, child_path)


def _read_file(path: Path) -> dict:
    """Parse a YAML or JSON config file into a dict."""
    try:
        with path.open(encoding="utf-8") as f:
            if path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except FileNotFoundError:
        raise ConfigValidationError([f"Config file not found: {path}"]) from None
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigValidationError([f"Config file {path} is not parseable: {exc}"]) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigValidationError(
            [f"Config file {path} must contain a mapping at the top level"],
        )
    return data


# ---------------------------------------------------------------------------
# Config class
# ---------------------------------------------------------------------------


class PushNotifyConfig:
    """Central configuration for the pushnotify server.

    The JSON schema is bundled at ``config/schema.json``; users supply
    only ``config_file``.  Construction loads the file, resolves
    environment references, validates against the schema, runs
    :meth:`additional_checks` and registers the singleton.

    After construction the typed settings tree is available at
    :pyattr:`settings` and the raw dict via :pyattr:`data` /
    :pymeth:`get`.
    """

    def __init__(self, *, config_file: str | Path) -> None:
        global _instance  # noqa: PLW0603

        if _instance is not None:
            msg = "PushNotifyConfig is already initialised; call reset() first"
            raise RuntimeError(msg)

        self._path = Path(config_file)
        self._data: dict = {}
        self._load()
        self._validate()
        self.additional_checks()

        try:
            self._settings: PushNotifySettings = build_settings(self._data)
        except (KeyError, ValueError) as exc:
            raise ConfigValidationError([str(exc)]) from exc
        _instance = self

    # -- lifecycle ----------------------------------------------------------

    def _load(self) -> None:
        """Load config file then resolve ``${VAR}`` env-var references.

        Runs env-var resolution **before** schema validation so that
        substituted values (e.g. ``${LOG_LEVEL:-INFO}``) are checked
        against enum constraints in the schema.
        """
        self._data = _read_file(self._path)
        _resolve_env_vars(self._data)
        self._data["_source"] = str(self._path)

    def _validate(self) -> None:
        with _SCHEMA_PATH.open(encoding="utf-8") as f:
            schema = json.load(f)
        validator = jsonschema.Draft7Validator(schema)
        errors = [
            f"{'.'.join(str(p) for p in err.absolute_path) or '<root>'}: {err.message}"
            for err in sorted(validator.iter_errors(self._data), key=lambda e: list(e.path))
        ]
        if errors:
            raise ConfigValidationError(errors)

    # -- typed access -------------------------------------------------------

    @property
    def settings(self) -> PushNotifySettings:
        """Fully-typed, frozen settings tree."""
        return self._settings

    @property
    def data(self) -> dict:
        """Raw (env-resolved) configuration dict."""
        return self._data

    def get(self, dotted_path: str, default: Any = None) -> Any:  # noqa: ANN401
        """Look up a value by ``section.key`` path."""
        node: Any = self._data
        for part in dotted_path.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    # -- cross-field validation ---------------------------------------------

    def additional_checks(self) -> None:
        """Semantic & cross-field validation.

        Called after schema validation passes.  Problems that make the
        server unusable are collected as errors; questionable but
        workable values are logged as warnings.
        """
        errors: list[str] = []
        warnings: list[str] = []

        storage = self._data.get("storage") or {}
        scheduler = self._data.get("scheduler") or {}
        pushover = self._data.get("pushover") or {}

        # -- storage --
        file_path = storage.get("file_path", "data/notifications.json")
        if file_path.endswith(("/", os.sep)):
            errors.append(
                f"storage.file_path must name a file, not a directory (got '{file_path}')",
            )

        # -- scheduler --
        retry = scheduler.get("failure_retry_seconds", 60)
        if retry == 0:
            warnings.append(
                "scheduler.failure_retry_seconds is 0: failed deliveries "
                "are retried without any delay",
            )
        if not scheduler.get("enabled", True):
            warnings.append(
                "scheduler.enabled is false: notifications will be stored but never sent",
            )

        # -- pushover --
        api_url = pushover.get("api_url", "")
        if api_url and not api_url.startswith(("http://", "https://")):
            errors.append(
                f"pushover.api_url must be an http(s) URL (got '{api_url}')",
            )
        elif api_url.startswith("http://"):
            warnings.append(
                "pushover.api_url uses plain http: credentials are sent unencrypted",
            )

        for w in warnings:
            log.warning("Config warning: %s", w)

        if errors:
            raise ConfigValidationError(errors)

    # -- helpers ------------------------------------------------------------

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton -- testing only."""
        global _instance  # noqa: PLW0603
        _instance = None

    def __repr__(self) -> str:
        """Return a developer-friendly representation."""
        source = self._data.get("_source", "?")
        return f"<PushNotifyConfig config_file={source}>"
