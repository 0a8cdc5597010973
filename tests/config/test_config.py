"""Tests for pushnotify.config: loading, env resolution, validation."""

from __future__ import annotations

import json
import logging

import pytest
import yaml

from pushnotify.config import ConfigValidationError, PushNotifyConfig, get_config
from pushnotify.config.pushnotify_config import _resolve_env_vars
from pushnotify.delivery.pushover import DEFAULT_API_URL


def _write(tmp_path, data, name="config.yaml"):
    path = tmp_path / name
    if name.endswith(".json"):
        path.write_text(json.dumps(data), encoding="utf-8")
    else:
        path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


# =========================================================================
# Loading & defaults
# =========================================================================


class TestLoading:
    def test_minimal_config(self, tmp_config_file, minimal_config_data):
        cfg = PushNotifyConfig(config_file=tmp_config_file)

        s = cfg.settings
        assert s.server.bind == "127.0.0.1"
        assert s.server.port == 18080
        assert s.storage.file_path == minimal_config_data["storage"]["file_path"]
        assert s.logging.format == "text"

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        s = PushNotifyConfig(config_file=path).settings

        assert s.server.bind == "0.0.0.0"  # noqa: S104
        assert s.server.port == 8080
        assert s.server.graceful_timeout == 10
        assert s.storage.file_path == "data/notifications.json"
        assert s.scheduler.enabled is True
        assert s.scheduler.failure_retry_seconds == 60
        assert s.scheduler.message_title == "Reminder"
        assert s.pushover.api_url == DEFAULT_API_URL
        assert s.pushover.timeout_seconds == 10
        assert s.logging.level == "INFO"
        assert s.logging.format == "json"

    def test_json_config_file(self, tmp_path):
        path = _write(tmp_path, {"server": {"port": 9000}}, name="config.json")
        assert PushNotifyConfig(config_file=path).settings.server.port == 9000

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigValidationError, match="not found"):
            PushNotifyConfig(config_file=tmp_path / "nope.yaml")

    def test_unparseable_file(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("server: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigValidationError, match="not parseable"):
            PushNotifyConfig(config_file=path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigValidationError, match="mapping"):
            PushNotifyConfig(config_file=path)

    def test_source_recorded(self, tmp_config_file):
        cfg = PushNotifyConfig(config_file=tmp_config_file)
        assert cfg.data["_source"] == str(tmp_config_file)
        assert str(tmp_config_file) in repr(cfg)


# =========================================================================
# Singleton
# =========================================================================


class TestSingleton:
    def test_get_config_before_init(self):
        with pytest.raises(RuntimeError, match="not initialised"):
            get_config()

    def test_get_config_returns_instance(self, tmp_config_file):
        cfg = PushNotifyConfig(config_file=tmp_config_file)
        assert get_config() is cfg

    def test_double_init_rejected(self, tmp_config_file):
        PushNotifyConfig(config_file=tmp_config_file)
        with pytest.raises(RuntimeError, match="already initialised"):
            PushNotifyConfig(config_file=tmp_config_file)

    def test_reset_allows_reinit(self, tmp_config_file):
        PushNotifyConfig(config_file=tmp_config_file)
        PushNotifyConfig.reset()
        PushNotifyConfig(config_file=tmp_config_file)

    def test_failed_load_does_not_register(self, tmp_path):
        with pytest.raises(ConfigValidationError):
            PushNotifyConfig(config_file=tmp_path / "missing.yaml")
        with pytest.raises(RuntimeError):
            get_config()


# =========================================================================
# Dotted access
# =========================================================================


class TestGet:
    def test_nested_value(self, tmp_config_file):
        cfg = PushNotifyConfig(config_file=tmp_config_file)
        assert cfg.get("server.port") == 18080

    def test_missing_returns_default(self, tmp_config_file):
        cfg = PushNotifyConfig(config_file=tmp_config_file)
        assert cfg.get("pushover.api_url", default="x") == "x"
        assert cfg.get("server.port.nested", default=1) == 1


# =========================================================================
# Environment variables
# =========================================================================


class TestEnvVars:
    def test_variable_substituted(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PN_STORE", "/var/lib/pn/store.json")
        path = _write(tmp_path, {"storage": {"file_path": "${PN_STORE}"}})

        cfg = PushNotifyConfig(config_file=path)

        assert cfg.settings.storage.file_path == "/var/lib/pn/store.json"

    def test_default_used_when_unset(self, tmp_path, monkeypatch):
        monkeypatch.delenv("PN_LEVEL", raising=False)
        path = _write(tmp_path, {"logging": {"level": "${PN_LEVEL:-WARNING}"}})

        assert PushNotifyConfig(config_file=path).settings.logging.level == "WARNING"

    def test_unset_without_default(self, tmp_path, monkeypatch):
        monkeypatch.delenv("PN_MISSING", raising=False)
        path = _write(tmp_path, {"storage": {"file_path": "${PN_MISSING}"}})

        with pytest.raises(ConfigValidationError, match="storage.file_path"):
            PushNotifyConfig(config_file=path)

    def test_resolved_before_schema_check(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PN_LEVEL", "LOUD")
        path = _write(tmp_path, {"logging": {"level": "${PN_LEVEL}"}})

        with pytest.raises(ConfigValidationError, match="logging.level"):
            PushNotifyConfig(config_file=path)

    def test_lists_resolved(self, monkeypatch):
        monkeypatch.setenv("PN_TITLE", "Ping")
        data = {"scheduler": {"titles": ["${PN_TITLE}", "${PN_OTHER:-Pong}"]}}

        _resolve_env_vars(data)

        assert data == {"scheduler": {"titles": ["Ping", "Pong"]}}


# =========================================================================
# Schema validation
# =========================================================================


class TestSchema:
    def test_unknown_section(self, tmp_path):
        path = _write(tmp_path, {"database": {"host": "x"}})
        with pytest.raises(ConfigValidationError, match="database"):
            PushNotifyConfig(config_file=path)

    def test_hooks_section_not_accepted(self, tmp_path):
        path = _write(tmp_path, {"hooks": {"registered": []}})
        with pytest.raises(ConfigValidationError, match="hooks"):
            PushNotifyConfig(config_file=path)

    def test_unknown_key_in_section(self, tmp_path):
        path = _write(tmp_path, {"server": {"workers": 4}})
        with pytest.raises(ConfigValidationError, match="workers"):
            PushNotifyConfig(config_file=path)

    def test_wrong_type(self, tmp_path):
        path = _write(tmp_path, {"server": {"port": "eighty"}})
        with pytest.raises(ConfigValidationError, match="server.port"):
            PushNotifyConfig(config_file=path)

    def test_all_errors_collected(self, tmp_path):
        path = _write(
            tmp_path,
            {"server": {"port": 0}, "scheduler": {"failure_retry_seconds": -1}},
        )
        with pytest.raises(ConfigValidationError) as exc_info:
            PushNotifyConfig(config_file=path)
        assert len(exc_info.value.errors) == 2


# =========================================================================
# Cross-field checks
# =========================================================================


class TestAdditionalChecks:
    def test_directory_store_path(self, tmp_path):
        path = _write(tmp_path, {"storage": {"file_path": "data/"}})
        with pytest.raises(ConfigValidationError, match="must name a file"):
            PushNotifyConfig(config_file=path)

    def test_non_http_api_url(self, tmp_path):
        path = _write(tmp_path, {"pushover": {"api_url": "ftp://example.test"}})
        with pytest.raises(ConfigValidationError, match="http"):
            PushNotifyConfig(config_file=path)

    def test_plain_http_warns(self, tmp_path, caplog):
        path = _write(tmp_path, {"pushover": {"api_url": "http://localhost:9000/msg"}})
        with caplog.at_level(logging.WARNING, logger="pushnotify.config"):
            cfg = PushNotifyConfig(config_file=path)
        assert cfg.settings.pushover.api_url == "http://localhost:9000/msg"
        assert "plain http" in caplog.text

    def test_zero_retry_warns(self, tmp_path, caplog):
        path = _write(tmp_path, {"scheduler": {"failure_retry_seconds": 0}})
        with caplog.at_level(logging.WARNING, logger="pushnotify.config"):
            PushNotifyConfig(config_file=path)
        assert "failure_retry_seconds is 0" in caplog.text

    def test_disabled_scheduler_warns(self, tmp_path, caplog):
        path = _write(tmp_path, {"scheduler": {"enabled": False}})
        with caplog.at_level(logging.WARNING, logger="pushnotify.config"):
            cfg = PushNotifyConfig(config_file=path)
        assert cfg.settings.scheduler.enabled is False
        assert "never sent" in caplog.text

