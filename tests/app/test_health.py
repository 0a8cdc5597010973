"""Tests for the infrastructure endpoints and request middleware."""

from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import patch

from pushnotify import __version__
from pushnotify.app.factory import create_app
from pushnotify.app.shutdown import ShutdownCoordinator


class TestLivez:
    def test_alive(self, client):
        resp = client.get("/livez")
        assert resp.status_code == 200
        assert resp.get_json() == {"alive": True, "version": __version__}


class TestHealthz:
    def test_ok(self, client, store, make_notification):
        store.add_notification(make_notification("a"))

        resp = client.get("/healthz")

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["status"] == "ok"
        assert data["checks"] == {"store": "readable", "scheduler": "alive"}
        assert data["notifications"] == 1
        assert data["credentials_configured"] is False
        assert data["next_run"] is None

    def test_next_run_reported(self, client, engine):
        engine.next_run = datetime(2024, 5, 1, 12, 30, tzinfo=UTC)

        data = client.get("/healthz").get_json()

        assert data["next_run"] == "2024-05-01T12:30:00+00:00"

    def test_dead_scheduler_degraded(self, client, engine):
        engine.is_running = False

        resp = client.get("/healthz")

        assert resp.status_code == 503
        assert resp.get_json()["checks"]["scheduler"] == "dead"

    def test_unreadable_store_degraded(self, client, store):
        with patch.object(store, "snapshot", side_effect=OSError("gone")):
            resp = client.get("/healthz")

        assert resp.status_code == 503
        assert resp.get_json()["checks"]["store"] == "unreadable"

    def test_without_store(self, config):
        app = create_app(config)

        data = app.test_client().get("/healthz").get_json()

        assert data["status"] == "ok"
        assert data["checks"] == {}

    def test_shutdown_reported(self, config, store, engine):
        coordinator = ShutdownCoordinator()
        app = create_app(
            config,
            store,
            engine,
            shutdown_coordinator=coordinator,
        )

        data = app.test_client().get("/healthz").get_json()

        assert data["shutting_down"] is False


class TestMetrics:
    def test_requests_counted(self, client, metrics):
        client.get("/livez")
        client.get("/api/notifications/missing")

        assert metrics.get("pushnotify_http_requests_total", {"method": "GET", "status": "200"}) == 1
        assert metrics.get("pushnotify_http_requests_total", {"method": "GET", "status": "404"}) == 1

    def test_prometheus_export(self, client, metrics):
        metrics.increment("pushnotify_deliveries_total", labels={"outcome": "success"})

        resp = client.get("/metrics")

        assert resp.status_code == 200
        assert resp.content_type.startswith("text/plain")
        text = resp.get_data(as_text=True)
        assert "pushnotify_uptime_seconds" in text
        assert 'pushnotify_deliveries_total{outcome="success"} 1' in text

    def test_no_collector(self, config, store):
        app = create_app(config, store)
        resp = app.test_client().get("/metrics")
        assert resp.get_data(as_text=True) == "# No metrics available\n"


class TestMiddleware:
    def test_request_id_generated(self, client):
        resp = client.get("/livez")
        assert len(resp.headers["X-Request-ID"]) == 32
        assert resp.headers["X-Content-Type-Options"] == "nosniff"

    def test_request_id_passed_through(self, client):
        resp = client.get("/livez", headers={"X-Request-ID": "abc-123"})
        assert resp.headers["X-Request-ID"] == "abc-123"


class TestErrorHandlers:
    def test_unknown_route_is_problem(self, client):
        resp = client.get("/nowhere")

        assert resp.status_code == 404
        assert resp.content_type == "application/problem+json"
        body = resp.get_json()
        assert body["type"] == "about:blank"
        assert body["title"] == "Not Found"

    def test_method_not_allowed(self, client):
        resp = client.patch("/api/settings", json={})
        assert resp.status_code == 405

    def test_persistence_error_is_500(self, client, store):
        from pushnotify.core.errors import PersistenceError

        with patch.object(store, "save", side_effect=PersistenceError("disk full")):
            resp = client.put("/api/settings", json={"repeat_times": 2})

        assert resp.status_code == 500
        assert resp.get_json()["type"] == "urn:pushnotify:error:storage"

    def test_unexpected_error_is_500(self, client, store):
        with patch.object(store, "get_settings", side_effect=RuntimeError("bug")):
            resp = client.get("/api/settings")

        assert resp.status_code == 500
        body = resp.get_json()
        assert body["type"] == "urn:pushnotify:error:serverInternal"
        assert "bug" not in body["detail"]
