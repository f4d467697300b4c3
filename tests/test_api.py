"""
Tests for the watchdog HTTP surface.
"""

import json
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from storeguard.api.main import create_app
from storeguard.core.watchdog import WatchdogOptions, configure


@pytest.fixture
def handle(store, mixed_registry):
    handle = configure(mixed_registry, WatchdogOptions(enabled=False), store=store)
    yield handle
    handle.stop()


@pytest.fixture
def client(handle):
    with TestClient(create_app(handle)) as client:
        yield client


class TestHealthEndpoints:
    """Liveness and watchdog status."""

    def test_health_before_any_sweep(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["db_health"] is True
        assert data["watchdog_running"] is False
        assert data["last_check_healthy"] is None

    def test_health_reports_failed_sweep(self, client, store):
        store.set_item("users", "{bad")
        with patch("storeguard.core.repair.safe_write", return_value=False):
            client.post("/watchdog/check")

        data = client.get("/health").json()

        assert data["status"] == "unhealthy"
        assert data["last_check_healthy"] is False

    def test_watchdog_status(self, client):
        response = client.get("/watchdog/status")

        assert response.status_code == 200
        data = response.json()
        assert data["enabled"] is False
        assert data["running"] is False
        assert data["monitored_keys"] == ["users", "settings", "notes"]
        assert data["last_result"] is None


class TestWatchdogActions:
    """Manual sweep and force repair."""

    def test_check_repairs(self, client, store):
        store.set_item("users", "42")

        response = client.post("/watchdog/check")

        assert response.status_code == 200
        data = response.json()
        assert data["is_healthy"] is True
        assert data["repaired_keys"] == ["users"]
        assert data["scope"] == "full"
        assert json.loads(store.get_item("users")) == []

    def test_repair_all(self, client, store):
        store.set_item("settings", '{"theme": "dark"}')

        response = client.post("/watchdog/repair-all")

        assert response.status_code == 200
        data = response.json()
        assert data["scope"] == "force"
        assert data["repaired_keys"] == ["users", "settings", "notes"]
        assert json.loads(store.get_item("settings")) == {"theme": "light"}

    def test_status_includes_last_result(self, client):
        client.post("/watchdog/check")
        data = client.get("/watchdog/status").json()
        assert data["last_result"]["scope"] == "full"


class TestRecordEndpoints:
    """Validated record access."""

    def test_list_records_reports_states(self, client, store):
        store.set_item("users", "[]")
        store.set_item("settings", "{bad")

        response = client.get("/records")

        assert response.status_code == 200
        states = {r["key"]: r["state"] for r in response.json()["records"]}
        assert states == {"users": "valid", "settings": "corrupt", "notes": "missing_optional"}

    def test_get_record_falls_back_to_default(self, client, store):
        store.set_item("settings", "[1, 2]")

        response = client.get("/records/settings")

        assert response.status_code == 200
        assert response.json() == {"key": "settings", "value": {"theme": "light"}}
        assert store.get_item("settings") == "[1, 2]"

    def test_get_unmonitored_record(self, client):
        assert client.get("/records/unknown").status_code == 404

    def test_put_record(self, client, store):
        response = client.put("/records/notes", json={"value": ["buy milk"]})

        assert response.status_code == 200
        assert json.loads(store.get_item("notes")) == ["buy milk"]

    def test_put_rejects_invalid_value(self, client, store):
        response = client.put("/records/notes", json={"value": {"not": "a list"}})

        assert response.status_code == 422
        assert store.get_item("notes") is None

    def test_put_unmonitored_record(self, client):
        assert client.put("/records/unknown", json={"value": []}).status_code == 404

    def test_put_store_failure(self, client):
        with patch("storeguard.api.main.safe_write", return_value=False):
            response = client.put("/records/notes", json={"value": []})
        assert response.status_code == 507


class TestUnconfigured:
    """Requests with no watchdog attached."""

    def test_missing_watchdog_returns_503(self, handle):
        app = create_app(handle)
        # No lifespan run, so app.state.watchdog is never set
        client = TestClient(app)
        assert client.get("/health").status_code == 503
