"""
Tests for reacting to writes made by other contexts.
"""

import json
from unittest.mock import MagicMock

import pytest

from storeguard.core.health import HealthChecker
from storeguard.core.listener import TASK_NAME, CrossContextListener
from storeguard.core.repair import REASON_EXTERNAL, RepairEngine
from storeguard.core.reporter import Reporter
from storeguard.core.scheduler import Scheduler
from storeguard.core.store import KVStore, StoreError


@pytest.fixture
def on_repair():
    return MagicMock()


@pytest.fixture
def listener(store, other_store, mixed_registry, on_repair):
    """Listener on tab_a; other_store plays the second tab."""
    reporter = Reporter(on_repair=on_repair)
    engine = RepairEngine(store, mixed_registry, reporter)
    checker = HealthChecker(store, mixed_registry, engine, reporter)
    listener = CrossContextListener(store, mixed_registry, checker, Scheduler(), poll_interval_sec=0.25)
    listener.attach()
    return listener


class TestCrossContextListener:
    """Change notifications from other contexts."""

    def test_external_corruption_repaired(self, listener, store, other_store, on_repair):
        other_store.set_item("users", "{not json")

        handled = listener.poll()

        assert handled == ["users"]
        assert json.loads(store.get_item("users")) == []
        on_repair.assert_called_once_with("users", REASON_EXTERNAL)

    def test_only_changed_key_checked(self, listener, store, other_store):
        """A notification for one key never triggers a full sweep."""
        other_store.set_item("settings", "{bad")
        other_store.set_item("notes", "42")
        listener.poll()

        other_store.set_item("users", "{bad")
        store.poll_changes()  # discard so the listener never sees it

        assert store.get_item("users") == "{bad"
        result = listener.checker.reporter.get_health_status()
        assert result.scope == "single"
        assert result.checked_keys == ("notes",)

    def test_external_deletion_of_required_key(self, listener, store, other_store):
        other_store.set_item("users", "[]")
        listener.poll()

        other_store.remove_item("users")
        assert listener.poll() == ["users"]
        assert json.loads(store.get_item("users")) == []

    def test_external_deletion_of_optional_key_tolerated(self, listener, store, other_store, on_repair):
        """An absent optional record is a valid state, even after another context deletes it."""
        other_store.set_item("notes", '["keep"]')
        listener.poll()

        other_store.remove_item("notes")

        assert listener.poll() == ["notes"]
        assert store.get_item("notes") is None
        on_repair.assert_not_called()

    def test_valid_external_write_kept(self, listener, store, other_store, on_repair):
        other_store.set_item("users", '[{"id": "7"}]')

        assert listener.poll() == ["users"]
        assert store.get_item("users") == '[{"id": "7"}]'
        on_repair.assert_not_called()

    def test_unmonitored_key_ignored(self, listener, other_store):
        other_store.set_item("scratch", "{bad")

        assert listener.poll() == []
        assert listener.checker.reporter.get_health_status() is None

    def test_own_writes_ignored(self, listener, store):
        store.set_item("users", "{bad")
        assert listener.poll() == []
        assert store.get_item("users") == "{bad"

    def test_clear_left_to_next_sweep(self, listener, store, other_store):
        other_store.set_item("users", "[]")
        listener.poll()

        other_store.clear()

        assert listener.poll() == []
        assert store.get_item("users") is None

    def test_attach_skips_earlier_changes(self, db_path, mixed_registry):
        writer = KVStore(db_path, context_id="writer", quota_bytes=0)
        writer.set_item("users", "{bad")

        store = KVStore(db_path, context_id="late", quota_bytes=0)
        writer.set_item("notes", "{bad")
        reporter = Reporter()
        engine = RepairEngine(store, mixed_registry, reporter)
        checker = HealthChecker(store, mixed_registry, engine, reporter)
        listener = CrossContextListener(store, mixed_registry, checker, Scheduler(), poll_interval_sec=0.25)

        listener.attach()

        assert listener.poll() == []


class TestListenerLifecycle:
    """Attach/detach bookkeeping and store failures."""

    def test_attach_registers_poll_task(self, listener):
        assert listener.attached is True
        assert TASK_NAME in listener.scheduler.list_tasks()

    def test_detach_unregisters(self, listener, other_store):
        listener.detach()
        listener.detach()

        assert listener.attached is False
        assert TASK_NAME not in listener.scheduler.list_tasks()

    def test_scheduler_tick_polls(self, listener, store, other_store):
        other_store.set_item("users", "{bad")

        assert listener.scheduler.tick() == [TASK_NAME]
        assert json.loads(store.get_item("users")) == []

    def test_store_error_returns_empty(self, mixed_registry):
        broken = MagicMock(spec=KVStore)
        broken.poll_changes.side_effect = StoreError("database is locked")
        checker = MagicMock()
        listener = CrossContextListener(broken, mixed_registry, checker, Scheduler(), poll_interval_sec=0.25)

        assert listener.poll() == []
        checker.check_key.assert_not_called()
