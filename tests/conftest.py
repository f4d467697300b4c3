import pytest

from storeguard.core.registry import MonitoredRecordConfig, Registry, is_dict, is_list
from storeguard.core.store import KVStore


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "store.db")


@pytest.fixture
def store(db_path):
    """The watchdog's own context."""
    return KVStore(db_path, context_id="tab_a", quota_bytes=0)


@pytest.fixture
def other_store(db_path, store):
    """A second context (another tab) sharing the same database."""
    return KVStore(db_path, context_id="tab_b", quota_bytes=0)


@pytest.fixture
def users_registry():
    return Registry([
        MonitoredRecordConfig(key="users", default_value=[], is_required=True, validate=is_list),
    ])


@pytest.fixture
def mixed_registry():
    return Registry([
        MonitoredRecordConfig(key="users", default_value=[], is_required=True, validate=is_list),
        MonitoredRecordConfig(key="settings", default_value={"theme": "light"}, is_required=False, validate=is_dict),
        MonitoredRecordConfig(key="notes", default_value=[], is_required=False, validate=is_list),
    ])
