"""
Tests for registry construction and validators.
"""

from typing import List

import pytest

from storeguard.core.defaults import DEFAULT_USERS, UserRecord, build_default_registry
from storeguard.core.registry import (
    MonitoredRecordConfig,
    Registry,
    RegistryConfigError,
    is_dict,
    is_list,
    is_non_empty_list,
    schema_validator,
)


class TestRegistryConstruction:
    """Fail-fast checks when a registry is built."""

    def test_preserves_registration_order(self, mixed_registry):
        assert mixed_registry.keys() == ["users", "settings", "notes"]
        assert [c.key for c in mixed_registry] == ["users", "settings", "notes"]
        assert len(mixed_registry) == 3

    def test_lookup(self, mixed_registry):
        assert "settings" in mixed_registry
        assert "unknown" not in mixed_registry
        assert mixed_registry.get("settings").default_value == {"theme": "light"}
        assert mixed_registry.get("unknown") is None

    def test_duplicate_key_rejected(self):
        with pytest.raises(RegistryConfigError, match="Duplicate key: users"):
            Registry([
                MonitoredRecordConfig(key="users", default_value=[], validate=is_list),
                MonitoredRecordConfig(key="users", default_value=[], validate=is_list),
            ])

    def test_default_failing_validator_rejected(self):
        """A default that cannot pass its own validator would be repaired forever."""
        with pytest.raises(RegistryConfigError, match="fails its own validator"):
            Registry([MonitoredRecordConfig(key="users", default_value={}, validate=is_list)])

    def test_unserializable_default_rejected(self):
        with pytest.raises(RegistryConfigError, match="not JSON-serializable"):
            Registry([MonitoredRecordConfig(key="users", default_value={1, 2})])

    def test_non_finite_default_rejected(self):
        with pytest.raises(RegistryConfigError, match="not JSON-serializable"):
            Registry([MonitoredRecordConfig(key="score", default_value=float("nan"))])

    def test_empty_key_rejected(self):
        with pytest.raises(RegistryConfigError, match="Invalid key"):
            Registry([MonitoredRecordConfig(key="  ", default_value=[])])

    def test_non_callable_validator_rejected(self):
        with pytest.raises(RegistryConfigError, match="not callable"):
            Registry([MonitoredRecordConfig(key="users", default_value=[], validate="is_list")])

    def test_empty_registry_allowed(self):
        assert len(Registry([])) == 0


class TestValidators:
    """Built-in structural predicates."""

    def test_simple_predicates(self):
        assert is_list([]) is True
        assert is_list({}) is False
        assert is_non_empty_list([1]) is True
        assert is_non_empty_list([]) is False
        assert is_dict({}) is True
        assert is_dict([]) is False

    def test_validator_exception_counts_as_invalid(self):
        def explode(data):
            raise KeyError("boom")

        config = MonitoredRecordConfig(key="users", default_value=[], validate=explode)
        assert config.is_valid([]) is False

    def test_default_config_accepts_anything(self):
        config = MonitoredRecordConfig(key="anything", default_value=None)
        assert config.is_valid(42) is True
        assert config.is_valid(None) is True

    def test_schema_validator(self):
        validate = schema_validator(List[UserRecord], non_empty=True)

        assert validate(DEFAULT_USERS) is True
        assert validate([]) is False
        assert validate([{"id": "9"}]) is False
        assert validate("not a list") is False

    def test_fresh_default_is_independent(self):
        config = MonitoredRecordConfig(key="users", default_value=[{"id": "1"}], validate=is_list)
        copy = config.fresh_default()
        copy[0]["id"] = "changed"
        assert config.default_value == [{"id": "1"}]


class TestDefaultRegistry:
    """The tutoring dashboard records."""

    def test_builds_without_errors(self):
        registry = build_default_registry()
        assert registry.keys()[0] == "app_users"
        assert "app_chat_messages" in registry

    def test_only_users_required(self):
        registry = build_default_registry()
        required = [c.key for c in registry if c.is_required]
        assert required == ["app_users"]

    def test_users_default_is_demo_accounts(self):
        config = build_default_registry().get("app_users")
        assert config.default_value == DEFAULT_USERS
        assert config.is_valid([]) is False
