"""
Tests for environment-driven configuration.
"""

import os
from unittest.mock import patch

from storeguard.core import config
from storeguard.core.store import KVStore


class TestConfigValues:
    """Getters and validation."""

    def test_defaults_are_valid(self):
        assert config.validate_watchdog_config() == []

    def test_invalid_interval_reported(self):
        with patch.object(config, "WATCHDOG_INTERVAL_MS", 0):
            issues = config.validate_watchdog_config()
        assert "WATCHDOG_INTERVAL_MS must be >= 1" in issues

    def test_negative_quota_reported(self):
        with patch.object(config, "STORE_QUOTA_BYTES", -1):
            assert "STORE_QUOTA_BYTES must be >= 0" in config.validate_watchdog_config()

    def test_zero_quota_means_unlimited(self):
        with patch.object(config, "STORE_QUOTA_BYTES", 0):
            assert config.get_store_quota_bytes() is None

    def test_quota_used_by_store(self, db_path):
        with patch("storeguard.core.store.get_store_quota_bytes", return_value=1234):
            store = KVStore(db_path)
        assert store.quota_bytes == 1234

    def test_evictable_keys_copy(self):
        keys = config.get_evictable_keys()
        keys.append("something")
        assert "something" not in config.get_evictable_keys()

    def test_debug_flag_is_dynamic(self):
        with patch.dict(os.environ, {"DEBUG": "false"}):
            assert config.debug_enabled() is False
        with patch.dict(os.environ, {"DEBUG": "true"}):
            assert config.debug_enabled() is True

    def test_ensure_db_directory(self, tmp_path):
        target = tmp_path / "nested" / "dir" / "store.db"
        config.ensure_db_directory(str(target))
        assert target.parent.is_dir()
