"""
Runtime configuration for the store and its watchdog.
All settings are read from the environment with safe defaults.
"""

import os
from pathlib import Path

# Store configuration
DB_PATH = os.getenv("STORE_DB_PATH", "./data/store.db")
STORE_QUOTA_BYTES = int(os.getenv("STORE_QUOTA_BYTES", str(5 * 1024 * 1024)))  # 0 disables the quota
STORE_BUSY_TIMEOUT_MS = int(os.getenv("STORE_BUSY_TIMEOUT_MS", "250"))
STORE_EVICTABLE_KEYS = [k.strip() for k in os.getenv("STORE_EVICTABLE_KEYS", "app_error_logs").split(",") if k.strip()]
CHANGE_LOG_RETENTION_SEC = int(os.getenv("CHANGE_LOG_RETENTION_SEC", "3600"))

# Read once at import; use debug_enabled() for the live value
DEBUG = os.getenv("DEBUG", "true").lower() == "true"

# Watchdog configuration
WATCHDOG_ENABLED = os.getenv("WATCHDOG_ENABLED", "true").lower() == "true"
WATCHDOG_INTERVAL_MS = int(os.getenv("WATCHDOG_INTERVAL_MS", "10000"))
WATCHDOG_LISTENER_POLL_MS = int(os.getenv("WATCHDOG_LISTENER_POLL_MS", "250"))
REPORTER_HISTORY_SIZE = int(os.getenv("REPORTER_HISTORY_SIZE", "20"))

# HTTP surface
API_ENABLED = os.getenv("API_ENABLED", "true").lower() == "true"

# Version string
VERSION = "1.0.0"


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "true").lower() == "true"


def ensure_db_directory(db_path: str = None):
    """Ensure the database directory exists."""
    Path(db_path or DB_PATH).parent.mkdir(parents=True, exist_ok=True)


def is_watchdog_enabled():
    """Check if the watchdog should start automatically."""
    return WATCHDOG_ENABLED


def get_watchdog_interval_ms():
    """Get the periodic sweep interval in milliseconds."""
    return WATCHDOG_INTERVAL_MS


def get_listener_poll_ms():
    """Get how often the change log is polled for other contexts' writes."""
    return WATCHDOG_LISTENER_POLL_MS


def get_store_quota_bytes():
    """Get the store capacity, or None when unlimited."""
    return STORE_QUOTA_BYTES if STORE_QUOTA_BYTES > 0 else None


def get_evictable_keys():
    """Keys that may be dropped to make room when the quota is hit."""
    return list(STORE_EVICTABLE_KEYS)


def validate_watchdog_config():
    """Validate watchdog configuration and return any issues."""
    issues = []

    if WATCHDOG_INTERVAL_MS < 1:
        issues.append("WATCHDOG_INTERVAL_MS must be >= 1")

    if WATCHDOG_LISTENER_POLL_MS < 1:
        issues.append("WATCHDOG_LISTENER_POLL_MS must be >= 1")

    if STORE_QUOTA_BYTES < 0:
        issues.append("STORE_QUOTA_BYTES must be >= 0")

    if STORE_BUSY_TIMEOUT_MS < 0:
        issues.append("STORE_BUSY_TIMEOUT_MS must be >= 0")

    if CHANGE_LOG_RETENTION_SEC < 1:
        issues.append("CHANGE_LOG_RETENTION_SEC must be >= 1")

    if REPORTER_HISTORY_SIZE < 1:
        issues.append("REPORTER_HISTORY_SIZE must be >= 1")

    return issues
