"""
Safe read/write wrapper around the shared store.

Nothing in here raises: store failures come back as typed results or False.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional, TYPE_CHECKING

from .config import get_evictable_keys
from .store import KVStore, QuotaExceededError, StoreError
from ..util.logging import logger, sanitize_payload

if TYPE_CHECKING:
    from .registry import MonitoredRecordConfig


class ReadFailure(str, Enum):
    ABSENT = "absent"
    MALFORMED = "malformed"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class ReadResult:
    success: bool
    data: Any = None
    failure: Optional[ReadFailure] = None
    error: str = ""

    @classmethod
    def ok(cls, data: Any) -> "ReadResult":
        return cls(success=True, data=data)

    @classmethod
    def failed(cls, failure: ReadFailure, error: str) -> "ReadResult":
        return cls(success=False, failure=failure, error=error)


def _reject_constant(name: str):
    # NaN and Infinity are not JSON
    raise ValueError(f"Invalid JSON constant: {name}")


def safe_read(store: KVStore, key: str) -> ReadResult:
    """Read and deserialize key."""
    try:
        raw = store.get_item(key)
    except StoreError as e:
        return ReadResult.failed(ReadFailure.UNAVAILABLE, str(e))

    if raw is None:
        return ReadResult.failed(ReadFailure.ABSENT, "Key does not exist")

    try:
        return ReadResult.ok(json.loads(raw, parse_constant=_reject_constant))
    except (ValueError, RecursionError) as e:
        logger.log_store_operation("read", key, raw, status="malformed")
        return ReadResult.failed(ReadFailure.MALFORMED, str(e))


def safe_write(store: KVStore, key: str, value: Any, evictable_keys: Iterable[str] = None) -> bool:
    """
    Serialize value and store it under key, overwriting unconditionally.

    When the store is full, evictable keys (other than key itself) are
    dropped and the write is retried once.
    """
    try:
        serialized = json.dumps(value, allow_nan=False)
    except (TypeError, ValueError, RecursionError) as e:
        logger.error(f"Cannot serialize value for '{key}': {e}")
        return False

    try:
        store.set_item(key, serialized)
        return True
    except QuotaExceededError as e:
        logger.log_store_operation("write", key, status="quota_exceeded")
        if not _evict(store, key, evictable_keys):
            logger.error(f"Failed to write '{key}': {e}")
            return False
    except StoreError as e:
        logger.error(f"Failed to write '{key}': {e}")
        return False

    try:
        store.set_item(key, serialized)
        return True
    except StoreError as e:
        logger.error(f"Failed to write '{key}' after eviction: {e}")
        return False


def _evict(store: KVStore, key: str, evictable_keys: Iterable[str] = None) -> bool:
    """Drop evictable keys to free space. Returns True if anything was removed."""
    if evictable_keys is None:
        evictable_keys = get_evictable_keys()

    freed = False
    for candidate in evictable_keys:
        if candidate == key:
            continue
        if safe_remove(store, candidate):
            logger.warning(f"Evicted '{candidate}' to make room for '{key}'")
            freed = True
    return freed


def safe_remove(store: KVStore, key: str) -> bool:
    try:
        return store.remove_item(key)
    except StoreError as e:
        logger.error(f"Failed to remove '{key}': {e}")
        return False


def key_exists(store: KVStore, key: str) -> bool:
    """True when key is present and holds parseable data."""
    return safe_read(store, key).success


def read_or_default(store: KVStore, config: "MonitoredRecordConfig") -> Any:
    """
    Return the stored value for config.key if it parses and validates,
    otherwise the configured default. Never writes.
    """
    result = safe_read(store, config.key)
    if result.success and config.is_valid(result.data):
        return result.data

    if result.success:
        logger.warning(f"Unexpected shape for '{config.key}': {sanitize_payload(str(result.data))}. Using default.")
    elif result.failure is not ReadFailure.ABSENT:
        logger.warning(f"Unreadable data for '{config.key}' ({result.error}). Using default.")
    return config.fresh_default()
