"""
Health checker: classifies each monitored record and repairs the broken ones.
"""

import threading
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from .accessor import ReadFailure, ReadResult, safe_read
from .registry import MonitoredRecordConfig, Registry
from .repair import REASON_CORRUPT, REASON_INVALID, REASON_MISSING, RepairEngine
from .reporter import Reporter
from .schema import HealthCheckResult, RecordState
from .store import KVStore
from ..util.logging import logger


_UNREPAIRABLE = {
    RecordState.MISSING_REQUIRED: "Failed to repair {key}",
    RecordState.CORRUPT: "Corrupt and unrepairable: {key}",
    RecordState.INVALID_SCHEMA: "Invalid and unrepairable: {key}",
}


def classify(config: MonitoredRecordConfig, read: ReadResult) -> Tuple[RecordState, str]:
    """
    Map a read outcome to a RecordState plus the repair reason for it.

    Store unavailability is treated like corruption: a repair is attempted and
    its failure ends up in the sweep's errors.
    """
    if read.success:
        if config.is_valid(read.data):
            return RecordState.VALID, ""
        return RecordState.INVALID_SCHEMA, REASON_INVALID

    if read.failure is ReadFailure.ABSENT:
        if config.is_required:
            return RecordState.MISSING_REQUIRED, REASON_MISSING
        return RecordState.MISSING_OPTIONAL, ""

    return RecordState.CORRUPT, REASON_CORRUPT.format(detail=read.error)


class HealthChecker:
    def __init__(self, store: KVStore, registry: Registry, repair_engine: RepairEngine, reporter: Reporter):
        self.store = store
        self.registry = registry
        self.repair_engine = repair_engine
        self.reporter = reporter
        # Serializes sweeps started from the scheduler thread and from callers
        self.lock = threading.RLock()

    def inspect(self, config: MonitoredRecordConfig) -> RecordState:
        """Classify one record without acting on it."""
        state, _ = classify(config, safe_read(self.store, config.key))
        return state

    def run_sweep(self) -> HealthCheckResult:
        """Check every registry entry in registration order."""
        return self._check(self.registry, scope="full")

    def check_key(self, key: str, reason: Optional[str] = None) -> Optional[HealthCheckResult]:
        """
        Check a single monitored key. reason, if given, replaces the
        state-derived repair reason. Returns None for unmonitored keys.
        """
        config = self.registry.get(key)
        if config is None:
            return None
        return self._check([config], scope="single", reason_override=reason)

    def _check(self, configs: Iterable[MonitoredRecordConfig], scope: str,
               reason_override: Optional[str] = None) -> HealthCheckResult:
        with self.lock:
            return self._check_locked(configs, scope, reason_override)

    def _check_locked(self, configs: Iterable[MonitoredRecordConfig], scope: str,
                      reason_override: Optional[str]) -> HealthCheckResult:
        repaired: List[str] = []
        errors: List[str] = []
        checked: List[str] = []

        for config in configs:
            checked.append(config.key)
            read = safe_read(self.store, config.key)
            state, reason = classify(config, read)

            if state is RecordState.CORRUPT:
                logger.error(f"Corrupt data detected in '{config.key}': {read.error}")
            elif state is RecordState.INVALID_SCHEMA:
                logger.warning(f"Invalid data structure in '{config.key}'")

            if not state.needs_repair:
                continue

            if self.repair_engine.repair(config, reason_override or reason):
                repaired.append(config.key)
            else:
                errors.append(_UNREPAIRABLE[state].format(key=config.key))

        if repaired:
            logger.info(f"Repaired {len(repaired)} key(s): {repaired}")

        result = HealthCheckResult(
            is_healthy=not errors,
            repaired_keys=tuple(repaired),
            errors=tuple(errors),
            timestamp=datetime.now(timezone.utc),
            scope=scope,
            checked_keys=tuple(checked)
        )
        self.reporter.publish(result)
        return result
