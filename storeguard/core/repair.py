"""
Repair engine: overwrites records with their registered defaults.
"""

from datetime import datetime, timezone

from .accessor import safe_write
from .registry import MonitoredRecordConfig, Registry
from .reporter import Reporter
from .schema import HealthCheckResult
from .store import KVStore
from ..util.logging import logger


REASON_MISSING = "Missing required key"
REASON_CORRUPT = "Corrupt data: {detail}"
REASON_INVALID = "Failed validation"
REASON_EXTERNAL = "External modification caused corruption"
REASON_FORCE = "Force repair requested"


class RepairEngine:
    def __init__(self, store: KVStore, registry: Registry, reporter: Reporter):
        self.store = store
        self.registry = registry
        self.reporter = reporter

    def repair(self, config: MonitoredRecordConfig, reason: str) -> bool:
        """
        Write config's default under its key.

        On success the on_repair observer is notified. Returns False if the
        write failed; never raises.
        """
        logger.warning(f"Repairing '{config.key}' - Reason: {reason}")

        success = safe_write(self.store, config.key, config.default_value)
        logger.log_repair(config.key, reason, success=success)

        if success:
            self.reporter.notify_repair(config.key, reason)

        return success

    def force_repair_all(self) -> HealthCheckResult:
        """
        Unconditionally reset every monitored record to its default.

        Manual disaster-recovery operation; the scheduler never calls it.
        """
        logger.warning("Force repairing ALL monitored keys...")

        repaired = []
        errors = []
        for config in self.registry:
            if self.repair(config, REASON_FORCE):
                repaired.append(config.key)
            else:
                errors.append(f"Failed to repair {config.key}")

        logger.info(f"Force repair complete: {len(repaired)}/{len(self.registry)} keys reset")

        return HealthCheckResult(
            is_healthy=not errors,
            repaired_keys=tuple(repaired),
            errors=tuple(errors),
            timestamp=datetime.now(timezone.utc),
            scope="force",
            checked_keys=tuple(self.registry.keys())
        )
