"""
Watchdog public contract.

    handle = configure(registry, WatchdogOptions(interval_ms=10000, on_repair=...))
    handle.run_health_check()
    handle.force_repair_all()
    handle.get_health_status()
    handle.stop()

configure() wires the registry, store accessor, health checker, repair
engine, reporter, scheduler and cross-context listener together. When
enabled it runs the initial sweep immediately, then keeps sweeping every
interval_ms and reacting to other contexts' writes until stop().
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .config import (
    CHANGE_LOG_RETENTION_SEC,
    get_listener_poll_ms,
    get_watchdog_interval_ms,
    is_watchdog_enabled,
)
from .defaults import build_default_registry
from .health import HealthChecker
from .listener import CrossContextListener
from .registry import Registry
from .repair import RepairEngine
from .reporter import HealthCheckCallback, RepairCallback, Reporter
from .scheduler import Scheduler
from .schema import HealthCheckResult
from .store import KVStore, StoreError
from ..util.logging import logger


SWEEP_TASK = "health_sweep"
PRUNE_TASK = "prune_change_log"


class WatchdogConfigError(ValueError):
    """Raised when watchdog options are invalid."""
    pass


@dataclass
class WatchdogOptions:
    enabled: bool = True
    interval_ms: int = 10000
    on_health_check: Optional[HealthCheckCallback] = None
    on_repair: Optional[RepairCallback] = None
    listener_poll_ms: int = 250
    change_log_retention_sec: int = CHANGE_LOG_RETENTION_SEC

    @classmethod
    def from_env(cls, **overrides) -> "WatchdogOptions":
        """Options seeded from environment configuration."""
        values = {
            "enabled": is_watchdog_enabled(),
            "interval_ms": get_watchdog_interval_ms(),
            "listener_poll_ms": get_listener_poll_ms(),
        }
        values.update(overrides)
        return cls(**values)

    def validate(self):
        issues = []
        if self.interval_ms < 1:
            issues.append("interval_ms must be >= 1")
        if self.listener_poll_ms < 1:
            issues.append("listener_poll_ms must be >= 1")
        if self.change_log_retention_sec < 1:
            issues.append("change_log_retention_sec must be >= 1")
        for name in ("on_health_check", "on_repair"):
            callback = getattr(self, name)
            if callback is not None and not callable(callback):
                issues.append(f"{name} must be callable")
        if issues:
            raise WatchdogConfigError(f"Watchdog configuration invalid: {issues}")


class WatchdogHandle:
    def __init__(self, store: KVStore, registry: Registry, options: WatchdogOptions):
        self.store = store
        self.registry = registry
        self.options = options

        self.reporter = Reporter(on_health_check=options.on_health_check, on_repair=options.on_repair)
        self.repair_engine = RepairEngine(store, registry, self.reporter)
        self.checker = HealthChecker(store, registry, self.repair_engine, self.reporter)

        # Tick no slower than the fastest task so intervals stay accurate
        fastest_sec = min(options.interval_ms, options.listener_poll_ms) / 1000
        self.scheduler = Scheduler(tick_sec=min(0.1, fastest_sec))
        self.listener = CrossContextListener(
            store, registry, self.checker, self.scheduler,
            poll_interval_sec=options.listener_poll_ms / 1000
        )

    @property
    def is_enabled(self) -> bool:
        return self.options.enabled

    @property
    def is_running(self) -> bool:
        return self.scheduler.running

    def start(self):
        """Run the initial sweep now, then schedule periodic sweeps and attach the listener."""
        if self.scheduler.running:
            return

        logger.info("Running initial health check...")
        result = self.run_health_check()
        if not result.repaired_keys and result.is_healthy:
            logger.info("All monitored records healthy")

        self.scheduler.register_task(SWEEP_TASK, self.options.interval_ms / 1000, self.run_health_check)
        self.scheduler.mark_ran(SWEEP_TASK)
        self.scheduler.register_task(PRUNE_TASK, self.options.change_log_retention_sec, self._prune_change_log)
        self.scheduler.mark_ran(PRUNE_TASK)
        self.listener.attach()
        self.scheduler.start()

    def run_health_check(self) -> HealthCheckResult:
        """Manual, synchronous full sweep."""
        return self.checker.run_sweep()

    def force_repair_all(self) -> None:
        """Reset every monitored record to its default and publish the outcome."""
        with self.checker.lock:
            result = self.repair_engine.force_repair_all()
            self.reporter.publish(result)

    def get_health_status(self) -> Optional[HealthCheckResult]:
        return self.reporter.get_health_status()

    def stop(self) -> None:
        """Cancel the periodic sweep and detach the listener. Safe to call twice."""
        self.listener.detach()
        self.scheduler.unregister_task(SWEEP_TASK)
        self.scheduler.unregister_task(PRUNE_TASK)
        self.scheduler.stop()

    def status(self) -> Dict[str, Any]:
        latest = self.get_health_status()
        return {
            "enabled": self.is_enabled,
            "running": self.is_running,
            "interval_ms": self.options.interval_ms,
            "listener_attached": self.listener.attached,
            "monitored_keys": self.registry.keys(),
            "last_result": latest.to_dict() if latest else None,
            "scheduler": self.scheduler.get_status()
        }

    def _prune_change_log(self):
        try:
            removed = self.store.prune_changes(self.options.change_log_retention_sec)
        except StoreError as e:
            logger.warning(f"Change log prune failed: {e}")
            return
        if removed:
            logger.debug(f"Pruned {removed} change log entries")


def configure(registry: Optional[Registry] = None, options: Optional[WatchdogOptions] = None,
              store: Optional[KVStore] = None) -> WatchdogHandle:
    """
    Build a watchdog over registry (the tutoring dashboard records by
    default) and, when options.enabled, start it.
    """
    if options is None:
        options = WatchdogOptions()
    options.validate()

    if registry is None:
        registry = build_default_registry()
    if store is None:
        store = KVStore()

    handle = WatchdogHandle(store, registry, options)
    if options.enabled:
        handle.start()
    else:
        logger.info("Watchdog disabled (enabled=False). Skipping start.")
    return handle
