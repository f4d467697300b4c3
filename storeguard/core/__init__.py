from .registry import MonitoredRecordConfig, Registry, RegistryConfigError
from .schema import HealthCheckResult, RecordState
from .watchdog import WatchdogHandle, WatchdogOptions, WatchdogConfigError, configure

__all__ = [
    "MonitoredRecordConfig",
    "Registry",
    "RegistryConfigError",
    "HealthCheckResult",
    "RecordState",
    "WatchdogHandle",
    "WatchdogOptions",
    "WatchdogConfigError",
    "configure",
]
