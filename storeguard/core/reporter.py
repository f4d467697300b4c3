"""
Reporter: keeps the latest health result and notifies observers.
"""

import threading
from collections import deque
from typing import Callable, List, Optional

from .config import REPORTER_HISTORY_SIZE
from .schema import HealthCheckResult
from ..util.logging import logger


HealthCheckCallback = Callable[[HealthCheckResult], None]
RepairCallback = Callable[[str, str], None]


class Reporter:
    """
    Holds the most recent HealthCheckResult and fans events out to the
    on_health_check / on_repair observers. Observer failures are logged and
    never propagate into the watchdog.
    """

    def __init__(self, on_health_check: Optional[HealthCheckCallback] = None,
                 on_repair: Optional[RepairCallback] = None,
                 history_size: int = REPORTER_HISTORY_SIZE):
        self.on_health_check = on_health_check
        self.on_repair = on_repair
        self._latest: Optional[HealthCheckResult] = None
        self._history = deque(maxlen=history_size)
        self._lock = threading.Lock()

    def publish(self, result: HealthCheckResult):
        """Record a finished sweep and notify on_health_check."""
        with self._lock:
            self._latest = result
            self._history.append(result)

        logger.log_health_check(result.scope, result.is_healthy, result.repaired_keys, result.errors)
        self._notify("on_health_check", self.on_health_check, result)

    def notify_repair(self, key: str, reason: str):
        self._notify("on_repair", self.on_repair, key, reason)

    def get_health_status(self) -> Optional[HealthCheckResult]:
        with self._lock:
            return self._latest

    def get_history(self) -> List[HealthCheckResult]:
        """Recent results, oldest first."""
        with self._lock:
            return list(self._history)

    def _notify(self, name: str, callback, *args):
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.warning(f"Observer {name} raised {type(e).__name__}: {e}")
