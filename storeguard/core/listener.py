"""
Cross-context listener: re-validates records that other contexts changed.
"""

from typing import List

from .health import HealthChecker
from .registry import Registry
from .repair import REASON_EXTERNAL
from .scheduler import Scheduler
from .store import KVStore, StorageEvent, StoreError
from ..util.logging import logger


TASK_NAME = "cross_context_listener"


class CrossContextListener:
    """
    Consumes the store's change notifications (writes from other contexts
    only) and checks just the affected monitored key, never a full sweep.
    """

    def __init__(self, store: KVStore, registry: Registry, checker: HealthChecker,
                 scheduler: Scheduler, poll_interval_sec: float):
        self.store = store
        self.registry = registry
        self.checker = checker
        self.scheduler = scheduler
        self.poll_interval_sec = poll_interval_sec
        self.attached = False

    def attach(self):
        """Start listening from now on; earlier changes are not replayed."""
        if self.attached:
            return
        self.store.mark_seen()
        self.scheduler.register_task(TASK_NAME, self.poll_interval_sec, self.poll)
        self.attached = True

    def detach(self):
        if not self.attached:
            return
        self.scheduler.unregister_task(TASK_NAME)
        self.attached = False

    def poll(self) -> List[str]:
        """Handle pending notifications. Returns the monitored keys checked."""
        try:
            events = self.store.poll_changes()
        except StoreError as e:
            logger.warning(f"Change log unavailable: {e}")
            return []

        handled = []
        for event in events:
            if self.handle_event(event):
                handled.append(event.key)
        return handled

    def handle_event(self, event: StorageEvent) -> bool:
        if event.key is None:
            # Whole store cleared; the next scheduled sweep restores it
            return False

        monitored = event.key in self.registry
        logger.log_external_change(event.key, event.origin, monitored)
        if not monitored:
            return False

        result = self.checker.check_key(event.key, reason=REASON_EXTERNAL)
        if result is not None and result.repaired_keys:
            logger.warning(f"External modification corrupted '{event.key}', repaired")
        return True
