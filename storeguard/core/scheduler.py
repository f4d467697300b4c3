"""
Cooperative periodic task scheduler.

A single background thread calls tick() at a fixed granularity; each tick
runs every registered task whose interval has elapsed. Tasks run one at a
time on that thread, so a timer-triggered sweep never overlaps another.
"""

import threading
import time
from typing import Callable, Dict, List, Optional

from ..util.logging import logger


STOPPED = "stopped"
RUNNING = "running"


class Scheduler:
    def __init__(self, tick_sec: float = 0.1, clock: Callable[[], float] = time.monotonic):
        if tick_sec <= 0:
            raise ValueError(f"Tick must be > 0 seconds: {tick_sec}")

        self.tasks: Dict[str, Dict] = {}  # task_name -> {func, interval, last_run}
        self.tick_sec = tick_sec
        self.clock = clock
        self.state = STOPPED
        self._shutdown_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self._tasks_lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self.state == RUNNING

    def register_task(self, name: str, interval_sec: float, func: Callable):
        """
        Register a task to be executed periodically.

        Args:
            name: Unique task identifier
            interval_sec: How often to run this task in seconds
            func: Function to call (should be fast and not block)
        """
        if not callable(func):
            raise ValueError(f"Task function must be callable: {func}")

        if interval_sec <= 0:
            raise ValueError(f"Interval must be > 0 seconds: {interval_sec}")

        with self._tasks_lock:
            self.tasks[name] = {
                "func": func,
                "interval": interval_sec,
                "last_run": None
            }

        logger.debug(f"Registered scheduler task '{name}' (every {interval_sec}s)")

    def unregister_task(self, name: str):
        """Remove a task from the registry."""
        with self._tasks_lock:
            removed = self.tasks.pop(name, None)
        if removed is not None:
            logger.debug(f"Unregistered scheduler task '{name}'")

    def list_tasks(self) -> List[str]:
        """Return list of registered task names."""
        with self._tasks_lock:
            return list(self.tasks.keys())

    def should_run_task(self, name: str, task_info: Dict) -> bool:
        """Check if a task should run this cycle."""
        if task_info["last_run"] is None:
            return True  # Run immediately if never run

        elapsed = self.clock() - task_info["last_run"]
        return elapsed >= task_info["interval"]

    def run_task(self, name: str, task_info: Dict):
        """Execute a task and record timing."""
        start_time = self.clock()

        try:
            task_info["func"]()
        except Exception as e:
            end_time = self.clock()
            # Still counts as a run so a failing task waits its full interval
            task_info["last_run"] = end_time
            logger.log_scheduler_task(name, start_time, end_time, status="failed", details={"error": str(e)[:100]})
            raise RuntimeError(f"Task '{name}' failed after {end_time - start_time:.2f}s: {e}") from e

        end_time = self.clock()
        task_info["last_run"] = end_time
        logger.log_scheduler_task(name, start_time, end_time)

    def mark_ran(self, name: str):
        """Treat a task as having just run, e.g. after running it by hand."""
        with self._tasks_lock:
            if name in self.tasks:
                self.tasks[name]["last_run"] = self.clock()

    def reset_task(self, name: str):
        """Reset a task's last_run time to force immediate execution."""
        with self._tasks_lock:
            if name in self.tasks:
                self.tasks[name]["last_run"] = None

    def tick(self) -> List[str]:
        """Run every due task once. Returns the names of tasks that ran."""
        with self._tasks_lock:
            due = [(name, info) for name, info in self.tasks.items() if self.should_run_task(name, info)]

        ran = []
        for name, task_info in due:
            try:
                self.run_task(name, task_info)
            except RuntimeError as e:
                # Error isolation - log error but continue loop
                logger.error(f"Scheduler task '{name}' failed: {e}")
            ran.append(name)
        return ran

    def start(self):
        """Start ticking on a background daemon thread."""
        if self.running:
            raise RuntimeError("Scheduler already running")

        self._shutdown_event = threading.Event()
        self.state = RUNNING
        self._thread = threading.Thread(target=self._loop, name="storeguard-scheduler", daemon=True)
        self._thread.start()

        logger.info(f"Scheduler started with tasks: {self.list_tasks()}")

    def _loop(self):
        try:
            while not self._shutdown_event.is_set():
                self.tick()
                self._shutdown_event.wait(self.tick_sec)
        finally:
            self.state = STOPPED

    def stop(self, timeout: float = 5.0):
        """Stop the loop and wait for the thread to exit."""
        if not self.running:
            return

        self._shutdown_event.set()

        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
        self.state = STOPPED

        logger.info("Scheduler stopped")

    def get_status(self) -> Dict:
        """Return current scheduler status for monitoring."""
        with self._tasks_lock:
            tasks = {
                name: {
                    "interval_sec": info["interval"],
                    "last_run": info["last_run"],
                    "next_run": info["last_run"] + info["interval"] if info["last_run"] is not None else None
                }
                for name, info in self.tasks.items()
            }

        return {"status": self.state, "tasks": tasks}
