"""
Structured logging for store access, health sweeps, repairs and scheduling.
"""

import logging
from typing import Any, Dict, List


class StructuredLogger:
    """Structured logger for watchdog operations."""

    def __init__(self, name: str = "storeguard"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None, level: int = logging.INFO):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        self.logger.log(level, message)

    def log_store_operation(self, operation: str, key: str, value: str = None, status: str = "success"):
        """Log a store-level operation."""
        details = {"key": key}
        if value is not None:
            details["value"] = sanitize_payload(value)

        level = logging.INFO if status == "success" else logging.WARNING
        self.log_operation(f"store.{operation}", status, details, level=level)

    def log_health_check(self, scope: str, is_healthy: bool, repaired_keys: List[str], errors: List[str]):
        """Log the outcome of a sweep."""
        details = {
            "scope": scope,
            "repaired": list(repaired_keys),
            "error_count": len(errors)
        }
        if errors:
            details["errors"] = [str(e)[:100] for e in errors]

        status = "healthy" if is_healthy else "unhealthy"
        level = logging.INFO if is_healthy else logging.ERROR
        self.log_operation("health.check", status, details, level=level)

    def log_repair(self, key: str, reason: str, success: bool = True):
        """Log a repair action."""
        details = {"key": key, "reason": reason[:100]}
        if success:
            self.log_operation("repair.applied", "success", details)
        else:
            self.log_operation("repair.applied", "failed", details, level=logging.ERROR)

    def log_external_change(self, key: str, origin: str, monitored: bool):
        """Log a change notification from another context."""
        details = {"key": key, "origin": origin, "monitored": monitored}
        self.log_operation("listener.change", "received", details, level=logging.DEBUG)

    def log_scheduler_task(self, task_name: str, start_time: float, end_time: float, status: str = "success", details: Dict[str, Any] = None):
        """Log scheduler task execution."""
        duration_ms = round((end_time - start_time) * 1000, 2)
        log_details = {"duration_ms": duration_ms}
        if details:
            log_details.update(details)
        elif status == "success":
            log_details["message"] = f"Scheduler task '{task_name}' completed in {duration_ms}ms"
        elif status == "failed":
            log_details["message"] = f"Scheduler task '{task_name}' failed after {duration_ms}ms"

        level = logging.DEBUG if status == "success" else logging.ERROR
        self.log_operation(f"scheduler.{task_name}", status, log_details, level=level)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


def sanitize_payload(payload: Any, limit: int = 50) -> Any:
    """Truncate raw stored values before they reach the log."""
    if isinstance(payload, dict):
        return {k: sanitize_payload(v, limit) for k, v in payload.items()}
    elif isinstance(payload, str):
        return payload[:limit] + "..." if len(payload) > limit else payload
    elif isinstance(payload, list):
        return [sanitize_payload(item, limit) for item in payload]
    else:
        return payload


# Global logger instance
logger = StructuredLogger()
