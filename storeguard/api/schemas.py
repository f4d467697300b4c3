"""
Request and response models for the watchdog HTTP surface.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from ..core.schema import HealthCheckResult


class HealthCheckResultResponse(BaseModel):
    is_healthy: bool
    repaired_keys: List[str]
    errors: List[str]
    timestamp: datetime
    scope: str
    checked_keys: List[str]

    @classmethod
    def from_result(cls, result: HealthCheckResult) -> "HealthCheckResultResponse":
        return cls(
            is_healthy=result.is_healthy,
            repaired_keys=list(result.repaired_keys),
            errors=list(result.errors),
            timestamp=result.timestamp,
            scope=result.scope,
            checked_keys=list(result.checked_keys)
        )


class WatchdogStatusResponse(BaseModel):
    enabled: bool
    running: bool
    interval_ms: int
    listener_attached: bool
    monitored_keys: List[str]
    last_result: Optional[HealthCheckResultResponse] = None
    scheduler: Dict[str, Any]


class HealthResponse(BaseModel):
    status: str
    version: str
    db_health: bool
    watchdog_running: bool
    last_check_healthy: Optional[bool] = None
    used_bytes: Optional[int] = None


class RecordSummary(BaseModel):
    key: str
    is_required: bool
    state: str


class RecordListResponse(BaseModel):
    records: List[RecordSummary]


class RecordResponse(BaseModel):
    key: str
    value: Any


class RecordWriteRequest(BaseModel):
    value: Any
