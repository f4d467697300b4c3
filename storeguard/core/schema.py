"""
Result types shared by the health checker, repair engine and reporter.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Tuple


class RecordState(str, Enum):
    VALID = "valid"
    MISSING_REQUIRED = "missing_required"
    MISSING_OPTIONAL = "missing_optional"
    CORRUPT = "corrupt"
    INVALID_SCHEMA = "invalid_schema"

    @property
    def needs_repair(self) -> bool:
        return self in (RecordState.MISSING_REQUIRED, RecordState.CORRUPT, RecordState.INVALID_SCHEMA)


@dataclass(frozen=True)
class HealthCheckResult:
    """Outcome of one sweep. Never mutated after creation."""
    is_healthy: bool
    repaired_keys: Tuple[str, ...]
    errors: Tuple[str, ...]
    timestamp: datetime
    scope: str = "full"  # full | single | force
    checked_keys: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary for serialization."""
        return {
            "is_healthy": self.is_healthy,
            "repaired_keys": list(self.repaired_keys),
            "errors": list(self.errors),
            "timestamp": self.timestamp.isoformat(),
            "scope": self.scope,
            "checked_keys": list(self.checked_keys)
        }
