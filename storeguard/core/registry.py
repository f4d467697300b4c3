"""
Record registry: the static table of monitored keys.

Each entry names a key, the default it is repaired to, whether it must exist,
and a structural validator. Registries are checked when built so that a bad
default fails fast instead of being "repaired" forever.
"""

import copy
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from pydantic import TypeAdapter, ValidationError

from ..util.logging import logger


Validator = Callable[[Any], bool]


class RegistryConfigError(ValueError):
    """Raised when a registry is misconfigured."""
    pass


def accept_any(data: Any) -> bool:
    return True


def is_list(data: Any) -> bool:
    return isinstance(data, list)


def is_non_empty_list(data: Any) -> bool:
    return isinstance(data, list) and len(data) > 0


def is_dict(data: Any) -> bool:
    return isinstance(data, dict)


def schema_validator(schema: Any, non_empty: bool = False) -> Validator:
    """
    Build a validator from a pydantic model or type annotation, e.g.
    schema_validator(List[UserRecord]).
    """
    adapter = TypeAdapter(schema)

    def validate(data: Any) -> bool:
        if non_empty and not data:
            return False
        try:
            adapter.validate_python(data)
        except ValidationError:
            return False
        return True

    validate.__name__ = f"schema_validator[{getattr(schema, '__name__', repr(schema))}]"
    return validate


@dataclass(frozen=True)
class MonitoredRecordConfig:
    key: str
    default_value: Any
    is_required: bool = False
    validate: Validator = field(default=accept_any)

    def is_valid(self, data: Any) -> bool:
        """Run the validator; a validator that raises counts as a failure."""
        try:
            return bool(self.validate(data))
        except Exception as e:
            logger.warning(f"Validator for '{self.key}' raised {type(e).__name__}: {e}")
            return False

    def fresh_default(self) -> Any:
        """A private copy of the default so callers cannot mutate the registry."""
        return copy.deepcopy(self.default_value)


class Registry:
    """Ordered, immutable collection of monitored records."""

    def __init__(self, configs: Iterable[MonitoredRecordConfig]):
        self._configs: List[MonitoredRecordConfig] = list(configs)
        self._by_key: Dict[str, MonitoredRecordConfig] = {}

        issues = self._validate()
        if issues:
            raise RegistryConfigError(f"Registry configuration invalid: {issues}")

        self._by_key = {c.key: c for c in self._configs}

    def _validate(self) -> List[str]:
        issues = []
        seen = set()

        for config in self._configs:
            if not isinstance(config.key, str) or not config.key.strip():
                issues.append(f"Invalid key: {config.key!r}")
                continue

            if config.key in seen:
                issues.append(f"Duplicate key: {config.key}")
            seen.add(config.key)

            if not callable(config.validate):
                issues.append(f"Validator for '{config.key}' is not callable")
                continue

            try:
                json.dumps(config.default_value, allow_nan=False)
            except (TypeError, ValueError, RecursionError) as e:
                issues.append(f"Default for '{config.key}' is not JSON-serializable: {e}")
                continue

            if not config.is_valid(config.fresh_default()):
                issues.append(f"Default for '{config.key}' fails its own validator")

        return issues

    def __iter__(self) -> Iterator[MonitoredRecordConfig]:
        return iter(self._configs)

    def __len__(self) -> int:
        return len(self._configs)

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def get(self, key: str) -> Optional[MonitoredRecordConfig]:
        return self._by_key.get(key)

    def keys(self) -> List[str]:
        return [c.key for c in self._configs]
