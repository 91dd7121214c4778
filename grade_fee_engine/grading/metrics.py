from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, FrozenSet, Mapping, Tuple

from ..errors import InvalidInput
from ..tables.schema import METRIC_KEYS

_LOGGER = logging.getLogger(__name__)

# Domain of each metric; values outside are clamped before grading.
METRIC_DOMAINS: Dict[str, Tuple[float, float]] = {
    "completed_jobs_count": (0, 1000),
    "average_rating": (0.0, 5.0),
    "photo_quality_score": (0.0, 10.0),
    "response_time": (1, 480),  # minutes, 1 min .. 8 h
    "on_time_rate": (0.0, 100.0),
    "satisfaction_rate": (0.0, 100.0),
}

# Missing or non-positive response time counts as the slowest possible answer.
WORST_RESPONSE_TIME = METRIC_DOMAINS["response_time"][1]

_CAMEL_ALIASES = {
    "completedJobsCount": "completed_jobs_count",
    "averageRating": "average_rating",
    "photoQualityScore": "photo_quality_score",
    "responseTime": "response_time",
    "onTimeRate": "on_time_rate",
    "satisfactionRate": "satisfaction_rate",
}


def _coerce_number(key: str, value: Any) -> float:
    # bool is an int subclass; a True rating is a caller bug, not 1.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInput(key, value, f"Metric '{key}' must be a number, got {type(value).__name__}: {value!r}")
    if math.isnan(value) or math.isinf(value):
        raise InvalidInput(key, value, f"Metric '{key}' must be finite, got {value!r}")
    return value


@dataclass(frozen=True)
class ContractorMetrics:
    """Raw performance metrics of one contractor, as read from the contractor record."""

    completed_jobs_count: int = 0
    average_rating: float = 0.0
    photo_quality_score: float = 0.0
    response_time: float = WORST_RESPONSE_TIME
    on_time_rate: float = 0.0
    satisfaction_rate: float = 0.0

    def __post_init__(self) -> None:
        for key in METRIC_KEYS:
            _coerce_number(key, getattr(self, key))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ContractorMetrics":
        """Build metrics from a contractor document (camelCase or snake_case keys).

        Missing (or null) metrics fall back to 0, and response time to the worst case.
        Anything present but non-numeric raises InvalidInput.
        """
        if not isinstance(data, Mapping):
            raise InvalidInput("metrics", data, f"Metrics must be a mapping, got {type(data).__name__}")

        values: Dict[str, Any] = {}
        for raw_key, value in data.items():
            key = _CAMEL_ALIASES.get(raw_key, raw_key)
            if key not in METRIC_KEYS or value is None:
                continue
            values[key] = _coerce_number(key, value)

        rt = values.get("response_time")
        if rt is not None and rt <= 0:
            _LOGGER.warning("Non-positive response time %r treated as missing", rt)
            values.pop("response_time")
        return cls(**values)

    def clamped(self) -> "ContractorMetrics":
        """Copy with every metric clamped to its domain."""
        changes: Dict[str, float] = {}
        for key, (lo, hi) in METRIC_DOMAINS.items():
            value = getattr(self, key)
            if key == "response_time" and value <= 0:
                value = WORST_RESPONSE_TIME
            bounded = max(lo, min(value, hi))
            if bounded != getattr(self, key):
                changes[key] = bounded
        if changes:
            _LOGGER.debug("Clamped metrics: %s", changes)
            return replace(self, **changes)
        return self

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def as_metrics(value: Any) -> ContractorMetrics:
    """Accept either a ContractorMetrics or a plain mapping."""
    if isinstance(value, ContractorMetrics):
        return value
    return ContractorMetrics.from_mapping(value)


def supplied_metrics(value: Any) -> FrozenSet[str]:
    """Metric names the caller actually provided (non-null), under their snake_case names."""
    if isinstance(value, ContractorMetrics):
        return frozenset(METRIC_KEYS)
    if not isinstance(value, Mapping):
        return frozenset()
    return frozenset(_CAMEL_ALIASES.get(k, k) for k, v in value.items() if v is not None) & frozenset(METRIC_KEYS)
