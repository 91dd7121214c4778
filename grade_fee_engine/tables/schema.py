"""Lookup-table schema.

Grade levels, grading thresholds and fee tables are business configuration.
They are loaded from YAML (see loader.py) into these frozen dataclasses and
handed to the engines at construction time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

# Canonical metric keys, in ContractorMetrics field order.
METRIC_KEYS: Tuple[str, ...] = (
    "completed_jobs_count",
    "average_rating",
    "photo_quality_score",
    "response_time",
    "on_time_rate",
    "satisfaction_rate",
)

MIN_LEVEL = 1
MAX_LEVEL = 5


class UrgencyTier(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"
    EMERGENCY = "emergency"


@dataclass(frozen=True)
class Benefit:
    title: str
    description: str = ""


@dataclass(frozen=True)
class GradeLevel:
    level: int
    name: str
    description: str = ""
    color: str = ""
    discount: float = 0.0  # urgent-fee discount, percent
    benefits: Tuple[Benefit, ...] = ()


@dataclass(frozen=True)
class GradeThreshold:
    """All conditions must hold at once for a contractor to reach `level`."""

    level: int
    min_completed_jobs: float = 0
    min_average_rating: float = 0.0
    min_photo_quality_score: float = 0.0
    max_response_time: float = 120
    min_on_time_rate: float = 0.0
    min_satisfaction_rate: float = 0.0


@dataclass(frozen=True)
class MetricScale:
    metric: str
    kind: str = "linear"  # linear | inverse
    full_at: Optional[float] = None  # linear: value mapped to 100
    zero_at: Optional[float] = None  # inverse: value mapped to 0


@dataclass(frozen=True)
class FeedbackRule:
    metric: str
    strength: str
    improvement: str


@dataclass(frozen=True)
class GradingTables:
    levels: Dict[int, GradeLevel]
    thresholds: Dict[int, GradeThreshold]
    weights: Dict[str, float]
    scales: Dict[str, MetricScale]
    feedback: List[FeedbackRule] = field(default_factory=list)
    source_file: str = ""


@dataclass(frozen=True)
class FeeTables:
    levels: Dict[int, GradeLevel]
    urgency_base_rates: Dict[UrgencyTier, float]
    benefit_descriptions: Dict[str, str] = field(default_factory=dict)
    source_file: str = ""
