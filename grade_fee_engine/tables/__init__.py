from .loader import (
    default_fee_tables,
    default_grading_tables,
    load_fee_tables,
    load_grade_levels,
    load_grading_tables,
)
from .schema import (
    MAX_LEVEL,
    METRIC_KEYS,
    MIN_LEVEL,
    Benefit,
    FeeTables,
    FeedbackRule,
    GradeLevel,
    GradeThreshold,
    GradingTables,
    MetricScale,
    UrgencyTier,
)

__all__ = [
    "default_fee_tables",
    "default_grading_tables",
    "load_fee_tables",
    "load_grade_levels",
    "load_grading_tables",
    "MAX_LEVEL",
    "METRIC_KEYS",
    "MIN_LEVEL",
    "Benefit",
    "FeeTables",
    "FeedbackRule",
    "GradeLevel",
    "GradeThreshold",
    "GradingTables",
    "MetricScale",
    "UrgencyTier",
]
