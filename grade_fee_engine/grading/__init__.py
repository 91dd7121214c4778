from .engine import (
    GradeAnalysis,
    GradeStatistics,
    GradingEngine,
    Projection,
    RankedContractor,
    UpgradeProjection,
    analyze_contractor,
    calculate_weighted_score,
    default_engine,
    determine_level,
)
from .metrics import METRIC_DOMAINS, ContractorMetrics, as_metrics

__all__ = [
    "GradeAnalysis",
    "GradeStatistics",
    "GradingEngine",
    "Projection",
    "RankedContractor",
    "UpgradeProjection",
    "analyze_contractor",
    "calculate_weighted_score",
    "default_engine",
    "determine_level",
    "METRIC_DOMAINS",
    "ContractorMetrics",
    "as_metrics",
]
