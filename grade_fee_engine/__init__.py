"""Contractor grading and grade-discounted urgent-fee calculations."""

from .errors import GradeFeeError, InvalidInput, TableError
from .fees import (
    FeeCalculationResult,
    FeeEngine,
    calculate_grade_fee,
    calculate_urgency_grade_fee,
    calculate_urgent_fee_by_level,
)
from .grading import ContractorMetrics, GradeAnalysis, GradingEngine, analyze_contractor
from .tables import GradeLevel, UrgencyTier

__all__ = [
    "GradeFeeError",
    "InvalidInput",
    "TableError",
    "FeeCalculationResult",
    "FeeEngine",
    "calculate_grade_fee",
    "calculate_urgency_grade_fee",
    "calculate_urgent_fee_by_level",
    "ContractorMetrics",
    "GradeAnalysis",
    "GradingEngine",
    "analyze_contractor",
    "GradeLevel",
    "UrgencyTier",
]
