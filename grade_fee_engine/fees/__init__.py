from .engine import (
    FeeBreakdown,
    FeeCalculationResult,
    FeeComparisonRow,
    FeeEngine,
    UpgradeBenefit,
    calculate_grade_fee,
    calculate_urgency_grade_fee,
    calculate_urgent_fee_by_level,
    default_engine,
    format_fee_percent,
)
from .escalation import EscalationPlan, escalated_fee_percent, manual_increase

__all__ = [
    "FeeBreakdown",
    "FeeCalculationResult",
    "FeeComparisonRow",
    "FeeEngine",
    "UpgradeBenefit",
    "calculate_grade_fee",
    "calculate_urgency_grade_fee",
    "calculate_urgent_fee_by_level",
    "default_engine",
    "format_fee_percent",
    "EscalationPlan",
    "escalated_fee_percent",
    "manual_increase",
]
