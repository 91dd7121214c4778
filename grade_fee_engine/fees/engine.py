# grade_fee_engine/fees/engine.py
"""
Urgent-fee calculation by contractor grade.

final_percent = base_percent * (1 - discount / 100), where discount is the
grade discount from grades.yaml. The result is floored at 0 and never exceeds
base_percent. Monetary breakdowns are derived from a caller-supplied total.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, List, Optional, Union

from .. import config
from ..errors import InvalidInput
from ..tables import default_fee_tables
from ..tables.schema import MAX_LEVEL, MIN_LEVEL, FeeTables, GradeLevel, UrgencyTier

_LOGGER = logging.getLogger(__name__)

TierLike = Union[UrgencyTier, str]


@dataclass(frozen=True)
class FeeBreakdown:
    base_fee: float = 0.0
    final_fee: float = 0.0
    discount_amount: float = 0.0
    savings_percent: float = 0.0


@dataclass(frozen=True)
class FeeCalculationResult:
    base_percent: float
    discount: float  # grade discount, percent
    final_percent: float
    grade_info: GradeLevel
    breakdown: FeeBreakdown
    total_amount: float = 0.0
    urgency_tier: Optional[UrgencyTier] = None
    currency: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base_percent": self.base_percent,
            "discount": self.discount,
            "final_percent": self.final_percent,
            "grade_info": {
                "level": self.grade_info.level,
                "name": self.grade_info.name,
                "color": self.grade_info.color,
                "discount": self.grade_info.discount,
            },
            "breakdown": {
                "base_fee": self.breakdown.base_fee,
                "final_fee": self.breakdown.final_fee,
                "discount_amount": self.breakdown.discount_amount,
                "savings_percent": self.breakdown.savings_percent,
            },
            "total_amount": self.total_amount,
            "urgency_tier": self.urgency_tier.value if self.urgency_tier else None,
            "currency": self.currency,
        }


@dataclass(frozen=True)
class UpgradeBenefit:
    upgrade: bool
    message: str = ""
    current_level: Optional[int] = None
    target_level: Optional[int] = None
    current_grade_name: str = ""
    target_grade_name: str = ""
    current_fee: Optional[float] = None
    target_fee: Optional[float] = None
    additional_discount: Optional[float] = None
    additional_discount_percent: Optional[float] = None


@dataclass(frozen=True)
class FeeComparisonRow:
    level: int
    grade_name: str
    discount: float
    color: str
    base_percent: float
    final_percent: float
    savings: float
    savings_percent: float = 0.0


@dataclass
class FeeEngine:
    """Grade-discounted urgent-fee calculator over injected fee tables."""

    tables: FeeTables = field(default_factory=default_fee_tables)
    currency: str = config.DEFAULT_CURRENCY

    # ------------------------------------------------------------------
    # Input handling
    # ------------------------------------------------------------------
    @staticmethod
    def _number(name: str, value: Any) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidInput(name, value, f"'{name}' must be a number, got {type(value).__name__}: {value!r}")
        if math.isnan(value) or math.isinf(value):
            raise InvalidInput(name, value, f"'{name}' must be finite, got {value!r}")
        return float(value)

    def _grade_level_or_none(self, name: str, level: Any) -> Optional[int]:
        number = self._number(name, level)
        if number.is_integer() and MIN_LEVEL <= number <= MAX_LEVEL:
            return int(number)
        return None

    def _resolve_level(self, level: Any) -> int:
        resolved = self._grade_level_or_none("level", level)
        if resolved is None:
            _LOGGER.warning("Invalid contractor level %r, using level %s", level, MIN_LEVEL)
            return MIN_LEVEL
        return resolved

    def _resolve_base_percent(self, base_percent: Any) -> float:
        value = self._number("base_percent", base_percent)
        if value < 0 or value > 100:
            _LOGGER.warning("Invalid base percent %r, using 0", base_percent)
            return 0.0
        return value

    @staticmethod
    def _resolve_tier(tier: TierLike) -> UrgencyTier:
        if isinstance(tier, UrgencyTier):
            return tier
        try:
            return UrgencyTier(str(tier).strip().lower())
        except ValueError:
            raise InvalidInput("urgency_tier", tier, f"Unknown urgency tier: {tier!r}") from None

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def grade_info(self, level: Any) -> GradeLevel:
        return self.tables.levels[self._resolve_level(level)]

    def get_grade_discount(self, level: Any) -> float:
        return self.grade_info(level).discount

    def get_urgency_base_rate(self, tier: TierLike) -> float:
        return self.tables.urgency_base_rates[self._resolve_tier(tier)]

    # ------------------------------------------------------------------
    # Percentages
    # ------------------------------------------------------------------
    def calculate_final_percent(self, base_percent: Any, level: Any) -> float:
        base = self._resolve_base_percent(base_percent)
        discount = self.get_grade_discount(level)
        final = max(base * (1 - discount / 100.0), 0.0)
        return min(round(final, 2), base)

    def calculate_urgent_fee_by_level(self, tier: TierLike, level: Any) -> float:
        return self.calculate_final_percent(self.get_urgency_base_rate(tier), level)

    # ------------------------------------------------------------------
    # Money
    # ------------------------------------------------------------------
    def calculate(
        self,
        total_amount: Any,
        base_percent: Any,
        level: Any,
        *,
        urgency_tier: Optional[TierLike] = None,
    ) -> FeeCalculationResult:
        total = self._number("total_amount", total_amount)
        if total < 0:
            _LOGGER.warning("Negative total amount %r treated as 0", total_amount)
            total = 0.0

        base = self._resolve_base_percent(base_percent)
        grade = self.grade_info(level)
        final = self.calculate_final_percent(base, grade.level)

        base_fee = total * base / 100.0
        final_fee = total * final / 100.0
        discount_amount = base_fee - final_fee
        savings = (discount_amount / base_fee) * 100.0 if base_fee > 0 else 0.0

        return FeeCalculationResult(
            base_percent=base,
            discount=grade.discount,
            final_percent=final,
            grade_info=grade,
            breakdown=FeeBreakdown(
                base_fee=base_fee,
                final_fee=final_fee,
                discount_amount=discount_amount,
                savings_percent=savings,
            ),
            total_amount=total,
            urgency_tier=self._resolve_tier(urgency_tier) if urgency_tier is not None else None,
            currency=self.currency,
        )

    def calculate_by_urgency(self, total_amount: Any, tier: TierLike, level: Any) -> FeeCalculationResult:
        resolved = self._resolve_tier(tier)
        return self.calculate(total_amount, self.tables.urgency_base_rates[resolved], level, urgency_tier=resolved)

    # ------------------------------------------------------------------
    # Upgrades / comparisons
    # ------------------------------------------------------------------
    def calculate_upgrade_benefit(self, current_level: Any, target_level: Any, base_percent: Any) -> UpgradeBenefit:
        # no level-1 fallback here: a bad level would turn into a "downgrade"
        current = self._grade_level_or_none("current_level", current_level)
        target = self._grade_level_or_none("target_level", target_level)
        if current is None or target is None:
            return UpgradeBenefit(upgrade=False, message="유효하지 않은 등급입니다.")
        if target <= current:
            return UpgradeBenefit(upgrade=False, message="목표 등급이 현재 등급보다 높아야 합니다.")

        base = self._resolve_base_percent(base_percent)
        current_fee = self.calculate_final_percent(base, current)
        target_fee = self.calculate_final_percent(base, target)
        additional = round(current_fee - target_fee, 2)
        current_grade = self.tables.levels[current]
        target_grade = self.tables.levels[target]

        return UpgradeBenefit(
            upgrade=True,
            message=f"{current_grade.name} → {target_grade.name}: 긴급 수수료 {additional:g}%p 추가 절감",
            current_level=current_grade.level,
            target_level=target_grade.level,
            current_grade_name=current_grade.name,
            target_grade_name=target_grade.name,
            current_fee=current_fee,
            target_fee=target_fee,
            additional_discount=additional,
            additional_discount_percent=round(additional / base * 100.0, 1) if base > 0 else 0.0,
        )

    def comparison_table(self, base_percent: Any) -> List[FeeComparisonRow]:
        base = self._resolve_base_percent(base_percent)
        rows: List[FeeComparisonRow] = []
        for level in sorted(self.tables.levels):
            grade = self.tables.levels[level]
            final = self.calculate_final_percent(base, level)
            savings = round(base - final, 2)
            rows.append(
                FeeComparisonRow(
                    level=level,
                    grade_name=grade.name,
                    discount=grade.discount,
                    color=grade.color,
                    base_percent=base,
                    final_percent=final,
                    savings=savings,
                    savings_percent=round(savings / base * 100.0, 1) if base > 0 else 0.0,
                )
            )
        return rows

    def urgency_grade_matrix(self) -> Dict[UrgencyTier, List[FeeComparisonRow]]:
        return {tier: self.comparison_table(rate) for tier, rate in self.tables.urgency_base_rates.items()}

    def benefit_description(self, level: Any) -> str:
        grade = self.grade_info(level)
        templates = self.tables.benefit_descriptions
        if grade.discount == 0:
            template = templates.get("no_discount", "{name}")
        else:
            template = templates.get("discount", "{name} -{discount}%")
        return template.format(name=grade.name, discount=f"{grade.discount:g}")


def format_fee_percent(percent: float) -> str:
    return f"{percent:.1f}%"


@lru_cache(maxsize=1)
def default_engine() -> FeeEngine:
    return FeeEngine()


def calculate_grade_fee(total_amount: Any, base_percent: Any, level: Any) -> FeeCalculationResult:
    return default_engine().calculate(total_amount, base_percent, level)


def calculate_urgency_grade_fee(total_amount: Any, urgency_tier: TierLike, level: Any) -> FeeCalculationResult:
    return default_engine().calculate_by_urgency(total_amount, urgency_tier, level)


def calculate_urgent_fee_by_level(urgency_tier: TierLike, level: Any) -> float:
    return default_engine().calculate_urgent_fee_by_level(urgency_tier, level)
