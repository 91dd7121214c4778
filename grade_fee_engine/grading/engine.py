# grade_fee_engine/grading/engine.py
"""
Contractor grading.

A contractor's level is the highest level whose *whole* threshold set is met
(levels are scanned 5 -> 1, level 1 is the floor). The weighted score is an
independent 0-100 composite: each metric is normalized to a 0-100 sub-score
and blended with the table weights.

Strengths / improvements are derived from the sub-scores and emitted in the
order of the feedback rules in grading.yaml, not by score magnitude.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .. import config
from ..tables import default_grading_tables
from ..tables.schema import MAX_LEVEL, METRIC_KEYS, MIN_LEVEL, Benefit, GradeLevel, GradeThreshold, GradingTables
from .metrics import METRIC_DOMAINS, ContractorMetrics, as_metrics, supplied_metrics

_LOGGER = logging.getLogger(__name__)

_AVERAGED_METRICS = ("average_rating", "photo_quality_score", "completed_jobs_count")


@dataclass(frozen=True)
class GradeAnalysis:
    current_level: int
    current_grade: GradeLevel
    weighted_score: float
    next_level: Optional[int]
    next_grade: Optional[GradeLevel]
    strengths: List[str] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)
    sub_scores: Dict[str, float] = field(default_factory=dict)
    requirements: Dict[str, float] = field(default_factory=dict)

    @property
    def display_score(self) -> float:
        return round(self.weighted_score, 1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_level": self.current_level,
            "current_grade": _grade_dict(self.current_grade),
            "weighted_score": self.weighted_score,
            "display_score": self.display_score,
            "next_level": self.next_level,
            "next_grade": _grade_dict(self.next_grade) if self.next_grade else None,
            "strengths": list(self.strengths),
            "improvements": list(self.improvements),
            "sub_scores": dict(self.sub_scores),
            "requirements": dict(self.requirements),
        }


@dataclass(frozen=True)
class Projection:
    """Expected metric improvements, plus optional per-month improvement rates."""

    completed_jobs_count: float = 0
    average_rating: float = 0.0
    photo_quality_score: float = 0.0
    response_time: float = 0  # minutes shaved off
    on_time_rate: float = 0.0
    satisfaction_rate: float = 0.0

    completed_jobs_per_month: Optional[float] = None
    rating_improvement_per_month: Optional[float] = None
    photo_quality_improvement_per_month: Optional[float] = None
    response_time_improvement_per_month: Optional[float] = None
    on_time_rate_improvement_per_month: Optional[float] = None
    satisfaction_rate_improvement_per_month: Optional[float] = None

    def monthly_rates(self) -> Dict[str, Optional[float]]:
        return {
            "completed_jobs_count": self.completed_jobs_per_month,
            "average_rating": self.rating_improvement_per_month,
            "photo_quality_score": self.photo_quality_improvement_per_month,
            "response_time": self.response_time_improvement_per_month,
            "on_time_rate": self.on_time_rate_improvement_per_month,
            "satisfaction_rate": self.satisfaction_rate_improvement_per_month,
        }


@dataclass(frozen=True)
class UpgradeProjection:
    can_upgrade: bool
    current_level: int
    next_level: Optional[int]
    message: str
    next_grade: Optional[GradeLevel] = None
    requirements: Dict[str, float] = field(default_factory=dict)
    projected_level: Optional[int] = None
    estimated_months: Optional[int] = None


@dataclass(frozen=True)
class RankedContractor:
    index: int
    level: int
    weighted_score: float
    requirement_gap: float
    contractor_id: Optional[str] = None


@dataclass(frozen=True)
class GradeStatistics:
    total: int
    by_level: Dict[int, int]
    average_scores: Dict[str, float]
    top_performers: List[RankedContractor]
    improvement_candidates: List[RankedContractor]


def _grade_dict(grade: GradeLevel) -> Dict[str, Any]:
    return {
        "level": grade.level,
        "name": grade.name,
        "description": grade.description,
        "color": grade.color,
        "discount": grade.discount,
    }


class GradingEngine:
    """Classifies contractor metrics against injected grading tables."""

    def __init__(
        self,
        tables: Optional[GradingTables] = None,
        *,
        strength_threshold: Optional[float] = None,
        weakness_threshold: Optional[float] = None,
    ):
        self.tables = tables or default_grading_tables()
        self.strength_threshold = config.STRENGTH_THRESHOLD if strength_threshold is None else strength_threshold
        self.weakness_threshold = config.WEAKNESS_THRESHOLD if weakness_threshold is None else weakness_threshold

    # ------------------------------------------------------------------
    # Level
    # ------------------------------------------------------------------
    @staticmethod
    def _meets(m: ContractorMetrics, t: GradeThreshold) -> bool:
        return (
            m.completed_jobs_count >= t.min_completed_jobs
            and m.average_rating >= t.min_average_rating
            and m.photo_quality_score >= t.min_photo_quality_score
            and m.response_time <= t.max_response_time
            and m.on_time_rate >= t.min_on_time_rate
            and m.satisfaction_rate >= t.min_satisfaction_rate
        )

    def determine_level(self, metrics: Any) -> GradeLevel:
        m = as_metrics(metrics).clamped()
        for level in range(MAX_LEVEL, MIN_LEVEL - 1, -1):
            if self._meets(m, self.tables.thresholds[level]):
                return self.tables.levels[level]
        return self.tables.levels[MIN_LEVEL]

    # ------------------------------------------------------------------
    # Weighted score
    # ------------------------------------------------------------------
    def _normalize(self, key: str, value: float) -> float:
        scale = self.tables.scales[key]
        if scale.kind == "inverse":
            score = 100.0 - (value / scale.zero_at) * 100.0
        else:
            score = (value / scale.full_at) * 100.0
        return max(0.0, min(score, 100.0))

    def sub_scores(self, metrics: Any) -> Dict[str, float]:
        m = as_metrics(metrics).clamped()
        return {key: self._normalize(key, getattr(m, key)) for key in METRIC_KEYS}

    def calculate_weighted_score(self, metrics: Any) -> float:
        scores = self.sub_scores(metrics)
        total = sum(scores[key] * weight for key, weight in self.tables.weights.items())
        return max(0.0, min(total, 100.0))

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------
    def next_level_requirements(self, metrics: Any, level: int) -> Dict[str, float]:
        """How far each metric is from the thresholds of `level + 1` (empty at the top level)."""
        if level >= MAX_LEVEL:
            return {}
        m = as_metrics(metrics).clamped()
        t = self.tables.thresholds[level + 1]
        return {
            "completed_jobs_count": max(0.0, t.min_completed_jobs - m.completed_jobs_count),
            "average_rating": max(0.0, t.min_average_rating - m.average_rating),
            "photo_quality_score": max(0.0, t.min_photo_quality_score - m.photo_quality_score),
            "response_time": max(0.0, m.response_time - t.max_response_time),
            "on_time_rate": max(0.0, t.min_on_time_rate - m.on_time_rate),
            "satisfaction_rate": max(0.0, t.min_satisfaction_rate - m.satisfaction_rate),
        }

    def _feedback(self, scores: Mapping[str, float]) -> Tuple[List[str], List[str]]:
        strengths: List[str] = []
        improvements: List[str] = []
        for rule in self.tables.feedback:
            score = scores[rule.metric]
            if score >= self.strength_threshold:
                strengths.append(rule.strength)
            elif score < self.weakness_threshold:
                improvements.append(rule.improvement)
        return strengths, improvements

    def analyze(self, metrics: Any) -> GradeAnalysis:
        m = as_metrics(metrics)
        current = self.determine_level(m)
        scores = self.sub_scores(m)
        weighted = self.calculate_weighted_score(m)
        strengths, improvements = self._feedback(scores)
        next_level = current.level + 1 if current.level < MAX_LEVEL else None

        analysis = GradeAnalysis(
            current_level=current.level,
            current_grade=current,
            weighted_score=weighted,
            next_level=next_level,
            next_grade=self.tables.levels[next_level] if next_level else None,
            strengths=strengths,
            improvements=improvements,
            sub_scores=scores,
            requirements=self.next_level_requirements(m, current.level),
        )
        _LOGGER.debug("Graded contractor: level=%s score=%.2f", analysis.current_level, weighted)
        return analysis

    def grade_benefits(self, level: int) -> Tuple[Benefit, ...]:
        grade = self.tables.levels.get(level)
        if grade is None:
            _LOGGER.warning("Unknown grade level %r, using level %s benefits", level, MIN_LEVEL)
            grade = self.tables.levels[MIN_LEVEL]
        return grade.benefits

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------
    def project_upgrade(self, metrics: Any, projection: Optional[Projection] = None) -> UpgradeProjection:
        m = as_metrics(metrics).clamped()
        analysis = self.analyze(m)
        if analysis.next_level is None:
            return UpgradeProjection(
                can_upgrade=False,
                current_level=analysis.current_level,
                next_level=None,
                message="이미 최고 등급입니다.",
            )

        p = projection or Projection()
        _, rt_max = METRIC_DOMAINS["response_time"]
        projected = replace(
            m,
            completed_jobs_count=m.completed_jobs_count + p.completed_jobs_count,
            average_rating=min(5.0, m.average_rating + p.average_rating),
            photo_quality_score=min(10.0, m.photo_quality_score + p.photo_quality_score),
            response_time=min(rt_max, max(1, m.response_time - p.response_time)),
            on_time_rate=min(100.0, m.on_time_rate + p.on_time_rate),
            satisfaction_rate=min(100.0, m.satisfaction_rate + p.satisfaction_rate),
        )
        projected_level = self.determine_level(projected).level
        can_upgrade = projected_level >= analysis.next_level
        next_grade = analysis.next_grade

        return UpgradeProjection(
            can_upgrade=can_upgrade,
            current_level=analysis.current_level,
            next_level=analysis.next_level,
            next_grade=next_grade,
            requirements=analysis.requirements,
            projected_level=projected_level,
            estimated_months=_estimate_months(analysis.requirements, p),
            message=(
                f"{next_grade.name} 등급 달성 가능"
                if can_upgrade
                else f"{next_grade.name} 등급 달성을 위해 추가 개선 필요"
            ),
        )

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------
    def grade_statistics(self, contractors: Iterable[Any], limit: Optional[int] = None) -> GradeStatistics:
        limit = config.TOP_PERFORMERS_LIMIT if limit is None else limit
        by_level = {level: 0 for level in range(MIN_LEVEL, MAX_LEVEL + 1)}
        ranked: List[RankedContractor] = []
        averaged: Dict[str, List[float]] = {key: [] for key in _AVERAGED_METRICS}

        for index, raw in enumerate(contractors):
            contractor_id = raw.get("id") if isinstance(raw, Mapping) else None
            m = as_metrics(raw)
            supplied = supplied_metrics(raw)
            for key, values in averaged.items():
                if key in supplied:
                    values.append(getattr(m, key))
            analysis = self.analyze(m)
            by_level[analysis.current_level] += 1
            ranked.append(
                RankedContractor(
                    index=index,
                    level=analysis.current_level,
                    weighted_score=analysis.weighted_score,
                    requirement_gap=sum(analysis.requirements.values()),
                    contractor_id=str(contractor_id) if contractor_id is not None else None,
                )
            )

        # contractors without a metric are left out of that metric's average
        average_scores = {key: sum(values) / len(values) for key, values in averaged.items() if values}

        top = sorted(ranked, key=lambda r: r.weighted_score, reverse=True)[:limit]
        candidates = sorted(
            (r for r in ranked if r.level < MAX_LEVEL),
            key=lambda r: r.requirement_gap,
        )[:limit]

        return GradeStatistics(
            total=len(ranked),
            by_level=by_level,
            average_scores=average_scores,
            top_performers=top,
            improvement_candidates=candidates,
        )


def _estimate_months(requirements: Mapping[str, float], projection: Projection) -> Optional[int]:
    estimates: List[int] = []
    for key, rate in projection.monthly_rates().items():
        gap = requirements.get(key, 0.0)
        if gap > 0 and rate:
            estimates.append(math.ceil(gap / rate))
    return max(estimates) if estimates else None


@lru_cache(maxsize=1)
def default_engine() -> GradingEngine:
    return GradingEngine()


def analyze_contractor(metrics: Any) -> GradeAnalysis:
    return default_engine().analyze(metrics)


def determine_level(metrics: Any) -> GradeLevel:
    return default_engine().determine_level(metrics)


def calculate_weighted_score(metrics: Any) -> float:
    return default_engine().calculate_weighted_score(metrics)
