import itertools

import pytest

from grade_fee_engine import (
    FeeEngine,
    GradingEngine,
    analyze_contractor,
    calculate_grade_fee,
    calculate_urgent_fee_by_level,
)
from grade_fee_engine.grading.metrics import ContractorMetrics

LEVEL_FIVE_FLOOR = {
    "completedJobsCount": 100,
    "averageRating": 4.5,
    "photoQualityScore": 4.8,
    "responseTime": 30,
    "onTimeRate": 95,
    "satisfactionRate": 90,
}

MID_CONTRACTOR = ContractorMetrics(30, 4.1, 4.2, 55, 85, 82)

# metric -> step that makes the contractor better
IMPROVEMENTS = {
    "completed_jobs_count": 7,
    "average_rating": 0.2,
    "photo_quality_score": 0.3,
    "response_time": -10,
    "on_time_rate": 4,
    "satisfaction_rate": 4,
}


@pytest.fixture(scope="module")
def grading():
    return GradingEngine()


@pytest.fixture(scope="module")
def fees():
    return FeeEngine()


@pytest.mark.parametrize(
    "bump",
    [
        {},
        {"completedJobsCount": 500},
        {"averageRating": 5.0, "photoQualityScore": 9.5},
        {"responseTime": 1, "onTimeRate": 100, "satisfactionRate": 100},
    ],
)
def test_meeting_every_level_five_threshold_gives_level_five(grading, bump):
    assert grading.determine_level({**LEVEL_FIVE_FLOOR, **bump}).level == 5


def test_all_zero_metrics(grading):
    zeros = dict.fromkeys(LEVEL_FIVE_FLOOR, 0)
    assert grading.determine_level(zeros).level == 1
    assert grading.calculate_weighted_score(zeros) == 0


@pytest.mark.parametrize("metric, step", IMPROVEMENTS.items())
def test_improving_one_metric_never_lowers_the_score(grading, metric, step):
    current = MID_CONTRACTOR
    score = grading.calculate_weighted_score(current)
    for _ in range(30):
        value = getattr(current, metric) + step
        if metric == "response_time" and value < 1:
            break
        current = current.__class__(**{**current.to_dict(), metric: value})
        next_score = grading.calculate_weighted_score(current)
        assert next_score >= score
        score = next_score


@pytest.mark.parametrize(
    "base, level",
    list(itertools.product([0, 0.5, 5, 12.3, 35, 99.99, 100], [1, 2, 3, 4, 5])),
)
def test_final_percent_never_exceeds_base(fees, base, level):
    assert fees.calculate_final_percent(base, level) <= base


def test_discounts_do_not_decrease_with_level(fees):
    discounts = [fees.get_grade_discount(level) for level in range(1, 6)]
    assert discounts[0] == 0
    assert discounts == sorted(discounts)


def test_upgrade_to_lower_grade_is_rejected(fees):
    for base in (0, 10, 35):
        assert fees.calculate_upgrade_benefit(3, 2, base).upgrade is False


@pytest.mark.parametrize(
    "total, base, level",
    [(1_000_000, 15, 3), (123_456.78, 7.5, 2), (99, 35, 5), (1, 100, 4), (50_000, 0, 1)],
)
def test_final_fee_plus_discount_is_base_fee(fees, total, base, level):
    b = fees.calculate(total, base, level).breakdown
    assert b.final_fee + b.discount_amount == pytest.approx(b.base_fee)


# ------------------------------------------------------------------
# Example scenarios
# ------------------------------------------------------------------
def test_scenario_top_contractor():
    analysis = analyze_contractor(
        {
            "completedJobsCount": 120,
            "averageRating": 4.7,
            "photoQualityScore": 4.9,
            "responseTime": 25,
            "onTimeRate": 98,
            "satisfactionRate": 95,
        }
    )
    assert analysis.current_level == 5
    assert analysis.current_grade.name == "다이아몬드"
    assert analysis.weighted_score >= 90


def test_scenario_new_contractor():
    analysis = analyze_contractor(
        {
            "completedJobsCount": 8,
            "averageRating": 3.2,
            "photoQualityScore": 2.8,
            "responseTime": 95,
            "onTimeRate": 65,
            "satisfactionRate": 70,
        }
    )
    assert analysis.current_level == 1
    assert analysis.improvements


def test_scenario_emergency_bronze(fees):
    assert fees.get_urgency_base_rate("emergency") == 35
    assert calculate_urgent_fee_by_level("emergency", 1) == 35


def test_scenario_emergency_diamond():
    assert calculate_urgent_fee_by_level("emergency", 5) < 35


def test_scenario_gold_breakdown(fees):
    result = calculate_grade_fee(1_000_000, 15, 3)
    discount = fees.get_grade_discount(3)
    b = result.breakdown

    assert b.base_fee == pytest.approx(150_000)
    assert b.final_fee == pytest.approx(150_000 * (1 - discount / 100))
    assert b.discount_amount == pytest.approx(150_000 - b.final_fee)
    assert b.savings_percent == pytest.approx(b.discount_amount / 150_000 * 100)
