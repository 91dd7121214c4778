import math

import pytest

from grade_fee_engine.errors import InvalidInput
from grade_fee_engine.grading.metrics import WORST_RESPONSE_TIME, ContractorMetrics


def test_from_mapping_accepts_camel_case_contractor_documents():
    m = ContractorMetrics.from_mapping(
        {
            "completedJobsCount": 12,
            "averageRating": 4.1,
            "photoQualityScore": 3.9,
            "responseTime": 40,
            "onTimeRate": 88,
            "satisfactionRate": 91,
            "name": "ignored",
        }
    )
    assert m == ContractorMetrics(12, 4.1, 3.9, 40, 88, 91)


def test_missing_metrics_default_to_zero_and_worst_response_time():
    m = ContractorMetrics.from_mapping({"averageRating": 4.0, "onTimeRate": None})
    assert m.average_rating == 4.0
    assert m.completed_jobs_count == 0
    assert m.on_time_rate == 0.0
    assert m.response_time == WORST_RESPONSE_TIME


def test_non_positive_response_time_is_treated_as_missing():
    assert ContractorMetrics.from_mapping({"responseTime": 0}).response_time == WORST_RESPONSE_TIME
    assert ContractorMetrics.from_mapping({"responseTime": -5}).response_time == WORST_RESPONSE_TIME


@pytest.mark.parametrize("bad", ["4.5", True, [4], {"v": 1}, math.nan, math.inf])
def test_non_numeric_metric_raises_invalid_input(bad):
    with pytest.raises(InvalidInput) as exc:
        ContractorMetrics.from_mapping({"averageRating": bad})
    assert exc.value.field == "average_rating"


def test_constructor_rejects_non_numeric_values():
    with pytest.raises(InvalidInput):
        ContractorMetrics(average_rating="great")


def test_non_mapping_input_raises_invalid_input():
    with pytest.raises(InvalidInput):
        ContractorMetrics.from_mapping([1, 2, 3])


def test_clamped_bounds_every_metric_to_its_domain():
    m = ContractorMetrics(
        completed_jobs_count=5000,
        average_rating=7.5,
        photo_quality_score=-1,
        response_time=1000,
        on_time_rate=120,
        satisfaction_rate=-3,
    ).clamped()
    assert m.completed_jobs_count == 1000
    assert m.average_rating == 5.0
    assert m.photo_quality_score == 0.0
    assert m.response_time == 480
    assert m.on_time_rate == 100.0
    assert m.satisfaction_rate == 0.0


def test_clamped_returns_same_instance_when_in_range():
    m = ContractorMetrics(10, 4.0, 4.0, 30, 90, 90)
    assert m.clamped() is m
