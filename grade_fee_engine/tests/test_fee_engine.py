import pytest

from grade_fee_engine.errors import InvalidInput
from grade_fee_engine.fees.engine import (
    FeeEngine,
    calculate_grade_fee,
    calculate_urgency_grade_fee,
    calculate_urgent_fee_by_level,
    format_fee_percent,
)
from grade_fee_engine.tables.schema import UrgencyTier


@pytest.fixture
def fees():
    return FeeEngine()


def test_grade_discount_table(fees):
    assert [fees.get_grade_discount(level) for level in range(1, 6)] == [0, 5, 10, 15, 20]


@pytest.mark.parametrize("level", [0, 6, -1, 2.5])
def test_out_of_range_level_behaves_like_level_one(fees, level):
    assert fees.get_grade_discount(level) == 0
    assert fees.calculate_final_percent(20, level) == 20


def test_integral_float_level_is_accepted(fees):
    assert fees.get_grade_discount(3.0) == 10


@pytest.mark.parametrize("bad", ["3", None, True])
def test_non_numeric_level_raises(fees, bad):
    with pytest.raises(InvalidInput):
        fees.calculate_final_percent(10, bad)


def test_final_percent_applies_proportional_discount(fees):
    assert fees.calculate_final_percent(15, 3) == pytest.approx(13.5)
    assert fees.calculate_final_percent(20, 5) == pytest.approx(16.0)
    assert fees.calculate_final_percent(0, 5) == 0


def test_base_percent_outside_range_is_treated_as_zero(fees):
    assert fees.calculate_final_percent(120, 2) == 0
    assert fees.calculate_final_percent(-5, 2) == 0


def test_urgency_base_rates(fees):
    rates = {tier: fees.get_urgency_base_rate(tier) for tier in UrgencyTier}
    assert rates == {
        UrgencyTier.LOW: 5,
        UrgencyTier.MEDIUM: 10,
        UrgencyTier.HIGH: 15,
        UrgencyTier.URGENT: 25,
        UrgencyTier.EMERGENCY: 35,
    }
    assert fees.get_urgency_base_rate(" Emergency ") == 35


def test_unknown_urgency_tier_raises(fees):
    with pytest.raises(InvalidInput) as exc:
        fees.get_urgency_base_rate("whenever")
    assert exc.value.field == "urgency_tier"


def test_emergency_fee_for_bronze_and_diamond():
    assert calculate_urgent_fee_by_level("emergency", 1) == 35
    diamond = calculate_urgent_fee_by_level(UrgencyTier.EMERGENCY, 5)
    assert diamond < 35
    assert diamond == pytest.approx(28.0)


def test_calculate_breakdown_for_gold_contractor():
    result = calculate_grade_fee(1_000_000, 15, 3)

    assert result.base_percent == 15
    assert result.discount == 10
    assert result.final_percent == pytest.approx(13.5)
    assert result.grade_info.name == "골드"
    assert result.breakdown.base_fee == pytest.approx(150_000)
    assert result.breakdown.final_fee == pytest.approx(150_000 * (1 - 10 / 100))
    assert result.breakdown.discount_amount == pytest.approx(15_000)
    assert result.breakdown.savings_percent == pytest.approx(10.0)
    assert result.currency == "KRW"
    assert result.urgency_tier is None


def test_calculate_by_urgency_records_the_tier():
    result = calculate_urgency_grade_fee(200_000, "urgent", 2)
    assert result.urgency_tier is UrgencyTier.URGENT
    assert result.base_percent == 25
    assert result.final_percent == pytest.approx(23.75)
    assert result.breakdown.base_fee == pytest.approx(50_000)
    assert result.to_dict()["urgency_tier"] == "urgent"


@pytest.mark.parametrize("total", [0, -1000])
def test_zero_or_negative_total_gives_zero_breakdown(fees, total):
    result = fees.calculate(total, 15, 4)
    b = result.breakdown
    assert (b.base_fee, b.final_fee, b.discount_amount, b.savings_percent) == (0, 0, 0, 0)
    assert result.final_percent == pytest.approx(12.75)


def test_non_numeric_total_raises(fees):
    with pytest.raises(InvalidInput):
        fees.calculate("1000", 10, 1)


def test_upgrade_benefit(fees):
    benefit = fees.calculate_upgrade_benefit(2, 4, 20)

    assert benefit.upgrade is True
    assert benefit.current_grade_name == "실버"
    assert benefit.target_grade_name == "플래티넘"
    assert benefit.current_fee == pytest.approx(19.0)
    assert benefit.target_fee == pytest.approx(17.0)
    assert benefit.additional_discount == pytest.approx(2.0)
    assert benefit.additional_discount_percent == pytest.approx(10.0)


@pytest.mark.parametrize("current, target", [(3, 2), (3, 3), (4, 6), (3, 3.5), (-5, 1), (0, 1), (2.5, 4)])
def test_upgrade_not_applicable(fees, current, target):
    benefit = fees.calculate_upgrade_benefit(current, target, 20)
    assert benefit.upgrade is False
    assert benefit.current_fee is None
    assert benefit.target_level is None
    assert benefit.additional_discount is None


def test_upgrade_with_invalid_level_never_reports_a_negative_saving(fees):
    benefit = fees.calculate_upgrade_benefit(3, 3.5, 20)
    assert benefit.upgrade is False
    assert benefit.message == "유효하지 않은 등급입니다."


def test_upgrade_accepts_integral_float_levels(fees):
    benefit = fees.calculate_upgrade_benefit(1.0, 5.0, 10)
    assert benefit.upgrade is True
    assert (benefit.current_level, benefit.target_level) == (1, 5)
    assert benefit.additional_discount == pytest.approx(2.0)


def test_comparison_table(fees):
    rows = fees.comparison_table(10)
    assert [r.level for r in rows] == [1, 2, 3, 4, 5]
    assert [r.final_percent for r in rows] == pytest.approx([10, 9.5, 9, 8.5, 8])
    assert [r.savings for r in rows] == pytest.approx([0, 0.5, 1, 1.5, 2])
    assert [r.savings_percent for r in rows] == pytest.approx([0, 5, 10, 15, 20])


def test_comparison_table_with_zero_base(fees):
    assert all(r.savings_percent == 0 for r in fees.comparison_table(0))


def test_urgency_grade_matrix_covers_every_tier(fees):
    matrix = fees.urgency_grade_matrix()
    assert set(matrix) == set(UrgencyTier)
    assert matrix[UrgencyTier.LOW][0].base_percent == 5
    assert matrix[UrgencyTier.EMERGENCY][4].final_percent == pytest.approx(28.0)


def test_benefit_description(fees):
    assert fees.benefit_description(1) == "브론즈 등급: 기본 긴급 수수료율 적용"
    assert fees.benefit_description(3) == "골드 등급: 긴급 수수료 10% 할인"


def test_format_fee_percent():
    assert format_fee_percent(12.345) == "12.3%"
    assert format_fee_percent(0) == "0.0%"


def test_currency_is_configurable():
    fees = FeeEngine(currency="USD")
    assert fees.calculate(100, 10, 1).currency == "USD"
