import json

from grade_fee_engine.fees.engine import FeeEngine
from grade_fee_engine.grading.engine import GradingEngine
from grade_fee_engine.utils.trace import CalculationTrace, build_trace, summarize


def _lines(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_summary_of_fee_result():
    result = FeeEngine().calculate_by_urgency(100_000, "urgent", 3).to_dict()
    assert summarize(result) == {
        "level": 3,
        "grade": "골드",
        "final_percent": 22.5,
        "urgency_tier": "urgent",
    }


def test_summary_of_analysis():
    analysis = GradingEngine().analyze({"completedJobsCount": 8, "responseTime": 95}).to_dict()
    summary = summarize(analysis)
    assert summary["level"] == 1
    assert summary["grade"] == "브론즈"
    assert summary["weighted_score"] == analysis["weighted_score"]


def test_summary_of_list_result_is_empty():
    assert summarize([{"elapsed_seconds": 0, "percent": 10}]) == {}


def test_records_share_run_id_and_count_up(tmp_path):
    path = tmp_path / "nested" / "trace.jsonl"
    trace = CalculationTrace(path)
    trace.record("fee", {"level": 2}, {"final_percent": 9.5})
    trace.record("upgrade", {"current": 2, "target": 4}, {"upgrade": True, "target_level": 4})

    first, second = _lines(path)
    assert first["run_id"] == second["run_id"] == trace.run_id
    assert [first["seq"], second["seq"]] == [1, 2]
    assert second["summary"] == {"upgrade": True, "target_level": 4}


def test_separate_runs_get_separate_ids(tmp_path):
    path = tmp_path / "trace.jsonl"
    CalculationTrace(path).record("fee", {}, {})
    CalculationTrace(path).record("fee", {}, {})
    first, second = _lines(path)
    assert first["run_id"] != second["run_id"]


def test_disabled_trace_writes_nothing(tmp_path):
    path = tmp_path / "trace.jsonl"
    CalculationTrace(path, enabled=False).record("fee", {}, {"final_percent": 1})
    assert not path.exists()


def test_build_trace_without_path():
    assert build_trace(None) is None
    assert build_trace("") is None
