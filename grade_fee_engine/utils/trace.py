"""JSONL audit trail of grade / fee calculations run from the CLI.

Every line is one calculation:

    {"run_id": ..., "seq": 1, "at": ..., "operation": "fee",
     "summary": {"level": 3, "grade": "골드", "final_percent": 13.5},
     "inputs": {...}, "result": {...}}

`summary` pulls the few fields people grep for (level, grade name, score,
fee percent, upgrade flag) out of the full result, so a trace can be scanned
without parsing each nested result.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

# result key -> summary key, checked in this order
_SUMMARY_FIELDS = (
    ("current_level", "level"),
    ("weighted_score", "weighted_score"),
    ("final_percent", "final_percent"),
    ("urgency_tier", "urgency_tier"),
    ("upgrade", "upgrade"),
    ("target_level", "target_level"),
    ("total", "contractors"),
)


def summarize(result: Any) -> Dict[str, Any]:
    """Headline fields of a calculation result (empty for list results such as schedules)."""
    if not isinstance(result, dict):
        return {}
    summary: Dict[str, Any] = {}
    for key, name in _SUMMARY_FIELDS:
        if result.get(key) is not None:
            summary[name] = result[key]

    grade = result.get("current_grade") or result.get("grade_info")
    if isinstance(grade, dict):
        summary.setdefault("level", grade.get("level"))
        summary["grade"] = grade.get("name")
    return summary


class CalculationTrace:
    """Appends one JSON line per calculation; lines of one CLI run share a run_id."""

    def __init__(self, path: Path, enabled: bool = True):
        self.path = path
        self.enabled = enabled
        self.run_id = uuid.uuid4().hex[:12]
        self._seq = 0

    def record(self, operation: str, inputs: Dict[str, Any], result: Any) -> None:
        if not self.enabled:
            return
        self._seq += 1
        line = {
            "run_id": self.run_id,
            "seq": self._seq,
            "at": datetime.now(timezone.utc).isoformat(),
            "operation": operation,
            "summary": summarize(result),
            "inputs": inputs,
            "result": result,
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(line, ensure_ascii=False, default=str) + "\n")


def build_trace(path: Optional[str], enabled: bool = True) -> Optional[CalculationTrace]:
    """None when no --trace-path was given, so callers can just test `if trace:`."""
    if not path:
        return None
    return CalculationTrace(Path(path), enabled=enabled)
