"""Definition loader for grade / fee lookup tables.

Loads YAML/JSON definitions from grade_fee_engine/tables/definitions
(or config.TABLES_DIR when overridden).

The loader is strict:
- it validates required fields and table invariants
- it normalizes the schema into frozen dataclasses

If a definition is invalid it raises TableError with a readable message,
so CI/test runs fail fast.
"""

from __future__ import annotations

import json
import logging
import math
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List

import yaml

from .. import config
from ..errors import TableError
from .schema import (
    MAX_LEVEL,
    METRIC_KEYS,
    MIN_LEVEL,
    Benefit,
    FeeTables,
    FeedbackRule,
    GradeLevel,
    GradeThreshold,
    GradingTables,
    MetricScale,
    UrgencyTier,
)

_LOGGER = logging.getLogger(__name__)

GRADES_FILE = "grades.yaml"
GRADING_FILE = "grading.yaml"
FEES_FILE = "fees.yaml"

_WEIGHT_TOLERANCE = 1e-6


def _as_list(x: Any) -> List[Any]:
    if x is None:
        return []
    if isinstance(x, list):
        return x
    return [x]


def _require(obj: Dict[str, Any], key: str, *, ctx: str) -> Any:
    if key not in obj:
        raise TableError(f"Missing required key '{key}' in {ctx}")
    return obj[key]


def _number(value: Any, *, ctx: str) -> float:
    if isinstance(value, bool):
        raise TableError(f"Expected a number in {ctx}, got {value!r}")
    try:
        f = float(value)
    except (TypeError, ValueError):
        raise TableError(f"Expected a number in {ctx}, got {value!r}") from None
    if math.isnan(f) or math.isinf(f):
        raise TableError(f"Expected a finite number in {ctx}, got {value!r}")
    return f


def _load_one(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise TableError(f"Table definition not found: {path}")
    raw = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(raw) or {}
        if not isinstance(data, dict):
            raise TableError(f"Top-level YAML must be a mapping in {path}")
        return data
    if path.suffix.lower() == ".json":
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise TableError(f"Top-level JSON must be an object in {path}")
        return data
    raise TableError(f"Unsupported definition file type: {path}")


def _parse_benefits(items: Iterable[Any], *, ctx: str) -> tuple:
    out: List[Benefit] = []
    for i, it in enumerate(items):
        bctx = f"{ctx}.benefits[{i}]"
        if isinstance(it, str):
            out.append(Benefit(title=it))
            continue
        if not isinstance(it, dict):
            raise TableError(f"benefit must be string or object in {bctx}")
        out.append(Benefit(title=str(_require(it, "title", ctx=bctx)), description=str(it.get("description") or "")))
    return tuple(out)


def _check_levels(levels: Iterable[int], *, ctx: str) -> None:
    expected = set(range(MIN_LEVEL, MAX_LEVEL + 1))
    got = set(levels)
    if got != expected:
        raise TableError(f"Levels must be exactly {sorted(expected)} in {ctx}, got {sorted(got)}")


def parse_grade_levels(data: Dict[str, Any], *, ctx: str) -> Dict[int, GradeLevel]:
    out: Dict[int, GradeLevel] = {}
    for i, it in enumerate(_as_list(_require(data, "levels", ctx=ctx))):
        lctx = f"{ctx}.levels[{i}]"
        if not isinstance(it, dict):
            raise TableError(f"level must be an object in {lctx}")
        level = int(_number(_require(it, "level", ctx=lctx), ctx=f"{lctx}.level"))
        if level in out:
            raise TableError(f"Duplicate level {level} in {ctx}")
        discount = _number(it.get("discount", 0), ctx=f"{lctx}.discount")
        if not 0 <= discount <= 100:
            raise TableError(f"discount must be within [0, 100] in {lctx}")
        out[level] = GradeLevel(
            level=level,
            name=str(_require(it, "name", ctx=lctx)),
            description=str(it.get("description") or ""),
            color=str(it.get("color") or ""),
            discount=discount,
            benefits=_parse_benefits(_as_list(it.get("benefits")), ctx=lctx),
        )
    _check_levels(out.keys(), ctx=ctx)

    previous = -1.0
    for level in sorted(out):
        if out[level].discount < previous:
            raise TableError(f"Grade discounts must not decrease with level in {ctx} (level {level})")
        previous = out[level].discount
    return out


def _parse_thresholds(items: Iterable[Any], *, ctx: str) -> Dict[int, GradeThreshold]:
    out: Dict[int, GradeThreshold] = {}
    for i, it in enumerate(items):
        tctx = f"{ctx}.thresholds[{i}]"
        if not isinstance(it, dict):
            raise TableError(f"threshold must be an object in {tctx}")
        level = int(_number(_require(it, "level", ctx=tctx), ctx=f"{tctx}.level"))
        out[level] = GradeThreshold(
            level=level,
            min_completed_jobs=_number(it.get("min_completed_jobs", 0), ctx=tctx),
            min_average_rating=_number(it.get("min_average_rating", 0), ctx=tctx),
            min_photo_quality_score=_number(it.get("min_photo_quality_score", 0), ctx=tctx),
            max_response_time=_number(_require(it, "max_response_time", ctx=tctx), ctx=tctx),
            min_on_time_rate=_number(it.get("min_on_time_rate", 0), ctx=tctx),
            min_satisfaction_rate=_number(it.get("min_satisfaction_rate", 0), ctx=tctx),
        )
    _check_levels(out.keys(), ctx=f"{ctx}.thresholds")
    return out


def _parse_weights(obj: Any, *, ctx: str) -> Dict[str, float]:
    if not isinstance(obj, dict):
        raise TableError(f"weights must be a mapping in {ctx}")
    out: Dict[str, float] = {}
    for key, value in obj.items():
        if key not in METRIC_KEYS:
            raise TableError(f"Unknown metric '{key}' in {ctx}.weights")
        w = _number(value, ctx=f"{ctx}.weights.{key}")
        if w < 0:
            raise TableError(f"Weight for '{key}' must be non-negative in {ctx}")
        out[key] = w
    total = sum(out.values())
    if abs(total - 1.0) > _WEIGHT_TOLERANCE:
        raise TableError(f"weights must sum to 1.0 in {ctx}, got {total:.6f}")
    return out


def _parse_scales(obj: Any, *, ctx: str) -> Dict[str, MetricScale]:
    if not isinstance(obj, dict):
        raise TableError(f"scales must be a mapping in {ctx}")
    out: Dict[str, MetricScale] = {}
    for key in METRIC_KEYS:
        sctx = f"{ctx}.scales.{key}"
        it = _require(obj, key, ctx=f"{ctx}.scales")
        if not isinstance(it, dict):
            raise TableError(f"scale must be an object in {sctx}")
        kind = str(it.get("kind") or "linear").strip().lower()
        if kind == "linear":
            full_at = _number(_require(it, "full_at", ctx=sctx), ctx=sctx)
            if full_at <= 0:
                raise TableError(f"full_at must be positive in {sctx}")
            out[key] = MetricScale(metric=key, kind=kind, full_at=full_at)
        elif kind == "inverse":
            zero_at = _number(_require(it, "zero_at", ctx=sctx), ctx=sctx)
            if zero_at <= 0:
                raise TableError(f"zero_at must be positive in {sctx}")
            out[key] = MetricScale(metric=key, kind=kind, zero_at=zero_at)
        else:
            raise TableError(f"Unknown scale kind '{kind}' in {sctx}")
    return out


def _parse_feedback(items: Iterable[Any], *, ctx: str) -> List[FeedbackRule]:
    out: List[FeedbackRule] = []
    for i, it in enumerate(items):
        fctx = f"{ctx}.feedback[{i}]"
        if not isinstance(it, dict):
            raise TableError(f"feedback rule must be an object in {fctx}")
        metric = str(_require(it, "metric", ctx=fctx)).strip()
        if metric not in METRIC_KEYS:
            raise TableError(f"Unknown metric '{metric}' in {fctx}")
        out.append(
            FeedbackRule(
                metric=metric,
                strength=str(_require(it, "strength", ctx=fctx)),
                improvement=str(_require(it, "improvement", ctx=fctx)),
            )
        )
    return out


def _parse_urgency_rates(obj: Any, *, ctx: str) -> Dict[UrgencyTier, float]:
    if not isinstance(obj, dict):
        raise TableError(f"urgency_base_rates must be a mapping in {ctx}")
    out: Dict[UrgencyTier, float] = {}
    for key, value in obj.items():
        try:
            tier = UrgencyTier(str(key).strip().lower())
        except ValueError:
            raise TableError(f"Unknown urgency tier '{key}' in {ctx}") from None
        rate = _number(value, ctx=f"{ctx}.urgency_base_rates.{key}")
        if not 0 <= rate <= 100:
            raise TableError(f"Urgency base rate for '{key}' must be within [0, 100] in {ctx}")
        out[tier] = rate
    missing = [t.value for t in UrgencyTier if t not in out]
    if missing:
        raise TableError(f"Missing urgency tiers {missing} in {ctx}")
    return out


def load_grade_levels(definitions_dir: Path | None = None) -> Dict[int, GradeLevel]:
    path = Path(definitions_dir or config.TABLES_DIR) / GRADES_FILE
    return parse_grade_levels(_load_one(path), ctx=f"definition({path.name})")


def load_grading_tables(definitions_dir: Path | None = None) -> GradingTables:
    base = Path(definitions_dir or config.TABLES_DIR)
    levels = load_grade_levels(base)
    path = base / GRADING_FILE
    data = _load_one(path)
    ctx = f"definition({path.name})"
    tables = GradingTables(
        levels=levels,
        thresholds=_parse_thresholds(_as_list(_require(data, "thresholds", ctx=ctx)), ctx=ctx),
        weights=_parse_weights(_require(data, "weights", ctx=ctx), ctx=ctx),
        scales=_parse_scales(_require(data, "scales", ctx=ctx), ctx=ctx),
        feedback=_parse_feedback(_as_list(data.get("feedback")), ctx=ctx),
        source_file=path.name,
    )
    _LOGGER.debug("Loaded grading tables from %s", path)
    return tables


def load_fee_tables(definitions_dir: Path | None = None) -> FeeTables:
    base = Path(definitions_dir or config.TABLES_DIR)
    levels = load_grade_levels(base)
    path = base / FEES_FILE
    data = _load_one(path)
    ctx = f"definition({path.name})"
    descriptions = data.get("benefit_descriptions") or {}
    if not isinstance(descriptions, dict):
        raise TableError(f"benefit_descriptions must be a mapping in {ctx}")
    tables = FeeTables(
        levels=levels,
        urgency_base_rates=_parse_urgency_rates(_require(data, "urgency_base_rates", ctx=ctx), ctx=ctx),
        benefit_descriptions={str(k): str(v) for k, v in descriptions.items()},
        source_file=path.name,
    )
    _LOGGER.debug("Loaded fee tables from %s", path)
    return tables


@lru_cache(maxsize=1)
def default_grading_tables() -> GradingTables:
    return load_grading_tables()


@lru_cache(maxsize=1)
def default_fee_tables() -> FeeTables:
    return load_fee_tables()
