#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Contractor grade / urgent-fee calculator – CLI

Flow:
- Loads the lookup tables (grades.yaml, grading.yaml, fees.yaml), from the
  package or from --tables-dir.
- Runs one calculation (analyze / fee / urgency-fee / upgrade / compare /
  escalate / stats).
- Prints a Markdown report or JSON, and optionally appends the calculation to
  a JSONL trace.
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from rich.console import Console
from rich.markup import escape

from .config import DEFAULT_LOG_LEVEL, TRACE_ENABLED, URGENT_FEE_STEP_PERCENT, URGENT_FEE_STEP_SECONDS
from .errors import GradeFeeError, InvalidInput
from .fees.engine import FeeEngine, format_fee_percent
from .fees.escalation import EscalationPlan
from .grading.engine import GradingEngine, Projection
from .grading.metrics import ContractorMetrics
from .reporting.format import (
    render_analysis,
    render_comparison_table,
    render_fee_result,
    render_schedule,
    render_urgency_matrix,
)
from .tables import load_fee_tables, load_grading_tables
from .tables.schema import UrgencyTier
from .utils.trace import build_trace

console = Console()
logger = logging.getLogger("grade_fee_engine")


# --------------------------------------------------------------------
# Argument parsing
# --------------------------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="grade-fee",
        description=(
            "Contractor grade & urgent-fee calculator\n\n"
            "- analyze: grade a contractor from performance metrics\n"
            "- fee / urgency-fee: grade-discounted urgent fee and money breakdown\n"
            "- upgrade / compare: what a higher grade is worth\n"
            "- escalate: urgent-fee auto-increase schedule for an open job\n"
            "- stats: grade distribution over many contractors"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--output-format",
        choices=["markdown", "json"],
        default="markdown",
        help="Markdown report (default) or JSON.",
    )
    parser.add_argument(
        "--log-level",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        default=DEFAULT_LOG_LEVEL.upper(),
        help="Logging level for internal messages.",
    )
    parser.add_argument(
        "--tables-dir",
        type=str,
        default=None,
        help="Folder with grades.yaml / grading.yaml / fees.yaml (default: packaged tables).",
    )
    parser.add_argument(
        "--trace-path",
        type=str,
        default=None,
        help="Append each calculation to this JSONL file.",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("analyze", help="Grade one contractor.")
    p.add_argument("--metrics-file", type=str, default=None, help="JSON/YAML contractor metrics ('-' = stdin).")
    p.add_argument("--completed-jobs", type=int, default=None)
    p.add_argument("--rating", type=float, default=None)
    p.add_argument("--photo-quality", type=float, default=None)
    p.add_argument("--response-time", type=float, default=None, help="Average response time, minutes.")
    p.add_argument("--on-time-rate", type=float, default=None)
    p.add_argument("--satisfaction-rate", type=float, default=None)
    p.add_argument(
        "--projection-file",
        type=str,
        default=None,
        help="JSON/YAML expected improvements; adds an upgrade projection.",
    )

    p = sub.add_parser("fee", help="Urgent fee for a base percent and contractor level.")
    p.add_argument("--total", type=float, required=True, help="Total job amount.")
    p.add_argument("--base-percent", type=float, required=True)
    p.add_argument("--level", type=int, required=True)

    p = sub.add_parser("urgency-fee", help="Urgent fee for an urgency tier and contractor level.")
    p.add_argument("--total", type=float, required=True, help="Total job amount.")
    p.add_argument("--tier", choices=[t.value for t in UrgencyTier], required=True)
    p.add_argument("--level", type=int, required=True)

    p = sub.add_parser("upgrade", help="Fee benefit of moving to a higher grade.")
    p.add_argument("--current", type=int, required=True)
    p.add_argument("--target", type=int, required=True)
    p.add_argument("--base-percent", type=float, required=True)

    p = sub.add_parser("compare", help="Per-grade fee comparison table.")
    group = p.add_mutually_exclusive_group(required=True)
    group.add_argument("--base-percent", type=float)
    group.add_argument("--all-tiers", action="store_true", help="One table per urgency tier.")

    p = sub.add_parser("escalate", help="Urgent-fee auto-increase for an open job.")
    p.add_argument("--start", type=float, required=True, help="Initial urgent fee percent.")
    p.add_argument("--max", type=float, required=True, help="Maximum urgent fee percent.")
    p.add_argument("--elapsed-minutes", type=float, default=None, help="Fee at this point (default: full schedule).")
    p.add_argument("--step-minutes", type=int, default=URGENT_FEE_STEP_SECONDS // 60)
    p.add_argument("--step-percent", type=float, default=URGENT_FEE_STEP_PERCENT)

    p = sub.add_parser("stats", help="Grade statistics over a list of contractors.")
    p.add_argument("--contractors-file", type=str, required=True, help="JSON/YAML list of contractor metrics.")

    return parser


# --------------------------------------------------------------------
# Helpers
# --------------------------------------------------------------------
def _read_document(path: str) -> Any:
    """JSON or YAML from a file, or from stdin when path is '-'."""
    raw = sys.stdin.read() if path == "-" else Path(path).read_text(encoding="utf-8")
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError as ex:
        raise InvalidInput("document", path, f"Could not parse {path}: {ex}") from ex


def _metrics_from_args(args: argparse.Namespace) -> ContractorMetrics:
    data: Dict[str, Any] = {}
    if args.metrics_file:
        doc = _read_document(args.metrics_file)
        if not isinstance(doc, dict):
            raise InvalidInput("metrics_file", args.metrics_file, "Metrics file must contain a mapping")
        data.update(doc)
    overrides = {
        "completed_jobs_count": args.completed_jobs,
        "average_rating": args.rating,
        "photo_quality_score": args.photo_quality,
        "response_time": args.response_time,
        "on_time_rate": args.on_time_rate,
        "satisfaction_rate": args.satisfaction_rate,
    }
    data.update({k: v for k, v in overrides.items() if v is not None})
    return ContractorMetrics.from_mapping(data)


def _projection_from_file(path: str) -> Projection:
    doc = _read_document(path)
    if not isinstance(doc, dict):
        raise InvalidInput("projection_file", path, "Projection file must contain a mapping")
    known = set(Projection.__dataclass_fields__)
    unknown = sorted(set(doc) - known)
    if unknown:
        raise InvalidInput("projection_file", unknown, f"Unknown projection keys: {', '.join(unknown)}")
    for key, value in doc.items():
        if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float))):
            raise InvalidInput(key, value, f"Projection value '{key}' must be a number, got {value!r}")
    return Projection(**doc)


def _emit(args: argparse.Namespace, markdown: str, payload: Any) -> None:
    if args.output_format == "json":
        text = json.dumps(payload, ensure_ascii=False, indent=2, default=str)
        console.print(text, markup=False, highlight=False, soft_wrap=True)
    else:
        console.print(markdown, markup=False, highlight=False, soft_wrap=True)


# --------------------------------------------------------------------
# Commands
# --------------------------------------------------------------------
def _cmd_analyze(args, grading: GradingEngine, fees: FeeEngine, trace) -> None:
    metrics = _metrics_from_args(args)
    analysis = grading.analyze(metrics)
    payload: Dict[str, Any] = analysis.to_dict()
    markdown = render_analysis(analysis)

    benefits = grading.grade_benefits(analysis.current_level)
    payload["benefits"] = [{"title": b.title, "description": b.description} for b in benefits]
    markdown += "\n\n### Benefits\n" + "\n".join(f"- {b.title}: {b.description}" for b in benefits)
    markdown += "\n\n" + fees.benefit_description(analysis.current_level)

    if args.projection_file:
        projection = grading.project_upgrade(metrics, _projection_from_file(args.projection_file))
        payload["projection"] = {
            "can_upgrade": projection.can_upgrade,
            "projected_level": projection.projected_level,
            "estimated_months": projection.estimated_months,
            "message": projection.message,
        }
        months = projection.estimated_months
        markdown += f"\n\n### Upgrade projection\n- {projection.message}"
        if months is not None:
            markdown += f"\n- Estimated: {months} month(s)"

    if trace:
        trace.record("analyze", metrics.to_dict(), payload)
    _emit(args, markdown, payload)


def _cmd_fee(args, grading: GradingEngine, fees: FeeEngine, trace) -> None:
    if args.command == "urgency-fee":
        result = fees.calculate_by_urgency(args.total, args.tier, args.level)
        inputs = {"total": args.total, "tier": args.tier, "level": args.level}
    else:
        result = fees.calculate(args.total, args.base_percent, args.level)
        inputs = {"total": args.total, "base_percent": args.base_percent, "level": args.level}
    if trace:
        trace.record(args.command, inputs, result.to_dict())
    _emit(args, render_fee_result(result), result.to_dict())


def _cmd_upgrade(args, grading: GradingEngine, fees: FeeEngine, trace) -> None:
    benefit = fees.calculate_upgrade_benefit(args.current, args.target, args.base_percent)
    payload = asdict(benefit)
    if benefit.upgrade:
        markdown = "\n".join(
            [
                f"## Upgrade {benefit.current_grade_name} → {benefit.target_grade_name}",
                f"- Current fee: {format_fee_percent(benefit.current_fee)}",
                f"- Target fee: {format_fee_percent(benefit.target_fee)}",
                f"- Additional discount: {benefit.additional_discount:g}%p ({benefit.additional_discount_percent:g}%)",
            ]
        )
    else:
        markdown = f"No upgrade: {benefit.message}"
    if trace:
        trace.record("upgrade", {"current": args.current, "target": args.target, "base_percent": args.base_percent}, payload)
    _emit(args, markdown, payload)


def _cmd_compare(args, grading: GradingEngine, fees: FeeEngine, trace) -> None:
    if args.all_tiers:
        matrix = fees.urgency_grade_matrix()
        payload: Any = {tier.value: [asdict(r) for r in rows] for tier, rows in matrix.items()}
        markdown = render_urgency_matrix(matrix)
    else:
        rows = fees.comparison_table(args.base_percent)
        payload = [asdict(r) for r in rows]
        markdown = render_comparison_table(rows)
    if trace:
        trace.record("compare", {"base_percent": args.base_percent, "all_tiers": args.all_tiers}, payload)
    _emit(args, markdown, payload)


def _cmd_escalate(args, grading: GradingEngine, fees: FeeEngine, trace) -> None:
    plan = EscalationPlan(
        start_percent=args.start,
        max_percent=args.max,
        step_seconds=args.step_minutes * 60,
        step_percent=args.step_percent,
    )
    if args.elapsed_minutes is not None:
        percent = plan.fee_at(args.elapsed_minutes * 60)
        payload: Any = {"elapsed_minutes": args.elapsed_minutes, "percent": percent}
        markdown = f"Urgent fee after {args.elapsed_minutes:g} min: {format_fee_percent(percent)}"
    else:
        steps = plan.schedule()
        payload = [{"elapsed_seconds": e, "percent": p} for e, p in steps]
        markdown = render_schedule(steps)
    if trace:
        trace.record("escalate", {"start": args.start, "max": args.max, "elapsed_minutes": args.elapsed_minutes}, payload)
    _emit(args, markdown, payload)


def _cmd_stats(args, grading: GradingEngine, fees: FeeEngine, trace) -> None:
    doc = _read_document(args.contractors_file)
    if not isinstance(doc, list):
        raise InvalidInput("contractors_file", args.contractors_file, "Contractors file must contain a list")
    stats = grading.grade_statistics(doc)
    payload = {
        "total": stats.total,
        "by_level": stats.by_level,
        "average_scores": stats.average_scores,
        "top_performers": [asdict(r) for r in stats.top_performers],
        "improvement_candidates": [asdict(r) for r in stats.improvement_candidates],
    }
    lines: List[str] = [f"## Contractors: {stats.total}", "", "| Level | Grade | Count |", "|---|---|---|"]
    for level, count in stats.by_level.items():
        lines.append(f"| {level} | {grading.tables.levels[level].name} | {count} |")
    lines += ["", "### Top performers"]
    for r in stats.top_performers:
        lines.append(f"- {r.contractor_id or '#' + str(r.index)}: {r.weighted_score:.1f} (level {r.level})")
    if trace:
        trace.record("stats", {"contractors_file": args.contractors_file}, payload)
    _emit(args, "\n".join(lines), payload)


_COMMANDS = {
    "analyze": _cmd_analyze,
    "fee": _cmd_fee,
    "urgency-fee": _cmd_fee,
    "upgrade": _cmd_upgrade,
    "compare": _cmd_compare,
    "escalate": _cmd_escalate,
    "stats": _cmd_stats,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )
    logger.debug("CLI arguments: %s", args)

    trace = build_trace(args.trace_path, enabled=TRACE_ENABLED)

    try:
        tables_dir = Path(args.tables_dir) if args.tables_dir else None
        grading = GradingEngine(load_grading_tables(tables_dir))
        fees = FeeEngine(load_fee_tables(tables_dir))
        _COMMANDS[args.command](args, grading, fees, trace)
    except (GradeFeeError, OSError) as ex:
        logger.debug("Command %s failed", args.command, exc_info=True)
        console.print(f"[red]Error: {escape(str(ex))}[/red]", soft_wrap=True)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
