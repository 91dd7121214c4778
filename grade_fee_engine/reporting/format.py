from typing import List, Mapping

from ..fees.engine import FeeCalculationResult, FeeComparisonRow
from ..grading.engine import GradeAnalysis
from ..tables.schema import UrgencyTier

_METRIC_LABELS = {
    "completed_jobs_count": "완료 작업 수",
    "average_rating": "평균 평점",
    "photo_quality_score": "사진 품질",
    "response_time": "응답 시간",
    "on_time_rate": "시간 준수율",
    "satisfaction_rate": "고객 만족도",
}


def _md_escape(v) -> str:
    s = "" if v is None else str(v)
    return s.replace("|", "\\|").replace("\n", " ").strip()


def _format_currency(value: float, currency: str) -> str:
    return f"{value:,.0f} {currency}" if currency == "KRW" else f"{value:,.2f} {currency}"


def _format_percent(value: float) -> str:
    return f"{value:.2f}%"


def _bullets(items: List[str]) -> str:
    if not items:
        return "- -"
    return "\n".join(f"- {_md_escape(i)}" for i in items)


def render_analysis(analysis: GradeAnalysis) -> str:
    grade = analysis.current_grade
    rows = [
        "| Metric | Sub-score | Gap to next level |",
        "|---|---|---|",
    ]
    for key, label in _METRIC_LABELS.items():
        score = analysis.sub_scores.get(key, 0.0)
        gap = analysis.requirements.get(key)
        rows.append(
            "| {label} | {score:.1f} | {gap} |".format(
                label=label,
                score=score,
                gap="-" if not gap else f"{gap:g}",
            )
        )

    next_label = (
        f"{analysis.next_grade.name} (level {analysis.next_level})" if analysis.next_grade else "- (top level)"
    )
    sections = [
        f"## Grade: {_md_escape(grade.name)} (level {analysis.current_level})",
        f"_{_md_escape(grade.description)}_",
        "",
        f"- Weighted score: **{analysis.display_score:.1f}** / 100",
        f"- Next level: {_md_escape(next_label)}",
        "",
        "\n".join(rows),
        "",
        "### Strengths",
        _bullets(analysis.strengths),
        "",
        "### Improvements",
        _bullets(analysis.improvements),
    ]
    return "\n".join(sections).strip()


def render_fee_result(result: FeeCalculationResult) -> str:
    b = result.breakdown
    currency = result.currency
    tier = f" / {result.urgency_tier.value}" if result.urgency_tier else ""
    rows = [
        f"## Urgent fee: {_md_escape(result.grade_info.name)} (level {result.grade_info.level}){tier}",
        "",
        "| Item | Value |",
        "|---|---|",
        f"| Total amount | {_format_currency(result.total_amount, currency)} |",
        f"| Base percent | {_format_percent(result.base_percent)} |",
        f"| Grade discount | {_format_percent(result.discount)} |",
        f"| Final percent | {_format_percent(result.final_percent)} |",
        f"| Base fee | {_format_currency(b.base_fee, currency)} |",
        f"| Final fee | {_format_currency(b.final_fee, currency)} |",
        f"| Discount amount | {_format_currency(b.discount_amount, currency)} |",
        f"| Savings | {b.savings_percent:.1f}% |",
    ]
    return "\n".join(rows)


def render_comparison_table(rows: List[FeeComparisonRow]) -> str:
    lines = [
        "| Level | Grade | Discount | Base | Final | Savings (%p) | Savings (%) |",
        "|---|---|---|---|---|---|---|",
    ]
    for r in rows:
        lines.append(
            "| {lvl} | {name} | {disc:g}% | {base} | {final} | {sav:.2f} | {savp:.1f}% |".format(
                lvl=r.level,
                name=_md_escape(r.grade_name),
                disc=r.discount,
                base=_format_percent(r.base_percent),
                final=_format_percent(r.final_percent),
                sav=r.savings,
                savp=r.savings_percent,
            )
        )
    return "\n".join(lines)


def render_urgency_matrix(matrix: Mapping[UrgencyTier, List[FeeComparisonRow]]) -> str:
    sections: List[str] = []
    for tier, rows in matrix.items():
        base = rows[0].base_percent if rows else 0.0
        sections.append(f"### {tier.value} (base {_format_percent(base)})")
        sections.append(render_comparison_table(rows))
        sections.append("")
    return "\n".join(sections).strip()


def render_schedule(steps: List[tuple]) -> str:
    lines = ["| Elapsed (min) | Urgent fee |", "|---|---|"]
    for elapsed, percent in steps:
        lines.append(f"| {elapsed // 60} | {_format_percent(percent)} |")
    return "\n".join(lines)
