"""Human-readable renderings of a gate report."""

from __future__ import annotations

import html
from itertools import groupby

from ..core.rounding import format_value
from ..models import CATEGORY_ORDER, GateReport, RegressionDelta, Severity, Violation


def _title(category: str) -> str:
    for item in CATEGORY_ORDER:
        if item.value == category:
            return item.title
    return category


def _violation_line(v: Violation) -> str:
    label = "CRITICAL" if v.severity is Severity.CRITICAL else "WARNING"
    if v.measured is not None and v.budget is not None:
        limit = v.budget if v.severity is Severity.CRITICAL else v.warning
        return (
            f"- {label} {v.metric} [{v.target}]: measured {format_value(v.measured, v.unit)} "
            f"> {'budget' if v.severity is Severity.CRITICAL else 'warning'} {format_value(limit, v.unit)}"
        )
    return f"- {label} {v.metric} [{v.target}]: {v.reason}"


def _regression_line(r: RegressionDelta) -> str:
    change = "new from zero" if r.relative_change_pct is None else f"+{format_value(r.relative_change_pct, '%')}"
    return (
        f"- REGRESSION {r.metric} [{r.target}]: {format_value(r.baseline, r.unit)} -> "
        f"{format_value(r.current, r.unit)} (delta {format_value(r.delta, r.unit)}, {change}, "
        f"tolerance {format_value(r.tolerance_pct, '%')})"
    )


def _categories(report: GateReport) -> list[str]:
    seen = [c.value for c in CATEGORY_ORDER]
    extra = ({v.category for v in report.violations} | {r.category for r in report.regressions}) - set(seen)
    return seen + sorted(extra)


def verdict_line(report: GateReport) -> str:
    status = "PASS" if report.overall_pass else "FAIL"
    line = (
        f"perf gate: {status} env={report.environment} critical={report.critical_count} "
        f"warnings={report.warning_count} regressions={len(report.regressions)} run_id={report.run_id}"
    )
    return line + (" (incomplete)" if report.incomplete else "")


def render_text(report: GateReport) -> str:
    lines = [verdict_line(report), f"generated: {report.timestamp}", f"revision: {report.source_revision}"]
    if report.baseline_created:
        lines.append("baseline: created from this run (no regression comparison)")
    if report.incomplete:
        lines.append("run timed out: results are partial")
    by_cat_v = {k: list(g) for k, g in groupby(report.violations, key=lambda v: v.category)}
    by_cat_r = {k: list(g) for k, g in groupby(report.regressions, key=lambda r: r.category)}
    for category in _categories(report):
        lines.append("")
        lines.append(f"## {_title(category)}")
        outcome = next((c for c in report.collectors if c.category == category), None)
        if outcome is not None:
            lines.append(f"collector: {outcome.status}" + (f" ({outcome.error})" if outcome.error else ""))
        entries = [_violation_line(v) for v in by_cat_v.get(category, [])]
        entries += [_regression_line(r) for r in by_cat_r.get(category, [])]
        lines.extend(entries or ["- ok"])
    lines.append("")
    if report.overall_pass:
        lines.append("verdict: all budgets met; build may be promoted")
    else:
        lines.append(f"verdict: blocked by {report.critical_count} critical violation(s):")
        lines.extend(
            f"  {v.category}/{v.metric} [{v.target}]: {v.reason}" for v in report.violations if v.is_critical
        )
    return "\n".join(lines) + "\n"


_STYLE = (
    "body{font-family:sans-serif;margin:40px;background:#f5f5f5}"
    ".container{max-width:1100px;margin:0 auto;background:#fff;padding:30px;border-radius:8px}"
    "table{width:100%;border-collapse:collapse}th,td{padding:8px;text-align:left;border-bottom:1px solid #e0e0e0}"
    ".critical,.fail{color:#dc3545}.warning{color:#b8860b}.pass{color:#28a745}"
)


def render_html(report: GateReport) -> str:
    esc = html.escape
    status = "pass" if report.overall_pass else "fail"
    parts = [
        "<!DOCTYPE html>",
        "<html><head><meta charset=\"utf-8\"><title>Performance Gate Report</title>",
        f"<style>{_STYLE}</style></head><body><div class=\"container\">",
        "<h1>Performance Gate Report</h1>",
        f"<p>Generated: {esc(report.timestamp)} | Environment: {esc(report.environment)} | "
        f"Revision: {esc(report.source_revision)}</p>",
        f"<p class=\"{status}\"><strong>{esc(verdict_line(report))}</strong></p>",
    ]
    for category in _categories(report):
        parts.append(f"<h2>{esc(_title(category))}</h2>")
        samples = [s for s in report.samples if s.collector == category]
        if samples:
            parts.append("<table><tr><th>Metric</th><th>Target</th><th>Value</th></tr>")
            for s in samples:
                parts.append(
                    f"<tr><td>{esc(s.metric)}</td><td>{esc(s.target)}</td>"
                    f"<td>{esc(format_value(s.value, s.unit))}</td></tr>"
                )
            parts.append("</table>")
        findings = [v for v in report.violations if v.category == category]
        regressions = [r for r in report.regressions if r.category == category]
        if findings or regressions:
            parts.append("<ul>")
            parts.extend(
                f"<li class=\"{v.severity.value}\">{esc(_violation_line(v)[2:])}</li>" for v in findings
            )
            parts.extend(f"<li>{esc(_regression_line(r)[2:])}</li>" for r in regressions)
            parts.append("</ul>")
        elif not samples:
            parts.append("<p>no data</p>")
    parts.append("</div></body></html>")
    return "\n".join(parts) + "\n"
