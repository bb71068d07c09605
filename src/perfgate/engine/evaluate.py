"""Budget evaluation. Pure functions: no I/O, no clock, no globals."""

from __future__ import annotations

from typing import Iterable, Mapping

from ..core.rounding import format_value
from ..models import Budget, CollectorOutcome, MetricSample, Severity, Violation

ERROR_RATE_METRIC = "endpoint-error-rate"
PROBE_STATUS_METRIC = "probe-status"


def classify(measured: float, budget: Budget) -> Severity | None:
    if measured > budget.budget:
        return Severity.CRITICAL
    if measured > budget.warning:
        return Severity.WARNING
    return None


def evaluate(samples: Iterable[MetricSample], budgets: Mapping[str, Budget]) -> list[Violation]:
    violations: list[Violation] = []
    for sample in samples:
        budget = budgets.get(sample.metric)
        if budget is None:
            continue
        severity = classify(sample.value, budget)
        if severity is None:
            continue
        limit = budget.budget if severity is Severity.CRITICAL else budget.warning
        violations.append(
            Violation(
                metric=sample.metric,
                target=sample.target,
                category=sample.collector,
                measured=sample.value,
                budget=budget.budget,
                warning=budget.warning,
                severity=severity,
                unit=sample.unit,
                reason=f"{format_value(sample.value, sample.unit)} > {format_value(limit, sample.unit)} ({severity.value} threshold)",
            )
        )
    return violations


def status_violations(samples: Iterable[MetricSample], violations: Iterable[Violation]) -> list[Violation]:
    """One critical violation per probed target whose probes returned a non-2xx status."""
    covered = {
        (v.category, v.target)
        for v in violations
        if v.metric == ERROR_RATE_METRIC and v.severity is Severity.CRITICAL
    }
    out: list[Violation] = []
    for sample in samples:
        if sample.metadata.get("status_ok", True):
            continue
        key = (sample.collector, sample.target)
        if key in covered:
            continue
        covered.add(key)
        codes = [int(c) for c in sample.metadata.get("status_codes", [])]
        bad = [c for c in codes if not 200 <= c < 300]
        worst = float(bad[0]) if bad else None
        shown = ", ".join(str(c) if c else "unreachable" for c in bad) or "unknown"
        out.append(
            Violation(
                metric=PROBE_STATUS_METRIC,
                target=sample.target,
                category=sample.collector,
                measured=worst,
                budget=None,
                severity=Severity.CRITICAL,
                reason=f"unhealthy status {shown} (expected 2xx)",
            )
        )
    return out


def collector_violations(outcomes: Iterable[CollectorOutcome]) -> list[Violation]:
    out: list[Violation] = []
    for outcome in outcomes:
        if outcome.status not in {"failed", "timeout"}:
            continue
        metric = "collector-timeout" if outcome.status == "timeout" else "collector-unavailable"
        out.append(
            Violation(
                metric=metric,
                target=outcome.collector,
                category=outcome.category,
                measured=None,
                budget=None,
                severity=Severity.CRITICAL,
                reason=outcome.error or f"collector {outcome.status}",
            )
        )
    return out
