from __future__ import annotations

from typing import Iterable

from ..core.clock import utc_now_iso
from ..core.context import RunContext
from ..models import (
    CollectorOutcome,
    GateReport,
    MetricSample,
    RegressionDelta,
    Severity,
    Violation,
    category_rank,
)


def _severity_rank(severity: Severity) -> int:
    return 0 if severity is Severity.CRITICAL else 1


def generate(
    ctx: RunContext,
    samples: Iterable[MetricSample],
    violations: Iterable[Violation],
    regressions: Iterable[RegressionDelta],
    collectors: Iterable[CollectorOutcome] = (),
    baseline_created: bool = False,
    incomplete: bool = False,
    timestamp: str | None = None,
) -> GateReport:
    """Freeze one run into a report. The gate passes iff no violation is critical."""
    ordered_samples = tuple(
        sorted(samples, key=lambda s: (category_rank(s.collector), s.collector, s.metric, s.target))
    )
    ordered_violations = tuple(
        sorted(
            violations,
            key=lambda v: (category_rank(v.category), v.category, _severity_rank(v.severity), v.metric, v.target),
        )
    )
    ordered_regressions = tuple(
        sorted(regressions, key=lambda r: (category_rank(r.category), r.category, r.metric, r.target))
    )
    ordered_collectors = tuple(sorted(collectors, key=lambda c: (category_rank(c.category), c.collector)))
    critical = sum(1 for v in ordered_violations if v.severity is Severity.CRITICAL)
    return GateReport(
        run_id=ctx.run_id,
        timestamp=timestamp or utc_now_iso(),
        environment=ctx.environment,
        source_revision=ctx.git_sha,
        samples=ordered_samples,
        violations=ordered_violations,
        regressions=ordered_regressions,
        collectors=ordered_collectors,
        baseline_created=baseline_created,
        incomplete=incomplete,
        overall_pass=critical == 0,
    )
