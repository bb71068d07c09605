"""Gate orchestration.

Phases run strictly in order: init, collecting, evaluating,
baseline_comparing, reporting, done. Each phase receives the `GateRun`
accumulated so far and returns a new one; nothing is shared across runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Sequence

from ..baseline.manager import compare, load_existing
from ..budgets.store import BudgetConfig, load_budgets
from ..collectors import ArtifactSizeCollector, ColdStartCollector, EndpointLatencyCollector, WebVitalsCollector
from ..collectors.base import Collector
from ..core.config import GateConfig
from ..core.context import RunContext
from ..core.logging import log_event
from ..errors import PerfGateError
from ..exit_codes import ERR_COLLECTOR, ERR_INTERNAL, ERR_VIOLATIONS, OK
from ..models import Baseline, CollectorOutcome, GateReport, MetricSample, RegressionDelta, Violation
from ..reporting.generator import generate
from ..reporting.writer import write_report
from .evaluate import collector_violations, evaluate, status_violations
from .execution import run_collectors

COLLECTOR_FAILURE_METRICS = frozenset({"collector-unavailable", "collector-timeout"})


class GatePhase(str, Enum):
    INIT = "init"
    COLLECTING = "collecting"
    EVALUATING = "evaluating"
    BASELINE_COMPARING = "baseline_comparing"
    REPORTING = "reporting"
    DONE = "done"


_NEXT: dict[GatePhase, GatePhase] = {
    GatePhase.INIT: GatePhase.COLLECTING,
    GatePhase.COLLECTING: GatePhase.EVALUATING,
    GatePhase.EVALUATING: GatePhase.BASELINE_COMPARING,
    GatePhase.BASELINE_COMPARING: GatePhase.REPORTING,
    GatePhase.REPORTING: GatePhase.DONE,
}


@dataclass(frozen=True)
class GateRun:
    phase: GatePhase
    budgets: BudgetConfig
    baseline: Baseline | None = None
    outcomes: tuple[CollectorOutcome, ...] = ()
    samples: tuple[MetricSample, ...] = ()
    violations: tuple[Violation, ...] = ()
    regressions: tuple[RegressionDelta, ...] = ()
    baseline_created: bool = False
    incomplete: bool = False
    report: GateReport | None = None
    paths: dict[str, Path] = field(default_factory=dict)

    @property
    def critical_count(self) -> int:
        return sum(1 for v in self.violations if v.is_critical)

    def advance(self, ctx: RunContext, phase: GatePhase) -> "GateRun":
        if _NEXT.get(self.phase) is not phase:
            raise PerfGateError(
                f"illegal gate transition {self.phase.value} -> {phase.value}", ERR_INTERNAL, kind="phase_order"
            )
        log_event(ctx, "debug", "gate", "phase", source=self.phase.value, target=phase.value)
        return replace(self, phase=phase)


@dataclass(frozen=True)
class GateOutcome:
    report: GateReport
    paths: dict[str, Path]
    exit_code: int

    @property
    def passed(self) -> bool:
        return self.report.overall_pass


def build_collectors(config: GateConfig, budgets: BudgetConfig) -> list[Collector]:
    return [
        WebVitalsCollector(
            url=config.url,
            lighthouse_bin=config.lighthouse_bin,
            report_path=config.lighthouse_report,
            timeout_seconds=config.web_vitals_timeout,
        ),
        ArtifactSizeCollector(
            build_dir=config.build_dir,
            groups=budgets.artifact_groups,
            timeout_seconds=config.collector_timeout,
        ),
        EndpointLatencyCollector(
            endpoints=list(config.endpoints),
            health_path=config.health_path,
            probe_samples=config.probe_samples,
            request_timeout=config.request_timeout,
            timeout_seconds=config.collector_timeout,
        ),
        ColdStartCollector(
            functions=list(config.functions),
            functions_url=config.functions_url,
            idle_seconds=config.idle_seconds,
            request_timeout=config.request_timeout,
            timeout_seconds=config.collector_timeout,
        ),
    ]


def exit_code_for(report: GateReport) -> int:
    if report.overall_pass:
        return OK
    criticals = [v for v in report.violations if v.is_critical]
    if all(v.metric in COLLECTOR_FAILURE_METRICS for v in criticals):
        return ERR_COLLECTOR
    return ERR_VIOLATIONS


def _collect(ctx: RunContext, run: GateRun, collectors: Sequence[Collector], run_timeout: float) -> GateRun:
    run = run.advance(ctx, GatePhase.COLLECTING)
    result = run_collectors(ctx, collectors, run_timeout=run_timeout)
    samples = tuple(s for outcome in result.outcomes for s in outcome.samples)
    return replace(run, outcomes=result.outcomes, samples=samples, incomplete=result.incomplete)


def _evaluate(ctx: RunContext, run: GateRun) -> GateRun:
    run = run.advance(ctx, GatePhase.EVALUATING)
    budget_findings = evaluate(run.samples, run.budgets.budgets)
    findings = [
        *collector_violations(run.outcomes),
        *budget_findings,
        *status_violations(run.samples, budget_findings),
    ]
    for v in findings:
        log_event(
            ctx,
            "error" if v.is_critical else "warning",
            "evaluate",
            "violation",
            metric=v.metric,
            target=v.target,
            severity=v.severity.value,
            measured=v.measured,
            budget=v.budget,
        )
    return replace(run, violations=tuple(findings))


def _compare(ctx: RunContext, run: GateRun, config: GateConfig) -> GateRun:
    run = run.advance(ctx, GatePhase.BASELINE_COMPARING)
    tolerance = (
        config.regression_tolerance if config.regression_tolerance is not None else run.budgets.regression_tolerance_pct
    )
    result = compare(
        run.samples,
        config.baseline_path,
        ctx,
        tolerance,
        run.budgets.tolerance_overrides(),
        baseline=run.baseline,
    )
    for r in result.regressions:
        log_event(
            ctx,
            "warning",
            "baseline",
            "regression",
            metric=r.metric,
            target=r.target,
            baseline=r.baseline,
            current=r.current,
            change_pct=r.relative_change_pct,
        )
    return replace(run, regressions=result.regressions, baseline_created=result.baseline_created)


def _report(ctx: RunContext, run: GateRun, config: GateConfig) -> GateRun:
    run = run.advance(ctx, GatePhase.REPORTING)
    report = generate(
        ctx,
        run.samples,
        run.violations,
        run.regressions,
        run.outcomes,
        baseline_created=run.baseline_created,
        incomplete=run.incomplete,
    )
    paths = write_report(report, config.report_dir)
    return replace(run, report=report, paths=paths)


def run_gate(ctx: RunContext, config: GateConfig, collectors: Sequence[Collector] | None = None) -> GateOutcome:
    """Run one gate evaluation end to end.

    Only an invalid budget config or baseline aborts the run, before any collection;
    everything else degrades into findings carried by the report.
    """
    run = GateRun(
        phase=GatePhase.INIT,
        budgets=load_budgets(config.budgets_path, ctx),
        baseline=load_existing(config.baseline_path),
    )
    selected = list(collectors) if collectors is not None else build_collectors(config, run.budgets)
    run = _collect(ctx, run, selected, config.run_timeout)
    run = _evaluate(ctx, run)
    run = _compare(ctx, run, config)
    run = _report(ctx, run, config)
    run = run.advance(ctx, GatePhase.DONE)
    assert run.report is not None
    code = exit_code_for(run.report)
    log_event(
        ctx,
        "info" if run.report.overall_pass else "error",
        "gate",
        "done",
        status="pass" if run.report.overall_pass else "fail",
        critical=run.critical_count,
        violations=len(run.violations),
        regressions=len(run.regressions),
        incomplete=run.incomplete,
        report=str(run.paths.get("json", "")),
    )
    return GateOutcome(report=run.report, paths=run.paths, exit_code=code)
