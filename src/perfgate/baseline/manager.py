"""Baseline snapshot ownership and regression detection.

This module is the only reader and writer of the baseline file. A run creates
the baseline when it is missing and otherwise treats it as read-only; replacing
it is the explicit `perfgate baseline update` action.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping

from ..core.clock import utc_now_iso
from ..core.context import RunContext
from ..core.logging import log_event
from ..core.rounding import round_value
from ..core.schema import validate_payload
from ..core.serialize import write_document
from ..errors import ConfigInvalid, PerfGateError
from ..exit_codes import ERR_CONFIG
from ..models import Baseline, MetricSample, RegressionDelta


@dataclass(frozen=True)
class BaselineComparison:
    regressions: tuple[RegressionDelta, ...]
    baseline_created: bool
    baseline: Baseline


def build_baseline(samples: Iterable[MetricSample], ctx: RunContext) -> Baseline:
    return Baseline(
        created_at=utc_now_iso(),
        source_revision=ctx.git_sha,
        environment=ctx.environment,
        samples=MappingProxyType({s.key: s for s in samples}),
    )


def read_baseline(path: Path) -> Baseline:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigInvalid(f"{path}: unparseable baseline: {exc}") from exc
    validate_payload(payload, "baseline.schema.json", str(path))
    return Baseline.from_json(payload)


def write_baseline(path: Path, baseline: Baseline) -> Path:
    return write_document(path, baseline.to_json())


def find_regressions(
    samples: Iterable[MetricSample],
    baseline: Baseline,
    tolerance_pct: float,
    overrides: Mapping[str, float] | None = None,
) -> list[RegressionDelta]:
    """Compare current samples with the baseline; only increases count as regressions."""
    overrides = overrides or {}
    out: list[RegressionDelta] = []
    for sample in samples:
        prior = baseline.samples.get(sample.key)
        if prior is None:
            continue
        tolerance = overrides.get(sample.metric, tolerance_pct)
        delta = round_value(sample.value - prior.value, sample.unit)
        if prior.value == 0:
            relative = None
            regressed = delta > 0
        else:
            relative = round_value(delta / prior.value * 100, "%")
            regressed = relative > tolerance
        if not regressed:
            continue
        out.append(
            RegressionDelta(
                metric=sample.metric,
                target=sample.target,
                category=sample.collector,
                unit=sample.unit,
                baseline=prior.value,
                current=sample.value,
                delta=delta,
                relative_change_pct=relative,
                tolerance_pct=tolerance,
            )
        )
    return out


def load_existing(path: Path) -> Baseline | None:
    """Read the baseline when present; a broken file raises `ConfigInvalid`."""
    return read_baseline(path) if path.is_file() else None


def compare(
    samples: Iterable[MetricSample],
    baseline_path: Path,
    ctx: RunContext,
    tolerance_pct: float,
    overrides: Mapping[str, float] | None = None,
    baseline: Baseline | None = None,
) -> BaselineComparison:
    current = list(samples)
    if baseline is None:
        baseline = load_existing(baseline_path)
    if baseline is None:
        baseline = build_baseline(current, ctx)
        write_baseline(baseline_path, baseline)
        log_event(ctx, "warning", "baseline", "created", path=str(baseline_path), samples=len(current))
        return BaselineComparison(regressions=(), baseline_created=True, baseline=baseline)
    regressions = find_regressions(current, baseline, tolerance_pct, overrides)
    log_event(
        ctx,
        "info",
        "baseline",
        "compared",
        path=str(baseline_path),
        matched=sum(1 for s in current if s.key in baseline.samples),
        regressions=len(regressions),
    )
    return BaselineComparison(regressions=tuple(regressions), baseline_created=False, baseline=baseline)


def update_baseline(report_path: Path, baseline_path: Path, ctx: RunContext, force: bool = False) -> Baseline:
    """Promote the samples of a finished gate report to the new baseline."""
    if not report_path.is_file():
        raise PerfGateError(f"gate report not found: {report_path}", ERR_CONFIG, kind="report_missing")
    try:
        report = json.loads(report_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigInvalid(f"{report_path}: unparseable gate report: {exc}") from exc
    validate_payload(report, "report.schema.json", str(report_path))
    if report.get("incomplete") and not force:
        raise PerfGateError(
            f"refusing to promote incomplete report {report_path}; rerun the gate or pass --force",
            ERR_CONFIG,
            kind="report_incomplete",
        )
    samples = [MetricSample.from_json(row) for row in report.get("samples", [])]
    if not samples:
        raise PerfGateError(f"gate report has no samples: {report_path}", ERR_CONFIG, kind="report_empty")
    baseline = Baseline(
        created_at=utc_now_iso(),
        source_revision=str(report.get("source_revision") or ctx.git_sha),
        environment=str(report.get("environment") or ctx.environment),
        samples=MappingProxyType({s.key: s for s in samples}),
    )
    previous = baseline_path.is_file()
    write_baseline(baseline_path, baseline)
    log_event(ctx, "info", "baseline", "updated", path=str(baseline_path), replaced=previous, samples=len(samples))
    return baseline
