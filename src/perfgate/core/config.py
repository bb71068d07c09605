"""Resolved settings for one gate run: CLI flag, then environment variable, then default."""

from __future__ import annotations

import argparse
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from ..errors import ConfigInvalid
from .context import RunContext

DEFAULT_BUDGETS_FILE = "performance-budgets.json"
DEFAULT_BASELINE_FILE = "performance-baseline.json"
DEFAULT_REPORT_DIR = "performance-reports"
WEB_VITALS_TIMEOUT_S = 120.0
COLLECTOR_TIMEOUT_S = 30.0
RUN_TIMEOUT_S = 300.0


def _split(raw: str | None) -> list[str]:
    return [part.strip() for part in (raw or "").split(",") if part.strip()]


def _tolerance(raw: float | None) -> float | None:
    if raw is None:
        return None
    value = float(raw)
    if not math.isfinite(value) or value < 0:
        raise ConfigInvalid(f"--regression-tolerance must be a finite percentage >= 0, got {raw}")
    return value


def _pick(value: Any, env: Mapping[str, str], key: str, default: Any = None) -> Any:
    if value not in (None, "", []):
        return value
    return env.get(key) or default


@dataclass(frozen=True)
class GateConfig:
    url: str | None
    build_dir: Path | None
    endpoints: tuple[str, ...]
    functions: tuple[str, ...]
    functions_url: str | None
    budgets_path: Path
    baseline_path: Path
    report_dir: Path
    health_path: str = "health"
    probe_samples: int = 1
    idle_seconds: float = 2.0
    request_timeout: float = 10.0
    web_vitals_timeout: float = WEB_VITALS_TIMEOUT_S
    collector_timeout: float = COLLECTOR_TIMEOUT_S
    run_timeout: float = RUN_TIMEOUT_S
    lighthouse_bin: str = "lighthouse"
    lighthouse_report: Path | None = None
    regression_tolerance: float | None = None

    @classmethod
    def from_args(cls, ctx: RunContext, ns: argparse.Namespace, environ: Mapping[str, str] | None = None) -> "GateConfig":
        env = os.environ if environ is None else environ
        build_dir = _pick(ns.build_dir, env, "PERF_BUILD_DIR")
        report = ns.lighthouse_report or env.get("PERF_LIGHTHOUSE_REPORT")
        return cls(
            url=_pick(ns.url, env, "BASE_URL"),
            build_dir=ctx.resolve(build_dir) if build_dir else None,
            endpoints=tuple(ns.endpoint or _split(env.get("PERF_ENDPOINTS"))),
            functions=tuple(ns.function or _split(env.get("PERF_FUNCTIONS"))),
            functions_url=_pick(ns.functions_url, env, "FUNCTIONS_URL"),
            budgets_path=ctx.resolve(_pick(ns.budgets, env, "PERF_BUDGETS_FILE", DEFAULT_BUDGETS_FILE)),
            baseline_path=ctx.resolve(_pick(ns.baseline, env, "PERF_BASELINE_FILE", DEFAULT_BASELINE_FILE)),
            report_dir=ctx.resolve(_pick(ns.report_dir, env, "PERF_REPORT_DIR", DEFAULT_REPORT_DIR)),
            health_path=ns.health_path,
            probe_samples=max(1, int(ns.probe_samples)),
            idle_seconds=max(0.0, float(ns.idle_seconds)),
            request_timeout=float(ns.request_timeout),
            web_vitals_timeout=float(ns.web_vitals_timeout),
            collector_timeout=float(ns.collector_timeout),
            run_timeout=float(ns.run_timeout),
            lighthouse_bin=_pick(ns.lighthouse_bin, env, "LIGHTHOUSE_BIN", "lighthouse"),
            lighthouse_report=ctx.resolve(report) if report else None,
            regression_tolerance=_tolerance(ns.regression_tolerance),
        )
