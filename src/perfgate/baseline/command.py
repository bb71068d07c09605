from __future__ import annotations

import argparse
import os

from ..cli.output import build_base_payload, emit
from ..core.config import DEFAULT_BASELINE_FILE, DEFAULT_REPORT_DIR
from ..core.context import RunContext
from ..errors import PerfGateError
from ..exit_codes import ERR_CONFIG
from ..reporting.writer import REPORT_JSON
from .manager import read_baseline, update_baseline


def configure_baseline_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("baseline", help="inspect or explicitly promote the regression baseline")
    baseline_sub = p.add_subparsers(dest="baseline_cmd", required=True)
    show = baseline_sub.add_parser("show", help="print the current baseline")
    show.add_argument("--baseline", help="baseline snapshot path [PERF_BASELINE_FILE]")
    show.add_argument("--json", action="store_true", help="emit JSON output")
    update = baseline_sub.add_parser("update", help="replace the baseline with the samples of a gate report")
    update.add_argument("--baseline", help="baseline snapshot path [PERF_BASELINE_FILE]")
    update.add_argument("--report", help="gate report JSON to promote (default: <report-dir>/perf-gate-report.json)")
    update.add_argument("--report-dir", help="report directory [PERF_REPORT_DIR]")
    update.add_argument("--force", action="store_true", help="promote even an incomplete report")
    update.add_argument("--json", action="store_true", help="emit JSON output")


def run_baseline_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    path = ctx.resolve(ns.baseline or os.environ.get("PERF_BASELINE_FILE") or DEFAULT_BASELINE_FILE)
    as_json = ctx.output_format == "json" or ns.json
    if ns.baseline_cmd == "update":
        report_dir = ctx.resolve(ns.report_dir or os.environ.get("PERF_REPORT_DIR") or DEFAULT_REPORT_DIR)
        report = ctx.resolve(ns.report) if ns.report else report_dir / REPORT_JSON
        baseline = update_baseline(report, path, ctx, force=ns.force)
        emit(
            {
                **build_base_payload(ctx),
                "action": "update",
                "path": str(path),
                "report": str(report),
                "samples": len(baseline.samples),
            },
            as_json,
        )
        return 0
    if not path.is_file():
        raise PerfGateError(f"baseline not found: {path}", ERR_CONFIG, kind="baseline_missing")
    baseline = read_baseline(path)
    if as_json:
        emit({**build_base_payload(ctx), "action": "show", "path": str(path), "baseline": baseline.to_json()}, True)
        return 0
    print(f"baseline: {path}")
    print(f"created_at={baseline.created_at} revision={baseline.source_revision} env={baseline.environment}")
    for key in sorted(baseline.samples):
        s = baseline.samples[key]
        print(f"- {s.metric} [{s.target}]: {s.value:g}{s.unit}")
    return 0
