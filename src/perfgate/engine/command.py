from __future__ import annotations

import argparse

from ..cli.output import emit
from ..core.config import COLLECTOR_TIMEOUT_S, RUN_TIMEOUT_S, WEB_VITALS_TIMEOUT_S, GateConfig
from ..core.context import RunContext
from ..reporting.render import render_text
from .orchestrator import run_gate


def configure_run_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("run", help="collect metrics, evaluate budgets and baseline, write the gate report")
    targets = p.add_argument_group("targets")
    targets.add_argument("--url", help="page URL audited for web vitals [BASE_URL]")
    targets.add_argument("--build-dir", help="build output directory to size [PERF_BUILD_DIR]")
    targets.add_argument("--endpoint", action="append", help="endpoint base URL to probe; repeatable [PERF_ENDPOINTS]")
    targets.add_argument("--function", action="append", help="function name or URL for cold starts; repeatable [PERF_FUNCTIONS]")
    targets.add_argument("--functions-url", help="base URL that function names are joined to [FUNCTIONS_URL]")
    targets.add_argument("--environment", default=argparse.SUPPRESS, help="environment label [TEST_ENVIRONMENT]")
    files = p.add_argument_group("files")
    files.add_argument("--budgets", help="budget config path (.json/.yaml) [PERF_BUDGETS_FILE]")
    files.add_argument("--baseline", help="baseline snapshot path [PERF_BASELINE_FILE]")
    files.add_argument("--report-dir", help="report output directory [PERF_REPORT_DIR]")
    probes = p.add_argument_group("probes")
    probes.add_argument("--health-path", default="health", help="liveness path appended to each endpoint")
    probes.add_argument("--probe-samples", type=int, default=1, help="probes per endpoint, averaged (mean)")
    probes.add_argument("--idle-seconds", type=float, default=2.0, help="idle gap before each cold-start invocation")
    probes.add_argument("--request-timeout", type=float, default=10.0, help="per-request timeout in seconds")
    probes.add_argument("--lighthouse-bin", help="lighthouse executable [LIGHTHOUSE_BIN]")
    probes.add_argument("--lighthouse-report", help="read web vitals from an existing lighthouse JSON report")
    limits = p.add_argument_group("limits")
    limits.add_argument("--web-vitals-timeout", type=float, default=WEB_VITALS_TIMEOUT_S)
    limits.add_argument("--collector-timeout", type=float, default=COLLECTOR_TIMEOUT_S)
    limits.add_argument("--run-timeout", type=float, default=RUN_TIMEOUT_S, help="overall collection timeout; 0 disables")
    limits.add_argument("--regression-tolerance", type=float, help="relative increase in percent flagged as regression")
    p.add_argument("--json", action="store_true", help="emit the JSON report on stdout")


def run_gate_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    config = GateConfig.from_args(ctx, ns)
    outcome = run_gate(ctx, config)
    if ctx.output_format == "json" or ns.json:
        payload = outcome.report.to_json()
        payload["artifacts"] = {kind: str(path) for kind, path in sorted(outcome.paths.items())}
        emit(payload, True)
    elif not ctx.quiet or not outcome.passed:
        print(render_text(outcome.report), end="")
        print(f"report: {outcome.paths['json']}")
    return outcome.exit_code
