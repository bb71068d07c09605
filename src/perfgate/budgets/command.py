from __future__ import annotations

import argparse
import os

from ..cli.output import build_base_payload, emit
from ..core.config import DEFAULT_BUDGETS_FILE
from ..core.context import RunContext
from ..core.logging import log_event
from ..errors import PerfGateError
from ..exit_codes import ERR_CONFIG
from .store import BudgetConfig, read_budgets, write_budgets


def configure_budgets_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("budgets", help="inspect and seed the budget config")
    budgets_sub = p.add_subparsers(dest="budgets_cmd", required=True)
    for name, help_text in (
        ("init", "write the built-in default budgets"),
        ("show", "print the effective budgets"),
        ("validate", "validate the budget config and exit non-zero when invalid"),
    ):
        cmd = budgets_sub.add_parser(name, help=help_text)
        cmd.add_argument("--budgets", help="budget config path [PERF_BUDGETS_FILE]")
        cmd.add_argument("--json", action="store_true", help="emit JSON output")
        if name == "init":
            cmd.add_argument("--force", action="store_true", help="overwrite an existing config")


def run_budgets_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    path = ctx.resolve(ns.budgets or os.environ.get("PERF_BUDGETS_FILE") or DEFAULT_BUDGETS_FILE)
    as_json = ctx.output_format == "json" or ns.json
    if ns.budgets_cmd == "init":
        if path.exists() and not ns.force:
            raise PerfGateError(f"budget config already exists: {path} (use --force)", ERR_CONFIG, kind="exists")
        write_budgets(path, BudgetConfig.defaults())
        log_event(ctx, "info", "budgets", "init", path=str(path))
        emit({**build_base_payload(ctx), "action": "init", "path": str(path)}, as_json)
        return 0
    config = read_budgets(path)
    if ns.budgets_cmd == "validate":
        emit({**build_base_payload(ctx), "action": "validate", "path": str(path), "count": len(config.budgets)}, as_json)
        return 0
    if as_json:
        emit({**build_base_payload(ctx), "action": "show", "path": str(path), "config": config.to_json()}, True)
        return 0
    print(f"budgets: {path} (regression tolerance {config.regression_tolerance_pct:g}%)")
    for name in sorted(config.budgets):
        b = config.budgets[name]
        print(f"- {name}: budget {b.budget:g}{b.unit}, warning {b.warning:g}{b.unit}")
    for group in sorted(config.artifact_groups):
        print(f"- artifact group {group}: {', '.join(config.artifact_groups[group])}")
    return 0
