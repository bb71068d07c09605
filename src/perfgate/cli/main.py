from __future__ import annotations

import argparse
import importlib
import sys

from .. import __version__
from ..core.context import RunContext
from ..core.logging import log_event
from ..errors import PerfGateError
from ..exit_codes import ERR_INTERNAL
from .output import build_base_payload, emit, render_error

CONFIGURE_HOOKS: tuple[tuple[str, str], ...] = (
    ("perfgate.engine.command", "configure_run_parser"),
    ("perfgate.budgets.command", "configure_budgets_parser"),
    ("perfgate.baseline.command", "configure_baseline_parser"),
)
COMMAND_RUNNERS: dict[str, tuple[str, str]] = {
    "run": ("perfgate.engine.command", "run_gate_command"),
    "budgets": ("perfgate.budgets.command", "run_budgets_command"),
    "baseline": ("perfgate.baseline.command", "run_baseline_command"),
}


def _import_attr(module_name: str, attr: str):
    return getattr(importlib.import_module(module_name), attr)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="perfgate", description="performance budget gate")
    p.add_argument("--version", action="version", version=f"perfgate {__version__}")
    p.add_argument("--json", action="store_true", help="emit JSON output")
    p.add_argument("--run-id", help="run identifier recorded in logs and reports [RUN_ID]")
    p.add_argument("--environment", default=argparse.SUPPRESS, help="environment label [TEST_ENVIRONMENT]")
    p.add_argument("--log-json", action="store_true", help="emit structured log events as JSON lines")
    vg = p.add_mutually_exclusive_group()
    vg.add_argument("--verbose", action="store_true", help="enable debug events")
    vg.add_argument("--quiet", action="store_true", help="only emit warnings and errors")
    sub = p.add_subparsers(dest="cmd", required=True)

    version_p = sub.add_parser("version", help="print version and git context")
    version_p.add_argument("--json", action="store_true", help="emit JSON output")
    for module_name, attr in CONFIGURE_HOOKS:
        _import_attr(module_name, attr)(sub)
    return p


def main(argv: list[str] | None = None) -> int:
    raw_argv = argv if argv is not None else sys.argv[1:]
    p = build_parser()
    ns = p.parse_args(raw_argv)
    as_json = "--json" in raw_argv
    try:
        ctx = RunContext.from_args(
            ns.run_id,
            getattr(ns, "environment", None),
            output_format="json" if as_json else "text",
            log_json=ns.log_json,
            verbose=ns.verbose,
            quiet=ns.quiet,
        )
        log_event(ctx, "debug", "cli", "start", cmd=ns.cmd, fmt=ctx.output_format)
        if ns.cmd == "version":
            emit({**build_base_payload(ctx), "perfgate_version": __version__}, as_json)
            return 0
        module_name, attr = COMMAND_RUNNERS[ns.cmd]
        return int(_import_attr(module_name, attr)(ctx, ns))
    except PerfGateError as exc:
        print(render_error(as_json=as_json, message=exc.message, code=exc.code, kind=exc.kind), file=sys.stderr)
        return exc.code
    except Exception as exc:  # noqa: BLE001
        print(
            render_error(as_json=as_json, message=f"internal error: {type(exc).__name__}: {exc}", code=ERR_INTERNAL),
            file=sys.stderr,
        )
        return ERR_INTERNAL


if __name__ == "__main__":
    raise SystemExit(main())
