"""CLI payload output helpers."""

from __future__ import annotations

import sys

from ..core.context import RunContext
from ..core.serialize import document_text, line_text


def emit(payload: dict[str, object], as_json: bool) -> None:
    if as_json:
        print(line_text(payload))
    else:
        sys.stdout.write(document_text(payload))


def build_base_payload(ctx: RunContext, status: str = "ok") -> dict[str, object]:
    return {
        "schema_version": 1,
        "tool": "perfgate",
        "status": status,
        "run_id": ctx.run_id,
        "environment": ctx.environment,
        "git_sha": ctx.git_sha,
        "git_dirty": ctx.git_dirty,
    }


def render_error(*, as_json: bool, message: str, code: int, kind: str = "error") -> str:
    if as_json:
        return line_text(
            {
                "schema_version": 1,
                "tool": "perfgate",
                "status": "error",
                "errors": [{"code": code, "kind": kind, "message": message}],
            },
        )
    return f"perfgate: {message}"
