from __future__ import annotations

import json
import sys
import threading
from typing import TYPE_CHECKING

from .clock import utc_now_iso

if TYPE_CHECKING:
    from .context import RunContext

_LOCK = threading.Lock()


def log_event(ctx: RunContext, level: str, component: str, action: str, **fields: object) -> None:
    if level == "debug" and not ctx.verbose:
        return
    if ctx.quiet and level in {"debug", "info"}:
        return
    payload = {
        "ts": utc_now_iso(),
        "level": level,
        "run_id": ctx.run_id,
        "component": component,
        "action": action,
        **fields,
    }
    if ctx.log_json:
        line = json.dumps(payload, sort_keys=True, default=str)
    else:
        core = f"ts={payload['ts']} level={level} run_id={ctx.run_id} component={component} action={action}"
        extras = " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
        line = core if not extras else f"{core} {extras}"
    with _LOCK:
        sys.stderr.write(line + "\n")
