from __future__ import annotations

import os
import signal
import subprocess
import threading
import time
from dataclasses import dataclass
from pathlib import Path

POLL_INTERVAL_S = 0.1


@dataclass(frozen=True)
class CommandResult:
    code: int
    stdout: str
    stderr: str
    duration_ms: int
    timed_out: bool = False
    aborted: bool = False

    @property
    def combined_output(self) -> str:
        return (self.stdout + self.stderr).strip()


def _kill_tree(proc: subprocess.Popen[str]) -> None:
    # the child leads its own session on posix, so browsers it spawned go down with it
    try:
        if os.name == "posix":
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except ProcessLookupError:
        pass


def run_command(
    cmd: list[str],
    cwd: Path | None = None,
    timeout_seconds: float | None = None,
    abort: threading.Event | None = None,
) -> CommandResult:
    """Run `cmd` to completion, killing it on timeout or as soon as `abort` is set."""
    started = time.monotonic()
    deadline = started + timeout_seconds if timeout_seconds else None
    proc = subprocess.Popen(
        cmd,
        cwd=cwd,
        text=True,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        start_new_session=os.name == "posix",
    )
    while True:
        try:
            stdout, stderr = proc.communicate(timeout=POLL_INTERVAL_S)
            break
        except subprocess.TimeoutExpired:
            aborted = abort is not None and abort.is_set()
            expired = deadline is not None and time.monotonic() >= deadline
            if not (aborted or expired):
                continue
            _kill_tree(proc)
            stdout, stderr = proc.communicate()
            return CommandResult(
                code=124,
                stdout=stdout or "",
                stderr=stderr or "",
                duration_ms=int((time.monotonic() - started) * 1000),
                timed_out=expired and not aborted,
                aborted=aborted,
            )
    return CommandResult(
        code=proc.returncode,
        stdout=stdout or "",
        stderr=stderr or "",
        duration_ms=int((time.monotonic() - started) * 1000),
    )
