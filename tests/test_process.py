from __future__ import annotations

import sys
import threading
import time

from perfgate.core.process import run_command


def test_command_output_and_exit_code() -> None:
    result = run_command([sys.executable, "-c", "import sys; print('ok'); sys.exit(3)"])
    assert result.code == 3
    assert result.stdout.strip() == "ok"
    assert not result.timed_out
    assert not result.aborted


def test_command_is_killed_at_its_deadline() -> None:
    started = time.monotonic()
    result = run_command([sys.executable, "-c", "import time; time.sleep(10)"], timeout_seconds=0.3)
    assert result.timed_out
    assert not result.aborted
    assert result.code == 124
    assert time.monotonic() - started < 5


def test_abort_event_kills_the_running_command() -> None:
    abort = threading.Event()
    timer = threading.Timer(0.2, abort.set)
    timer.start()
    started = time.monotonic()
    try:
        result = run_command([sys.executable, "-c", "import time; time.sleep(10)"], timeout_seconds=30, abort=abort)
    finally:
        timer.cancel()
    assert result.aborted
    assert not result.timed_out
    assert time.monotonic() - started < 5
