from __future__ import annotations

import os
import shlex
import threading
import time
from dataclasses import dataclass
from pathlib import Path

import pytest

from perfgate.collectors import ArtifactSizeCollector, CollectorSlot, StaticCollector, WebVitalsCollector
from perfgate.core.context import RunContext
from perfgate.engine.execution import run_collectors
from perfgate.errors import CollectorUnavailable


@dataclass
class StallingCollector:
    name: str
    timeout_seconds: float = 0.2

    def enabled(self) -> bool:
        return True

    def collect(self, slot: CollectorSlot, abort: threading.Event) -> None:
        slot.emit("function-cold-start", 1500, "ms", "resize")
        abort.wait(10)


def test_failing_collector_does_not_hide_the_others(ctx: RunContext) -> None:
    collectors = [
        StaticCollector("web-vitals", error=CollectorUnavailable("lighthouse binary not found: lighthouse")),
        StaticCollector("endpoint-latency", [("endpoint-response-time", 120, "ms", "https://api.example.test")]),
        ArtifactSizeCollector(None),
    ]
    result = run_collectors(ctx, collectors)
    assert [(o.collector, o.status) for o in result.outcomes] == [
        ("web-vitals", "failed"),
        ("endpoint-latency", "ok"),
        ("artifact-size", "skipped"),
    ]
    assert result.outcomes[0].error == "lighthouse binary not found: lighthouse"
    assert [s.value for s in result.outcomes[1].samples] == [120]
    assert not result.incomplete


def test_unexpected_exception_is_a_failed_collector(ctx: RunContext) -> None:
    result = run_collectors(ctx, [StaticCollector("cold-start", error=ValueError("boom"))])
    assert result.outcomes[0].status == "failed"
    assert result.outcomes[0].error == "ValueError: boom"


def test_slow_collector_times_out_with_partial_samples(ctx: RunContext) -> None:
    collectors = [StallingCollector("cold-start"), StaticCollector("artifact-size", [("artifact-size-main", 10, "KB", "main")])]
    result = run_collectors(ctx, collectors, run_timeout=30)
    by_name = {o.collector: o for o in result.outcomes}
    assert by_name["cold-start"].status == "timeout"
    assert [s.metric for s in by_name["cold-start"].samples] == ["function-cold-start"]
    assert by_name["artifact-size"].status == "ok"
    assert not result.incomplete


def test_run_timeout_marks_collection_incomplete(ctx: RunContext) -> None:
    collectors = [StallingCollector("cold-start", timeout_seconds=30), StallingCollector("web-vitals", timeout_seconds=30)]
    result = run_collectors(ctx, collectors, run_timeout=0.2)
    assert result.incomplete
    assert {o.status for o in result.outcomes} == {"timeout"}
    assert "0.2s" in (result.outcomes[0].error or "")


@pytest.mark.slow
@pytest.mark.skipif(os.name != "posix", reason="needs a POSIX shell")
def test_run_timeout_stops_a_running_lighthouse(tmp_path: Path, ctx: RunContext) -> None:
    marker = tmp_path / "lighthouse-finished"
    binary = tmp_path / "lighthouse"
    binary.write_text(f"#!/bin/sh\nsleep 2\ntouch {shlex.quote(str(marker))}\n", encoding="utf-8")
    binary.chmod(0o755)
    collector = WebVitalsCollector(url="https://app.example.test", lighthouse_bin=str(binary), timeout_seconds=30)
    result = run_collectors(ctx, [collector], run_timeout=0.3)
    assert result.incomplete
    assert result.outcomes[0].status == "timeout"
    time.sleep(2.5)
    assert not marker.exists()
