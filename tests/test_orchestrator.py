from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from perfgate.budgets.store import BudgetConfig
from perfgate.collectors import CollectorSlot, ColdStartCollector, EndpointLatencyCollector, StaticCollector
from perfgate.core import network
from perfgate.core.config import GateConfig
from perfgate.core.context import RunContext
from perfgate.engine import GatePhase, run_gate
from perfgate.engine.orchestrator import GateRun
from perfgate.errors import CollectorUnavailable, ConfigInvalid, PerfGateError
from perfgate.exit_codes import ERR_COLLECTOR, ERR_VIOLATIONS, OK


def _config(tmp_path: Path) -> GateConfig:
    return GateConfig(
        url=None,
        build_dir=None,
        endpoints=(),
        functions=(),
        functions_url=None,
        budgets_path=tmp_path / "performance-budgets.json",
        baseline_path=tmp_path / "performance-baseline.json",
        report_dir=tmp_path / "performance-reports",
    )


def _vitals(lcp: float) -> StaticCollector:
    return StaticCollector("web-vitals", [("largest-contentful-paint", lcp, "ms", "https://app.example.test")])


def _sizes(main: float) -> StaticCollector:
    return StaticCollector("artifact-size", [("artifact-size-main", main, "KB", "main")])


def test_first_run_creates_baseline_and_passes_within_budget(tmp_path: Path, ctx: RunContext) -> None:
    config = _config(tmp_path)
    outcome = run_gate(ctx, config, [_vitals(1800), _sizes(300.0)])
    assert outcome.exit_code == OK
    assert outcome.passed
    assert outcome.report.baseline_created
    assert outcome.report.regressions == ()
    assert config.baseline_path.is_file()
    assert config.budgets_path.is_file()
    payload = json.loads(outcome.paths["json"].read_text(encoding="utf-8"))
    assert payload["status"] == "pass"
    assert len(payload["samples"]) == 2


def test_critical_budget_violation_fails_the_gate(tmp_path: Path, ctx: RunContext) -> None:
    outcome = run_gate(ctx, _config(tmp_path), [_vitals(2600), _sizes(300.0)])
    assert outcome.exit_code == ERR_VIOLATIONS
    assert [v.metric for v in outcome.report.violations] == ["largest-contentful-paint"]
    assert "largest-contentful-paint" in outcome.paths["text"].read_text(encoding="utf-8")


def test_regression_alone_keeps_the_gate_green(tmp_path: Path, ctx: RunContext) -> None:
    config = _config(tmp_path)
    run_gate(ctx, config, [_sizes(400.0)])
    outcome = run_gate(ctx, config, [_sizes(460.0)])
    assert outcome.exit_code == OK
    assert [r.metric for r in outcome.report.regressions] == ["artifact-size-main"]
    assert not outcome.report.baseline_created


def test_collector_failure_alone_maps_to_collector_exit_code(tmp_path: Path, ctx: RunContext) -> None:
    broken = StaticCollector("web-vitals", error=CollectorUnavailable("lighthouse binary not found: lighthouse"))
    outcome = run_gate(ctx, _config(tmp_path), [broken, _sizes(300.0)])
    assert outcome.exit_code == ERR_COLLECTOR
    assert not outcome.passed
    assert [s.metric for s in outcome.report.samples] == ["artifact-size-main"]


def test_budget_violation_outranks_collector_failure(tmp_path: Path, ctx: RunContext) -> None:
    broken = StaticCollector("cold-start", error=CollectorUnavailable("no functions base URL"))
    outcome = run_gate(ctx, _config(tmp_path), [broken, _vitals(2600)])
    assert outcome.exit_code == ERR_VIOLATIONS


def test_invalid_budgets_abort_before_collection(tmp_path: Path, ctx: RunContext) -> None:
    config = _config(tmp_path)
    config.budgets_path.write_text('{"schema_version": 1, "budgets": {"x": {"unit": "ms"}}}', encoding="utf-8")
    with pytest.raises(ConfigInvalid):
        run_gate(ctx, config, [_vitals(1800)])
    assert not config.report_dir.exists()


def test_phases_cannot_be_skipped(ctx: RunContext) -> None:
    run = GateRun(phase=GatePhase.INIT, budgets=BudgetConfig.defaults())
    with pytest.raises(PerfGateError) as err:
        run.advance(ctx, GatePhase.EVALUATING)
    assert err.value.kind == "phase_order"
    assert run.advance(ctx, GatePhase.COLLECTING).phase is GatePhase.COLLECTING
    assert run.phase is GatePhase.INIT


@dataclass
class RecordingCollector:
    name: str = "web-vitals"
    timeout_seconds: float = 30.0
    calls: list[str] = field(default_factory=list)

    def enabled(self) -> bool:
        return True

    def collect(self, slot: CollectorSlot, abort: threading.Event) -> None:
        self.calls.append(self.name)


@pytest.mark.parametrize("content", ["{", "[]", '{"schema_version": 1}'])
def test_invalid_baseline_aborts_before_collection(tmp_path: Path, ctx: RunContext, content: str) -> None:
    config = _config(tmp_path)
    config.baseline_path.write_text(content, encoding="utf-8")
    recorder = RecordingCollector()
    with pytest.raises(ConfigInvalid):
        run_gate(ctx, config, [recorder])
    assert recorder.calls == []
    assert not config.report_dir.exists()
    assert config.baseline_path.read_text(encoding="utf-8") == content


def _unhealthy(url: str, timeout_seconds: float = 5) -> network.HttpProbe:
    return network.HttpProbe(status=503, elapsed_ms=50.0, error="http 503")


def test_unhealthy_endpoint_fails_the_gate_once(
    tmp_path: Path, ctx: RunContext, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr("perfgate.core.network.timed_get", _unhealthy)
    outcome = run_gate(ctx, _config(tmp_path), [EndpointLatencyCollector(["https://api.example.test"])])
    assert outcome.exit_code == ERR_VIOLATIONS
    criticals = [v for v in outcome.report.violations if v.is_critical]
    assert [(v.metric, v.target) for v in criticals] == [("endpoint-error-rate", "https://api.example.test")]
    response = next(s for s in outcome.report.samples if s.metric == "endpoint-response-time")
    assert response.value == 50


def test_unhealthy_function_ping_fails_the_gate(
    tmp_path: Path, ctx: RunContext, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr("perfgate.core.network.timed_get", _unhealthy)
    collector = ColdStartCollector(["https://fn.example.test/resize"], idle_seconds=0)
    outcome = run_gate(ctx, _config(tmp_path), [collector])
    assert outcome.exit_code == ERR_VIOLATIONS
    criticals = [v for v in outcome.report.violations if v.is_critical]
    assert [(v.metric, v.target) for v in criticals] == [("probe-status", "https://fn.example.test/resize")]
    assert "503" in criticals[0].reason
    assert "probe-status" in outcome.paths["text"].read_text(encoding="utf-8")
