from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

from perfgate import __version__
from perfgate.exit_codes import ERR_CONFIG, ERR_VIOLATIONS

ROOT = Path(__file__).resolve().parents[1]


def run_perfgate(*args: str, cwd: Path, env: dict[str, str] | None = None) -> subprocess.CompletedProcess[str]:
    proc_env = {k: v for k, v in os.environ.items() if not k.startswith(("PERF_", "BASE_URL", "FUNCTIONS_URL"))}
    proc_env["PYTHONPATH"] = str(ROOT / "src")
    proc_env["RUN_ID"] = "pytest-run"
    proc_env.update(env or {})
    return subprocess.run(
        [sys.executable, "-m", "perfgate.cli", *args],
        cwd=cwd,
        env=proc_env,
        text=True,
        capture_output=True,
        check=False,
    )


def _dist(root: Path, main_kb: int) -> Path:
    dist = root / "dist"
    dist.mkdir()
    (dist / "main.js").write_bytes(b"x" * main_kb * 1024)
    return dist


def test_version_flag(tmp_path: Path) -> None:
    proc = run_perfgate("--version", cwd=tmp_path)
    assert proc.returncode == 0
    assert f"perfgate {__version__}" in proc.stdout


def test_budgets_init_refuses_to_overwrite(tmp_path: Path) -> None:
    first = run_perfgate("budgets", "init", cwd=tmp_path)
    assert first.returncode == 0, first.stderr
    assert (tmp_path / "performance-budgets.json").is_file()
    second = run_perfgate("--json", "budgets", "init", cwd=tmp_path)
    assert second.returncode == ERR_CONFIG
    error = json.loads(second.stderr.strip().splitlines()[-1])
    assert error["status"] == "error"
    assert error["errors"][0]["kind"] == "exists"
    forced = run_perfgate("budgets", "init", "--force", cwd=tmp_path)
    assert forced.returncode == 0


def test_budgets_validate_rejects_inverted_thresholds(tmp_path: Path) -> None:
    (tmp_path / "b.json").write_text(
        json.dumps({"schema_version": 1, "budgets": {"lcp": {"unit": "ms", "budget": 2000, "warning": 2500}}}),
        encoding="utf-8",
    )
    proc = run_perfgate("budgets", "validate", "--budgets", "b.json", cwd=tmp_path)
    assert proc.returncode == ERR_CONFIG
    assert "warning 2500.0 must be strictly below budget 2000.0" in proc.stderr


def test_run_with_build_dir_only_passes_and_writes_reports(tmp_path: Path) -> None:
    _dist(tmp_path, 100)
    proc = run_perfgate("--quiet", "run", "--build-dir", "dist", cwd=tmp_path)
    assert proc.returncode == 0, proc.stdout + proc.stderr
    reports = tmp_path / "performance-reports"
    payload = json.loads((reports / "perf-gate-report.json").read_text(encoding="utf-8"))
    assert payload["status"] == "pass"
    assert payload["baseline_created"] is True
    assert payload["run_id"] == "pytest-run"
    statuses = {c["collector"]: c["status"] for c in payload["collectors"]}
    assert statuses == {
        "web-vitals": "skipped",
        "artifact-size": "ok",
        "endpoint-latency": "skipped",
        "cold-start": "skipped",
    }
    assert (reports / "perf-gate-summary.txt").is_file()
    assert (reports / "perf-gate-report.html").is_file()
    assert (tmp_path / "performance-baseline.json").is_file()


def test_run_fails_on_oversized_bundle_with_json_output(tmp_path: Path) -> None:
    _dist(tmp_path, 600)
    proc = run_perfgate("--json", "run", cwd=tmp_path, env={"PERF_BUILD_DIR": "dist"})
    assert proc.returncode == ERR_VIOLATIONS
    payload = json.loads(proc.stdout)
    assert payload["status"] == "fail"
    critical = [v for v in payload["violations"] if v["severity"] == "critical"]
    assert [(v["metric"], v["measured"], v["budget"]) for v in critical] == [("artifact-size-main", 600.0, 500.0)]
    assert payload["artifacts"]["json"].endswith("perf-gate-report.json")


def test_baseline_update_promotes_last_report(tmp_path: Path) -> None:
    _dist(tmp_path, 100)
    assert run_perfgate("--quiet", "run", "--build-dir", "dist", cwd=tmp_path).returncode == 0
    (tmp_path / "dist" / "main.js").write_bytes(b"x" * 150 * 1024)
    second = run_perfgate("--json", "run", "--build-dir", "dist", cwd=tmp_path)
    assert second.returncode == 0
    assert [r["metric"] for r in json.loads(second.stdout)["regressions"]] == ["artifact-size-main", "artifact-size-total"]
    update = run_perfgate("baseline", "update", cwd=tmp_path)
    assert update.returncode == 0, update.stderr
    shown = run_perfgate("--json", "baseline", "show", cwd=tmp_path)
    samples = json.loads(shown.stdout)["baseline"]["samples"]
    assert samples["artifact-size-main::main"]["value"] == 150.0


def test_baseline_show_without_file_is_config_error(tmp_path: Path) -> None:
    proc = run_perfgate("baseline", "show", cwd=tmp_path)
    assert proc.returncode == ERR_CONFIG
    assert "baseline not found" in proc.stderr


def test_unknown_command_is_usage_error(tmp_path: Path) -> None:
    proc = run_perfgate("frobnicate", cwd=tmp_path)
    assert proc.returncode == 2
