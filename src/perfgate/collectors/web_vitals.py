"""Page-load metrics from a single Lighthouse trace."""

from __future__ import annotations

import json
import shutil
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..core.process import run_command
from ..errors import CollectorTimeout, CollectorUnavailable
from .base import CollectorSlot

NAME = "web-vitals"

# lighthouse audit id -> (metric, unit)
AUDIT_METRICS: dict[str, tuple[str, str]] = {
    "largest-contentful-paint": ("largest-contentful-paint", "ms"),
    "max-potential-fid": ("interaction-latency", "ms"),
    "cumulative-layout-shift": ("cumulative-layout-shift", "score"),
    "first-contentful-paint": ("first-contentful-paint", "ms"),
    "interactive": ("time-to-interactive", "ms"),
}

CHROME_FLAGS = "--headless --no-sandbox --disable-gpu"


def lighthouse_command(binary: str, url: str) -> list[str]:
    return [
        binary,
        url,
        "--output=json",
        "--output-path=stdout",
        f"--chrome-flags={CHROME_FLAGS}",
        "--only-categories=performance",
        "--preset=desktop",
        "--throttling-method=devtools",
        "--quiet",
    ]


def extract_metrics(report: dict[str, Any]) -> dict[str, tuple[str, float, str]]:
    """Map lighthouse audits to `{metric: (audit_id, value, unit)}`, skipping absent audits."""
    audits = report.get("audits")
    if not isinstance(audits, dict):
        raise CollectorUnavailable("lighthouse report has no `audits` object")
    found: dict[str, tuple[str, float, str]] = {}
    for audit_id, (metric, unit) in AUDIT_METRICS.items():
        entry = audits.get(audit_id)
        raw = entry.get("numericValue") if isinstance(entry, dict) else None
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            found[metric] = (audit_id, float(raw), unit)
    if not found:
        raise CollectorUnavailable("lighthouse report contains none of the expected timing audits")
    return found


@dataclass
class WebVitalsCollector:
    url: str | None
    lighthouse_bin: str = "lighthouse"
    report_path: Path | None = None
    timeout_seconds: float = 120.0
    name: str = NAME

    def enabled(self) -> bool:
        return bool(self.url or self.report_path)

    def _load_report(self, abort: threading.Event) -> dict[str, Any]:
        if self.report_path is not None:
            if not self.report_path.is_file():
                raise CollectorUnavailable(f"lighthouse report not found: {self.report_path}")
            text = self.report_path.read_text(encoding="utf-8")
        else:
            binary = shutil.which(self.lighthouse_bin)
            if binary is None:
                raise CollectorUnavailable(f"lighthouse binary not found: {self.lighthouse_bin}")
            result = run_command(
                lighthouse_command(binary, str(self.url)),
                timeout_seconds=self.timeout_seconds,
                abort=abort,
            )
            if result.aborted:
                raise CollectorTimeout(f"lighthouse stopped after {result.duration_ms}ms: collection aborted")
            if result.timed_out:
                raise CollectorUnavailable(f"lighthouse timed out after {result.duration_ms}ms")
            if result.code != 0:
                tail = result.combined_output.splitlines()[-1] if result.combined_output else "no output"
                raise CollectorUnavailable(f"lighthouse exited with {result.code}: {tail}")
            text = result.stdout
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise CollectorUnavailable(f"lighthouse output is not valid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise CollectorUnavailable("lighthouse output is not a JSON object")
        return payload

    def collect(self, slot: CollectorSlot, abort: threading.Event) -> None:
        report = self._load_report(abort)
        if abort.is_set():
            return
        target = self.url or str(report.get("finalUrl") or report.get("requestedUrl") or self.report_path)
        for metric, (audit_id, value, unit) in extract_metrics(report).items():
            slot.emit(metric, value, unit, target, {"audit": audit_id, "tool": "lighthouse"})
