from __future__ import annotations

from pathlib import Path

from ..core.schema import validate_payload
from ..core.serialize import NonFiniteValue, document_text
from ..errors import ConfigInvalid, PerfGateError
from ..exit_codes import ERR_ARTIFACT
from ..models import GateReport
from .render import render_html, render_text

REPORT_JSON = "perf-gate-report.json"
REPORT_TEXT = "perf-gate-summary.txt"
REPORT_HTML = "perf-gate-report.html"


def report_json(report: GateReport) -> str:
    payload = report.to_json()
    try:
        validate_payload(payload, "report.schema.json", "gate report")
    except ConfigInvalid as exc:
        raise PerfGateError(exc.message, ERR_ARTIFACT, kind="report_invalid") from exc
    try:
        return document_text(payload)
    except NonFiniteValue as exc:
        message = f"gate report holds a non-finite number: {exc}"
        raise PerfGateError(message, ERR_ARTIFACT, kind="report_invalid") from exc


def write_report(report: GateReport, report_dir: Path) -> dict[str, Path]:
    """Write the report under stable file names so CI can glob a known path."""
    report_dir.mkdir(parents=True, exist_ok=True)
    paths = {
        "json": report_dir / REPORT_JSON,
        "text": report_dir / REPORT_TEXT,
        "html": report_dir / REPORT_HTML,
    }
    paths["json"].write_text(report_json(report), encoding="utf-8")
    paths["text"].write_text(render_text(report), encoding="utf-8")
    paths["html"].write_text(render_html(report), encoding="utf-8")
    return paths
