"""JSON encoding for every document perfgate writes or prints.

Output is strict JSON: NaN and infinities are refused so a report, baseline or
budget file written here always loads back with the same values.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


class NonFiniteValue(ValueError):
    pass


def document_text(payload: Any, sort_keys: bool = True) -> str:
    """Indented text for files meant to be diffed in review."""
    try:
        return json.dumps(payload, indent=2, sort_keys=sort_keys, allow_nan=False) + "\n"
    except ValueError as exc:
        raise NonFiniteValue(str(exc)) from exc


def line_text(payload: Any) -> str:
    """Single-line text for machine consumers on stdout and stderr."""
    try:
        return json.dumps(payload, sort_keys=True, allow_nan=False, separators=(",", ":"))
    except ValueError as exc:
        raise NonFiniteValue(str(exc)) from exc


def write_document(path: Path, payload: Any, sort_keys: bool = True) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(document_text(payload, sort_keys=sort_keys), encoding="utf-8")
    return path
