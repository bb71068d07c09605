from __future__ import annotations

from .generator import generate
from .render import render_html, render_text
from .writer import REPORT_HTML, REPORT_JSON, REPORT_TEXT, write_report

__all__ = ["REPORT_HTML", "REPORT_JSON", "REPORT_TEXT", "generate", "render_html", "render_text", "write_report"]
