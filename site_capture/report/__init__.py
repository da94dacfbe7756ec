"""site_capture.report: Генерация отчётов об обходе (JSON-манифест и HTML-индекс)."""

from __future__ import annotations

from site_capture.report.html_report import render_html
from site_capture.report.json_report import render_json

__all__ = ["render_json", "render_html"]
