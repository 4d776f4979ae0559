# File: link_scout/report/__init__.py
"""link_scout.report: рендеринг отчёта (text, JSON, CSV, HTML) для CLI и тестов."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Union

from link_scout.aggregator import ValidationReport
from link_scout.report.csv_report import format_csv
from link_scout.report.html_report import format_html
from link_scout.report.json_report import format_json
from link_scout.report.text_report import format_text

FORMATTERS: Dict[str, Callable[[ValidationReport], str]] = {
    "text": format_text,
    "json": format_json,
    "csv": format_csv,
    "html": format_html,
}


def format_report(report: ValidationReport, fmt: str) -> str:
    """Возвращает отчёт в указанном формате."""
    try:
        formatter = FORMATTERS[fmt]
    except KeyError:
        raise ValueError(f"unsupported format: {fmt}") from None
    return formatter(report)


def write_report(report: ValidationReport, fmt: str, path: Union[str, Path]) -> Path:
    """Сохраняет отчёт в файл и возвращает его путь."""
    content = format_report(report, fmt)
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content, encoding="utf-8")
    return p


__all__ = ["FORMATTERS", "format_report", "write_report"]
