# File: link_scout/report/html_report.py
"""link_scout.report.html_report: Генерация HTML-отчёта с помощью Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from link_scout.aggregator import ValidationReport, result_to_dict
from link_scout.utils import percentage

DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
TEMPLATE_NAME = "report.html.j2"


def _status_bucket(code: int) -> str:
    return f"{code // 100}xx" if code else "0"


def format_html(
    report: ValidationReport, template_dir: Union[Path, str, None] = None
) -> str:
    """Рендерит HTML-отчёт из шаблона и возвращает его строкой."""
    env = Environment(
        loader=FileSystemLoader(str(template_dir or DEFAULT_TEMPLATE_DIR)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    template = env.get_template(TEMPLATE_NAME)

    rows = []
    for result in report.results:
        row = result_to_dict(result)
        row["status_bucket"] = _status_bucket(result.status_code)
        rows.append(row)

    context: dict[str, Any] = {
        "report": report,
        "rows": rows,
        "generated_at": report.start_time.strftime("%B %d, %Y at %H:%M") if report.start_time else "",
        "duration": f"{report.duration:.3f}s",
        "success_pct": percentage(report.success_links, report.total_links),
        "broken_pct": percentage(report.broken_links, report.total_links),
    }
    return template.render(**context)


def render_html(
    report: ValidationReport,
    template_dir: Union[Path, str, None],
    output_path: Union[Path, str],
) -> Path:
    """Рендерит HTML-отчёт и сохраняет его по указанному пути.

    Args:
        report: объект ValidationReport.
        template_dir: директория с Jinja2-шаблонами (None: встроенный шаблон).
        output_path: путь к итоговому HTML-файлу.

    Returns:
        Path до сохранённого HTML-файла.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(format_html(report, template_dir), encoding="utf-8")
    return output_path
