# File: site_pdf/report/html_report.py
"""site_pdf.report.html_report: Генерация HTML-отчёта с помощью Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from site_pdf.scheduler import RunOutcome

_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


def render_html(
    outcome: RunOutcome,
    output_path: Union[Path, str],
    template_dir: Optional[Union[Path, str]] = None,
) -> Path:
    """Рендерит HTML-отчёт из шаблона и сохраняет его по указанному пути.

    Args:
        outcome: объект RunOutcome.
        output_path: путь к итоговому HTML-файлу.
        template_dir: директория с шаблоном ``report.html.j2``
            (по умолчанию ``site_pdf/templates``).

    Returns:
        Path до сохранённого HTML-файла.
    """
    from site_pdf.report import report_data

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(template_dir or _TEMPLATE_DIR)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    template = env.get_template("report.html.j2")

    html_content = template.render(**report_data(outcome))
    output_path.write_text(html_content, encoding="utf-8")

    return output_path
