# site_pdf/report/json_report.py

"""
Генерация JSON-отчёта для проекта SitePDF.

Сериализация объекта RunOutcome в файл.
"""
import json
from pathlib import Path

from site_pdf.scheduler import RunOutcome


def render_json(outcome: RunOutcome, output_path: Path | str) -> Path:
    """
    Сохраняет итог запуска outcome в формате JSON по указанному пути.

    :param outcome: объект RunOutcome, который вернул Scheduler
    :param output_path: путь к JSON-файлу
    :return: Path сохранённого файла

    Пример:
    ```python
    from site_pdf.report.json_report import render_json
    report_path = render_json(outcome, 'reports/run.json')
    print(f"JSON report saved to: {report_path}")
    ```
    """
    from site_pdf.report import report_data

    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    # Запись в файл с отступами и Unicode
    with output.open('w', encoding='utf-8') as f:
        json.dump(report_data(outcome), f, ensure_ascii=False, indent=2)

    return output
