# site_capture/report/json_report.py

"""
Генерация JSON-манифеста для проекта SiteCapture.

Сериализация объекта CrawlReport в файл.
"""
import json
from pathlib import Path

from site_capture.aggregator import CrawlReport


def render_json(report: CrawlReport, output_path: Path | str, *, pretty: bool = True) -> Path:
    """
    Сохраняет отчёт report в формате JSON по указанному пути.

    :param report: объект CrawlReport с данными обхода
    :param output_path: путь к JSON-файлу
    :param pretty: форматировать с отступами
    :return: Path сохранённого файла

    Пример:
    ```python
    from site_capture.report.json_report import render_json
    manifest = render_json(report, 'responses/manifest.json')
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    data = {
        'summary': report.summary(),
        'records': report.records,
        'failed': report.failed,
    }

    with output.open('w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2 if pretty else None)

    return output
