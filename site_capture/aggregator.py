# File: site_capture/aggregator.py
"""site_capture.aggregator: Сводка результатов обхода."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, TypedDict

from site_capture.crawler.models import CapturedRecord


class RecordInfo(TypedDict):
    """Информация об одной сохранённой записи."""

    url: str
    mime_type: str
    kind: str
    depth: int
    size: int
    file: Optional[str]


@dataclass(slots=True)
class CrawlReport:
    """Итог обхода: записи, ошибки и объём."""

    records: List[RecordInfo] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def pages(self) -> int:
        return sum(1 for r in self.records if r["kind"] == "page")

    @property
    def resources(self) -> int:
        return sum(1 for r in self.records if r["kind"] == "resource")

    @property
    def total_bytes(self) -> int:
        return sum(r["size"] for r in self.records)

    @property
    def files_written(self) -> int:
        return sum(1 for r in self.records if r["file"])

    def summary(self) -> dict:
        return {
            "pages": self.pages,
            "resources": self.resources,
            "failed": len(self.failed),
            "files_written": self.files_written,
            "total_bytes": self.total_bytes,
        }

    def json(self, *, pretty: bool = False) -> str:
        """Возвращает JSON-представление отчёта."""
        output = {"summary": self.summary(), **asdict(self)}
        return json.dumps(output, ensure_ascii=False, indent=2 if pretty else None)


def aggregate_records(
    records: Sequence[CapturedRecord],
    failed: Sequence[str] = (),
    files: Optional[Sequence[Optional[Path]]] = None,
) -> CrawlReport:
    """Собирает CrawlReport; files[i] это файл для records[i] или None."""
    report = CrawlReport(failed=list(failed))
    for i, rec in enumerate(records):
        path = files[i] if files is not None and i < len(files) else None
        report.records.append(
            {
                "url": rec.url,
                "mime_type": rec.mime_type,
                "kind": "resource" if rec.is_resource else "page",
                "depth": rec.depth,
                "size": rec.size,
                "file": path.name if path else None,
            }
        )
    return report
