# site_capture/crawler/store.py
"""
Append-only collection of captured records.
"""
from __future__ import annotations

from typing import List

from site_capture.crawler.models import CapturedRecord


class CaptureStore:
    """Holds records in completion order. Nothing is ever removed."""

    def __init__(self) -> None:
        self._records: List[CapturedRecord] = []

    def append(self, record: CapturedRecord) -> None:
        self._records.append(record)

    @property
    def records(self) -> List[CapturedRecord]:
        return list(self._records)

    @property
    def pages(self) -> List[CapturedRecord]:
        return [r for r in self._records if not r.is_resource]

    @property
    def resources(self) -> List[CapturedRecord]:
        return [r for r in self._records if r.is_resource]

    def __len__(self) -> int:
        return len(self._records)
