"""
Запись захваченных ответов на диск: один файл на запись.
"""
from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence, Union

from site_capture.crawler.models import CapturedRecord
from site_capture.errors import FatalConfigError
from site_capture.logger import logger
from site_capture.utils import guess_extension, safe_filename


class ResponseWriter:
    """Сохраняет записи как ``<номер>_<url><расширение>`` в output_dir."""

    def __init__(self, output_dir: Union[str, Path]) -> None:
        self.output_dir = Path(output_dir).expanduser()

    def prepare(self) -> Path:
        """Создаёт каталог вывода; ошибка фатальна и прерывает запуск до обхода."""
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FatalConfigError(f"Cannot create output directory {self.output_dir}: {exc}") from exc
        if not self.output_dir.is_dir():
            raise FatalConfigError(f"Output path {self.output_dir} is not a directory")
        return self.output_dir

    def filename_for(self, index: int, record: CapturedRecord) -> str:
        ext = guess_extension(record.mime_type, record.body)
        return f"{index}_{safe_filename(record.url)}{ext}"

    def write(self, records: Sequence[CapturedRecord]) -> List[Optional[Path]]:
        """
        Пишет непустые записи. Возвращает список той же длины:
        путь к файлу или None, если запись пустая или не записалась.
        """
        logger.info("Saving %d responses to %s", len(records), self.output_dir)
        written: List[Optional[Path]] = []
        for i, record in enumerate(records, start=1):
            if not record.body:
                written.append(None)
                continue
            path = self.output_dir / self.filename_for(i, record)
            try:
                path.write_text(record.body, encoding="utf-8")
            except OSError as exc:
                logger.error("Failed to write content file %d (%s): %s", i, record.url, exc)
                written.append(None)
                continue
            written.append(path)
        logger.info("   Saved %d files", sum(1 for p in written if p))
        return written
