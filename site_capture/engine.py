"""site_capture.engine: запуск обхода под общим таймаутом и сохранение результатов."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List, Optional, Tuple

from site_capture.aggregator import CrawlReport, aggregate_records
from site_capture.config import CrawlConfig
from site_capture.crawler.crawler import AsyncCrawler
from site_capture.crawler.models import CapturedRecord
from site_capture.crawler.render import RenderService
from site_capture.logger import logger
from site_capture.storage import ResponseWriter

__all__ = ["Engine", "start_crawl"]


async def start_crawl(
    cfg: CrawlConfig, renderer: Optional[RenderService] = None
) -> Tuple[List[CapturedRecord], List[str]]:
    """
    Запускает краулер и возвращает (захваченные записи, не загруженные URL).

    По истечении cfg.crawl_timeout обход прерывается; всё, что уже попало
    в хранилище, считается результатом.
    """
    async with AsyncCrawler(cfg, renderer) as crawler:
        try:
            await asyncio.wait_for(crawler.crawl(), timeout=cfg.crawl_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Crawl did not finish within %s seconds, keeping %d captured records",
                cfg.crawl_timeout,
                len(crawler.store),
            )
        return crawler.store.records, list(crawler.failed)


class Engine:
    """Фасад для CLI и тестов: подготовка каталога, обход, запись файлов и сводка."""

    def __init__(self, config: CrawlConfig, renderer: Optional[RenderService] = None) -> None:
        self.config = config
        self.renderer = renderer
        self.writer = ResponseWriter(config.output_dir)

    def run(self) -> CrawlReport:
        """Синхронно выполняет обход и возвращает отчёт о сохранённых файлах."""
        self.writer.prepare()
        logger.info("Starting crawl of %s", self.config.target_url)
        records, failed = asyncio.run(start_crawl(self.config, self.renderer))
        return self.save(records, failed)

    def save(self, records: List[CapturedRecord], failed: List[str]) -> CrawlReport:
        files: List[Optional[Path]] = self.writer.write(records)
        report = aggregate_records(records, failed, files)
        logger.info("Crawl complete! Saved %d responses to %s", report.files_written, self.writer.output_dir)
        return report
