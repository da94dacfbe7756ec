# === FILE: site_capture/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import logging
import time
from typing import List, Optional, Set

from site_capture.crawler.fetcher import Fetcher
from site_capture.crawler.frontier import Frontier
from site_capture.crawler.link_extractor import extract_links, extract_resources
from site_capture.crawler.models import CapturedRecord, FetchJob
from site_capture.crawler.render import RenderService, build_renderer
from site_capture.crawler.scope import SCOPE_POLICIES, url_host
from site_capture.crawler.store import CaptureStore
from site_capture.errors import FatalConfigError, TransientFetchError

__all__ = ("AsyncCrawler",)

PAGE_MIME = "text/html"


class AsyncCrawler:
    """Обход сайта в ширину через один сеанс рендеринга, по одной задаче за раз."""

    def __init__(self, config, renderer: Optional[RenderService] = None) -> None:
        self.config = config
        self.logger = logging.getLogger("SiteCapture")
        self.seed_url: str = str(config.target_url)
        host = url_host(self.seed_url)
        if host is None:
            raise FatalConfigError(f"Cannot determine host of seed URL {self.seed_url!r}")
        self.scope_host: str = host
        self._in_scope = SCOPE_POLICIES[getattr(config, "scope", "strict")]
        self.renderer: RenderService = renderer if renderer is not None else build_renderer(config)
        self.fetcher = Fetcher.from_config(self.renderer, config)
        self.frontier = Frontier(config.max_depth)
        self.store = CaptureStore()
        self.dedupe_resources: bool = getattr(config, "dedupe_resources", True)
        self.fetched_resources: Set[str] = set()
        self.failed: List[str] = []

    async def __aenter__(self) -> AsyncCrawler:
        await self.renderer.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.renderer.close()

    def in_scope(self, url: str) -> bool:
        return self._in_scope(self.scope_host, url)

    async def crawl(self) -> List[CapturedRecord]:
        self.logger.info(
            "Старт обхода: %s (host %s, max depth %d)", self.seed_url, self.scope_host, self.config.max_depth
        )
        start = time.monotonic()
        self.frontier.seed(FetchJob(url=self.seed_url, depth=0))

        while (job := self.frontier.pop()) is not None:
            await self._process(job)
            if len(self.frontier) and self.config.politeness_delay:
                await asyncio.sleep(self.config.politeness_delay)

        duration = time.monotonic() - start
        self.logger.info(
            "Завершено: %d страниц, %d ресурсов за %.2f с",
            len(self.store.pages),
            len(self.store.resources),
            duration,
        )
        if self.failed:
            self.logger.info("Не загружено: %d", len(self.failed))
        return self.store.records

    async def _process(self, job: FetchJob) -> None:
        self.logger.info("Crawling [%d/%d]: %s", job.depth, self.config.max_depth, job.url)
        if job.source:
            self.logger.debug("   From: %s (%s[%s])", job.source, job.tag, job.attribute)

        try:
            body = await self.fetcher.fetch(job)
        except TransientFetchError as exc:
            self.logger.warning("Failed to load %s: %s", job.url, exc.reason)
            self.failed.append(job.url)
            return

        self.store.append(CapturedRecord(job.url, body, PAGE_MIME, depth=job.depth))
        self.logger.debug("   Page saved (%d bytes)", len(body))

        await self._capture_resources(job, body)
        if job.depth < self.config.max_depth:
            self._enqueue_links(job, body)

    async def _capture_resources(self, job: FetchJob, body: str) -> None:
        saved = 0
        for url in extract_resources(body, job.url):
            if not self.in_scope(url):
                continue
            if self.dedupe_resources:
                if url in self.fetched_resources:
                    continue
                self.fetched_resources.add(url)
            self.store.append(await self.fetcher.fetch_resource(url, job))
            saved += 1
        if saved:
            self.logger.debug("   Saved %d resources", saved)

    def _enqueue_links(self, job: FetchJob, body: str) -> None:
        queued = 0
        for link in extract_links(body, job.url):
            if not self.in_scope(link.url):
                continue
            new_job = FetchJob(
                url=link.url,
                depth=job.depth + 1,
                source=job.url,
                tag=link.tag,
                attribute=link.attribute,
            )
            if self.frontier.admit(new_job):
                queued += 1
        if queued:
            self.logger.debug("   Queued %d new URLs", queued)
