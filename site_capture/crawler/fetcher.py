# site_capture/crawler/fetcher.py
"""
Fetcher module: drives the render service with bounded retries and timeouts.
"""
from __future__ import annotations

import asyncio
from typing import Dict, Mapping, Optional

from site_capture.crawler.models import CapturedRecord, FetchJob
from site_capture.crawler.render import RenderService
from site_capture.errors import TransientFetchError
from site_capture.logger import logger
from site_capture.utils import guess_mime_type


class Fetcher:
    """Fetches pages (with retries) and resources (single attempt, shorter timeout)."""

    def __init__(
        self,
        renderer: RenderService,
        *,
        headers: Optional[Mapping[str, str]] = None,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        page_timeout: float = 30.0,
        resource_timeout: float = 10.0,
        settle_delay: float = 1.0,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self.renderer = renderer
        self.headers: Dict[str, str] = dict(headers or {})
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.page_timeout = page_timeout
        self.resource_timeout = resource_timeout
        self.settle_delay = settle_delay

    @classmethod
    def from_config(cls, renderer: RenderService, config) -> Fetcher:
        return cls(
            renderer,
            headers=config.headers,
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
            page_timeout=config.page_timeout,
            resource_timeout=config.resource_timeout,
            settle_delay=config.settle_delay,
        )

    def _headers_for(self, job: Optional[FetchJob]) -> Dict[str, str]:
        merged = dict(self.headers)
        if job is not None and job.headers:
            merged.update(job.headers)
        return merged

    async def _settle(self) -> None:
        if self.settle_delay:
            await asyncio.sleep(self.settle_delay)

    async def _render_page(self, url: str, headers: Mapping[str, str]) -> str:
        await self.renderer.navigate(url, headers, self.page_timeout)
        await self._settle()
        return await self.renderer.page_content()

    async def fetch(self, job: FetchJob) -> str:
        """
        Return the rendered markup of *job.url*.

        Raises TransientFetchError once all ``max_retries`` attempts failed.
        """
        headers = self._headers_for(job)
        attempt = 1
        while True:
            try:
                return await self._render_page(job.url, headers)
            except TransientFetchError as exc:
                logger.debug("Attempt %d/%d failed for %s: %s", attempt, self.max_retries, job.url, exc.reason)
                if attempt >= self.max_retries:
                    raise TransientFetchError(
                        job.url, f"gave up after {self.max_retries} attempts: {exc.reason}"
                    ) from exc
            attempt += 1
            logger.info("Retry %d/%d for %s", attempt, self.max_retries, job.url)
            await asyncio.sleep(self.retry_delay)

    async def _capture_body(self, url: str) -> str:
        try:
            return await self.renderer.page_content()
        except TransientFetchError as exc:
            logger.debug("No markup for %s (%s), falling back to text", url, exc.reason)
            return await self.renderer.text_content()

    async def fetch_resource(self, url: str, job: Optional[FetchJob] = None) -> CapturedRecord:
        """
        Capture a script, stylesheet or image referenced by *job*.

        Navigation and content capture are each bounded by ``resource_timeout``;
        the settle delay between them is not. Never raises for fetch problems:
        a failed resource is recorded with an empty body and a MIME type
        guessed from its URL.
        """
        depth = job.depth if job is not None else 0
        try:
            await asyncio.wait_for(
                self.renderer.navigate(url, self._headers_for(job), self.resource_timeout),
                timeout=self.resource_timeout,
            )
            await self._settle()
            body = await asyncio.wait_for(self._capture_body(url), timeout=self.resource_timeout)
        except (TransientFetchError, asyncio.TimeoutError) as exc:
            logger.warning("Failed to fetch resource %s: %s", url, exc)
            return CapturedRecord(url, "", guess_mime_type(url), depth=depth, is_resource=True)

        mime = self.renderer.content_type or guess_mime_type(url)
        return CapturedRecord(url, body, mime, depth=depth, is_resource=True)
