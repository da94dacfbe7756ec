# site_capture/crawler/render.py
"""
Render services: load a URL and hand back its content.

A render service is one stateful browsing session with a single "current
page". Callers must not navigate it concurrently.
"""
from __future__ import annotations

import asyncio
from typing import Dict, Mapping, Optional, Protocol

from aiohttp import ClientError, ClientSession, ClientTimeout
from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from site_capture.errors import TransientFetchError
from site_capture.logger import logger

__all__ = ("RenderService", "BrowserRenderService", "HttpRenderService", "build_renderer")

_MARKUP_TYPES = ("html", "xml")


def _mime_of(content_type: Optional[str]) -> Optional[str]:
    if not content_type:
        return None
    return content_type.split(";", 1)[0].strip().lower() or None


class RenderService(Protocol):
    """What the crawler needs from a rendering backend."""

    content_type: Optional[str]

    async def start(self) -> None: ...

    async def close(self) -> None: ...

    async def navigate(self, url: str, headers: Mapping[str, str], timeout: float) -> None:
        """Load *url*. Raises TransientFetchError on failure."""

    async def page_content(self) -> str:
        """Serialized markup of the current page."""

    async def text_content(self) -> str:
        """Plain text of the current page."""


class BrowserRenderService:
    """Headless Chromium via Playwright, one page reused for every navigation."""

    def __init__(self, *, headless: bool = True, user_agent: Optional[str] = None) -> None:
        self.headless = headless
        self.user_agent = user_agent
        self.content_type: Optional[str] = None
        self._url = ""
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    async def start(self) -> None:
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=self.headless)
        self._context = await self._browser.new_context(user_agent=self.user_agent)
        self._page = await self._context.new_page()
        logger.debug("Browser session started (headless=%s)", self.headless)

    async def close(self) -> None:
        if self._context is not None:
            await self._context.close()
            self._context = None
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
        self._page = None

    def _require_page(self) -> Page:
        if self._page is None:
            raise RuntimeError("Browser session not started")
        return self._page

    async def navigate(self, url: str, headers: Mapping[str, str], timeout: float) -> None:
        page = self._require_page()
        self._url = url
        self.content_type = None
        try:
            await page.set_extra_http_headers(dict(headers))
            response = await page.goto(url, wait_until="load", timeout=timeout * 1000)
        except PlaywrightError as exc:
            raise TransientFetchError(url, exc.message) from exc
        if response is not None:
            self.content_type = _mime_of(response.headers.get("content-type"))

    async def page_content(self) -> str:
        page = self._require_page()
        try:
            return await page.content()
        except PlaywrightError as exc:
            raise TransientFetchError(self._url, exc.message) from exc

    async def text_content(self) -> str:
        page = self._require_page()
        try:
            return await page.inner_text("body")
        except PlaywrightError as exc:
            raise TransientFetchError(self._url, exc.message) from exc


class HttpRenderService:
    """Plain HTTP "rendering" with aiohttp: no JavaScript, the body is the content."""

    _RETRY_STATUS = tuple(range(500, 600)) + (429,)

    def __init__(self, *, user_agent: Optional[str] = None) -> None:
        self.user_agent = user_agent
        self.content_type: Optional[str] = None
        self.session: Optional[ClientSession] = None
        self._url = ""
        self._body: Optional[str] = None

    async def start(self) -> None:
        headers: Dict[str, str] = {}
        if self.user_agent:
            headers["User-Agent"] = self.user_agent
        self.session = ClientSession(headers=headers, raise_for_status=False)

    async def close(self) -> None:
        if self.session and not self.session.closed:
            await self.session.close()
        self.session = None

    async def navigate(self, url: str, headers: Mapping[str, str], timeout: float) -> None:
        if not self.session:
            raise RuntimeError("Session not initialized")
        self._url = url
        self._body = None
        self.content_type = None
        try:
            async with self.session.get(
                url, headers=dict(headers), timeout=ClientTimeout(total=timeout)
            ) as resp:
                if resp.status in self._RETRY_STATUS:
                    raise TransientFetchError(url, f"retryable status {resp.status}")
                self.content_type = _mime_of(resp.headers.get("Content-Type"))
                self._body = await resp.text(errors="replace")
        except (ClientError, asyncio.TimeoutError) as exc:
            raise TransientFetchError(url, str(exc) or type(exc).__name__) from exc

    def _require_body(self) -> str:
        if self._body is None:
            raise TransientFetchError(self._url, "nothing loaded")
        return self._body

    async def page_content(self) -> str:
        body = self._require_body()
        if self.content_type and not any(t in self.content_type for t in _MARKUP_TYPES):
            raise TransientFetchError(self._url, f"not markup ({self.content_type})")
        return body

    async def text_content(self) -> str:
        return self._require_body()


def build_renderer(config) -> RenderService:
    """Pick the backend named by ``config.backend``."""
    if config.backend == "http":
        return HttpRenderService(user_agent=config.user_agent)
    return BrowserRenderService(headless=config.headless, user_agent=config.user_agent)
