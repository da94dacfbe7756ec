# File: tests/conftest.py
from __future__ import annotations

from collections import Counter
from typing import Dict, List, Mapping, Optional, Set

import pytest

from site_capture.config import CrawlConfig
from site_capture.errors import TransientFetchError


def pytest_configure(config):
    """Register custom markers so that `--strict-markers` does not fail."""
    config.addinivalue_line(
        "markers",
        "slow: marks tests as slow (deselect with '-m \"not slow\"')",
    )


class FakeRenderService:
    """
    In-memory render service.

    ``pages`` maps URL -> markup, ``texts`` maps URL -> plain-text-only content
    (page_content fails for those). URLs in ``failing`` fail to navigate
    ``fail_times[url]`` times (forever if absent).
    """

    def __init__(
        self,
        pages: Optional[Dict[str, str]] = None,
        *,
        texts: Optional[Dict[str, str]] = None,
        failing: Optional[Set[str]] = None,
        fail_times: Optional[Dict[str, int]] = None,
        content_types: Optional[Dict[str, str]] = None,
    ) -> None:
        self.pages = dict(pages or {})
        self.texts = dict(texts or {})
        self.failing = set(failing or ())
        self.fail_times = dict(fail_times or {})
        self.content_types = dict(content_types or {})
        self.content_type: Optional[str] = None
        self.navigations: List[str] = []
        self.headers_seen: List[Dict[str, str]] = []
        self.attempts: Counter = Counter()
        self.started = False
        self.closed = False
        self._current: Optional[str] = None

    async def start(self) -> None:
        self.started = True

    async def close(self) -> None:
        self.closed = True

    async def navigate(self, url: str, headers: Mapping[str, str], timeout: float) -> None:
        self.attempts[url] += 1
        self.headers_seen.append(dict(headers))
        self._current = None
        self.content_type = None
        if url in self.failing:
            remaining = self.fail_times.get(url)
            if remaining is None or self.attempts[url] <= remaining:
                raise TransientFetchError(url, "connection refused")
        if url not in self.pages and url not in self.texts:
            raise TransientFetchError(url, "net::ERR_NAME_NOT_RESOLVED")
        self.navigations.append(url)
        self._current = url
        self.content_type = self.content_types.get(url)

    async def page_content(self) -> str:
        if self._current is None or self._current not in self.pages:
            raise TransientFetchError(self._current or "", "no markup")
        return self.pages[self._current]

    async def text_content(self) -> str:
        if self._current is None or self._current not in self.texts:
            raise TransientFetchError(self._current or "", "no text")
        return self.texts[self._current]


@pytest.fixture()
def make_config(tmp_path):
    """Build a CrawlConfig with all delays switched off."""

    def _make(target_url: str = "https://example.com/", **kwargs) -> CrawlConfig:
        values = dict(
            target_url=target_url,
            max_depth=1,
            retry_delay=0,
            settle_delay=0,
            politeness_delay=0,
            page_timeout=5.0,
            resource_timeout=2.0,
            crawl_timeout=10.0,
            output_dir=tmp_path / "out",
            backend="http",
        )
        values.update(kwargs)
        return CrawlConfig(**values)

    return _make


@pytest.fixture()
def example_site() -> Dict[str, str]:
    """Seed with two in-scope links, one external link and one script."""
    return {
        "https://example.com/": (
            "<html><head><script src='/static/app.js'></script></head><body>"
            "<a href='/about'>About</a>"
            "<a href='https://example.com/contact'>Contact</a>"
            "<a href='https://other.com/page'>Elsewhere</a>"
            "</body></html>"
        ),
        "https://example.com/about": "<html><body><a href='/deeper'>Deeper</a></body></html>",
        "https://example.com/contact": "<html><body>Contact us</body></html>",
        "https://example.com/deeper": "<html><body>Too deep</body></html>",
        "https://example.com/static/app.js": "console.log('hi');",
    }
