"""Exceptions raised by the SiteCapture crawler."""
from __future__ import annotations

__all__ = (
    "CrawlError",
    "TransientFetchError",
    "ResolutionError",
    "ExtractionError",
    "FatalConfigError",
)


class CrawlError(Exception):
    """Base class for all crawler errors."""


class TransientFetchError(CrawlError):
    """Navigation or content capture failed; may succeed on retry."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class ResolutionError(CrawlError):
    """A reference could not be parsed into a URL."""


class ExtractionError(CrawlError):
    """Markup could not be parsed."""


class FatalConfigError(CrawlError):
    """Unusable seed URL or output destination; aborts the run."""
