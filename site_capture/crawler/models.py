# site_capture/crawler/models.py
"""
Data models for the SiteCapture crawler.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Optional


@dataclass(frozen=True, slots=True)
class FetchJob:
    """One unit of traversal work. Depth 0 is the seed."""

    url: str
    depth: int = 0
    source: str = ""
    tag: str = ""
    attribute: str = ""
    headers: Optional[Dict[str, str]] = None


@dataclass(frozen=True, slots=True)
class LinkInfo:
    """An outbound link found in a page, with where it came from."""

    url: str
    tag: str = "a"
    attribute: str = "href"
    text: str = ""


@dataclass(slots=True)
class CapturedRecord:
    """Result of one fetch: a page or a resource."""

    url: str
    body: str
    mime_type: str
    depth: int = 0
    is_resource: bool = False

    @property
    def size(self) -> int:
        return len(self.body.encode("utf-8"))


@dataclass(frozen=True, slots=True)
class ResolvedURLs:
    """Absolute candidates for one reference: the primary and, maybe, a root-based fallback."""

    primary: str
    fallback: Optional[str] = None

    def __iter__(self) -> Iterator[str]:
        yield self.primary
        if self.fallback is not None:
            yield self.fallback

    def __len__(self) -> int:
        return 1 if self.fallback is None else 2
