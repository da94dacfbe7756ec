# site_capture/crawler/link_extractor.py
"""
Link and resource extraction from rendered markup.
"""
from __future__ import annotations

from typing import Dict, Iterator, List, Tuple
from urllib.parse import urldefrag

from bs4 import BeautifulSoup, ParserRejectedMarkup
from bs4.element import Tag

from site_capture.crawler.models import LinkInfo
from site_capture.crawler.resolver import resolve
from site_capture.errors import ExtractionError, ResolutionError
from site_capture.logger import logger

# tag -> attribute holding the resource URL
RESOURCE_ATTRS: Dict[str, str] = {"script": "src", "link": "href", "img": "src"}

_SKIP_SCHEMES = ("mailto:", "javascript:", "tel:", "data:")


def parse_markup(markup: str) -> BeautifulSoup:
    """Parse *markup* or raise :class:`ExtractionError`."""
    if not isinstance(markup, str):
        raise ExtractionError(f"markup must be str, got {type(markup).__name__}")
    try:
        return BeautifulSoup(markup, "html.parser")
    except (ParserRejectedMarkup, AssertionError) as exc:
        raise ExtractionError(str(exc)) from exc


def _references(soup: BeautifulSoup, tags: Dict[str, str]) -> Iterator[Tuple[Tag, str]]:
    # find_all walks the tree depth-first, so results come in document order
    for tag in soup.find_all(list(tags)):
        if not isinstance(tag, Tag):
            continue
        value = tag.get(tags[tag.name])
        if not isinstance(value, str):
            continue
        raw = value.strip()
        if raw.lower().startswith(_SKIP_SCHEMES):
            continue
        yield tag, raw


def extract_links(markup: str, base_url: str) -> List[LinkInfo]:
    """
    Return every ``<a href>`` in *markup* as absolute links.

    A reference that resolves to two candidates produces two entries
    sharing the same text. Fragments are dropped.
    """
    try:
        soup = parse_markup(markup)
    except ExtractionError as exc:
        logger.warning("Cannot parse markup of %s: %s", base_url, exc)
        return []

    links: List[LinkInfo] = []
    for tag, raw in _references(soup, {"a": "href"}):
        try:
            candidates = resolve(raw, base_url)
        except ResolutionError as exc:
            logger.debug("Skipping link on %s: %s", base_url, exc)
            continue
        text = " ".join(tag.stripped_strings)
        for url in candidates:
            links.append(LinkInfo(url=urldefrag(url).url, tag="a", attribute="href", text=text))
    return links


def extract_resources(markup: str, base_url: str) -> List[str]:
    """Return URLs of ``script[src]``, ``link[href]`` and ``img[src]``; duplicates kept."""
    try:
        soup = parse_markup(markup)
    except ExtractionError as exc:
        logger.warning("Cannot parse markup of %s: %s", base_url, exc)
        return []

    resources: List[str] = []
    for _tag, raw in _references(soup, RESOURCE_ATTRS):
        try:
            resources.extend(resolve(raw, base_url))
        except ResolutionError as exc:
            logger.debug("Skipping resource on %s: %s", base_url, exc)
    return resources
