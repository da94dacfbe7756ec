# site_capture/crawler/resolver.py
"""
Relative URL resolution with a site-root fallback.

Sites often write asset paths relative to the root while omitting the
leading slash (``img/logo.png`` on ``/blog/post1``). Any reference that does
not start with ``/`` (including ``?page=2`` and ``#top``) is resolved twice:
against the current page and against ``/``.
"""
from __future__ import annotations

from urllib.parse import urljoin, urlsplit, urlunsplit

from site_capture.crawler.models import ResolvedURLs
from site_capture.errors import ResolutionError

_ABSOLUTE_PREFIXES = ("http://", "https://")


def resolve(reference: str, base_url: str) -> ResolvedURLs:
    """Resolve *reference* against *base_url*.

    Raises :class:`ResolutionError` if *reference* itself is not a valid URL.
    An unusable *base_url* yields the reference verbatim.
    """
    if reference.lower().startswith(_ABSOLUTE_PREFIXES):
        return ResolvedURLs(reference)

    try:
        urlsplit(reference)
    except ValueError as exc:
        raise ResolutionError(f"Cannot parse reference {reference!r}: {exc}") from exc

    try:
        base = urlsplit(base_url)
    except ValueError:
        return ResolvedURLs(reference)
    if not base.scheme or not base.netloc:
        return ResolvedURLs(reference)

    try:
        primary = urljoin(base_url, reference)
    except ValueError as exc:
        raise ResolutionError(f"Cannot resolve {reference!r} against {base_url}: {exc}") from exc

    # "/x" and "//host/x" are already anchored; everything else is also tried from the root
    if reference.startswith("/"):
        return ResolvedURLs(primary)

    root = urlunsplit((base.scheme, base.netloc, "/", "", ""))
    fallback = urljoin(root, reference)
    if fallback == primary:
        return ResolvedURLs(primary)
    return ResolvedURLs(primary, fallback)
