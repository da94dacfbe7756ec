# site_capture/crawler/scope.py
"""
Host scope checks: decide whether a URL belongs to the crawled site.
"""
from __future__ import annotations

from typing import Callable, Dict, Optional
from urllib.parse import urlsplit

ScopeCheck = Callable[[str, str], bool]


def normalize_host(host: str) -> str:
    """Lowercase *host*, drop a leading ``www.`` and a trailing ``:port``."""
    host = host.strip().lower()
    host = host.removeprefix("www.")
    if host.startswith("["):
        # IPv6 literal: keep the brackets, drop whatever follows them
        end = host.find("]")
        return host if end == -1 else host[: end + 1]
    return host.partition(":")[0]


def url_host(url: str) -> Optional[str]:
    """Return the normalized host of *url*, or None when it has none."""
    try:
        netloc = urlsplit(url).netloc
    except ValueError:
        return None
    host = normalize_host(netloc.rpartition("@")[2])
    return host or None


def is_in_scope(scope_host: str, url: str) -> bool:
    """Strict policy: the URL host must equal *scope_host* after normalization."""
    host = url_host(url)
    return host is not None and host == scope_host


def is_same_or_subdomain(scope_host: str, url: str) -> bool:
    """Permissive policy: *scope_host* itself or any of its subdomains."""
    host = url_host(url)
    if host is None:
        return False
    return host == scope_host or host.endswith("." + scope_host)


SCOPE_POLICIES: Dict[str, ScopeCheck] = {
    "strict": is_in_scope,
    "subdomains": is_same_or_subdomain,
}
