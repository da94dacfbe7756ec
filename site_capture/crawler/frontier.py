# site_capture/crawler/frontier.py
"""
Breadth-first frontier with a single admission gate.
"""
from __future__ import annotations

from collections import deque
from typing import Deque, FrozenSet, Optional, Set

from site_capture.crawler.models import FetchJob


class Frontier:
    """FIFO queue of pending jobs plus the set of URLs ever admitted.

    A URL is admitted at most once for the whole crawl: the ``_admitted``
    set covers both queued and visited URLs and is checked before enqueue.
    """

    def __init__(self, max_depth: int) -> None:
        self.max_depth = max_depth
        self._queue: Deque[FetchJob] = deque()
        self._admitted: Set[str] = set()
        self._visited: Set[str] = set()

    def seed(self, job: FetchJob) -> None:
        """Queue the seed unconditionally."""
        self._admitted.add(job.url)
        self._queue.append(job)

    def admit(self, job: FetchJob) -> bool:
        """Queue *job* unless its URL was seen before or it is too deep."""
        if job.depth > self.max_depth or job.url in self._admitted:
            return False
        self._admitted.add(job.url)
        self._queue.append(job)
        return True

    def pop(self) -> Optional[FetchJob]:
        """Return the next unvisited job and mark it visited; None when exhausted."""
        while self._queue:
            job = self._queue.popleft()
            if job.url in self._visited:
                continue
            self._visited.add(job.url)
            return job
        return None

    def is_known(self, url: str) -> bool:
        return url in self._admitted

    @property
    def visited(self) -> FrozenSet[str]:
        return frozenset(self._visited)

    def __len__(self) -> int:
        return len(self._queue)
