"""Ordered, deduplicated pool of registry base URLs."""
from __future__ import annotations

import urllib.parse
from collections import deque
from typing import Deque, Iterable, Iterator, List, Optional


def dedupe(urls: Iterable[Optional[str]]) -> List[str]:
    """Drop falsy entries and exact duplicates, keeping first-seen order."""
    seen = set()
    result: List[str] = []
    for url in urls:
        if not url or url in seen:
            continue
        seen.add(url)
        result.append(url)
    return result


def resolve(base: str, path: str) -> str:
    """Join a registry base URL and a request path.

    A base without a trailing slash is treated as a directory so that
    ``https://host/npm`` + ``lodash`` yields ``https://host/npm/lodash``.
    Absolute paths replace the base path, as with ``urljoin``.
    """
    if not base.endswith("/"):
        base = base + "/"
    return urllib.parse.urljoin(base, path)


class MirrorPool:
    """Hands out candidate base URLs one at a time for a single request.

    The pool is built per logical request; ``pull`` shrinks it and returns
    ``None`` once every URL was tried. ``reset`` refills it from the full
    list, which is what the backoff loop does before starting over.
    """

    def __init__(self, urls: Iterable[Optional[str]]):
        self._urls = dedupe(urls)
        self._pending: Deque[str] = deque(self._urls)

    @classmethod
    def from_registry(
        cls, registry: Optional[str], mirrors: Iterable[Optional[str]] = ()
    ) -> "MirrorPool":
        """Build a pool with the primary registry first, then the mirrors."""
        return cls([registry, *mirrors])

    def pull(self) -> Optional[str]:
        """Return the next base URL, or ``None`` when the pool is exhausted."""
        if not self._pending:
            return None
        return self._pending.popleft()

    def reset(self) -> None:
        """Refill the pool with every distinct URL, in original order."""
        self._pending = deque(self._urls)

    @property
    def exhausted(self) -> bool:
        return not self._pending

    def __len__(self) -> int:
        return len(self._urls)

    def __iter__(self) -> Iterator[str]:
        return iter(self._urls)
