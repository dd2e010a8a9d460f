# site_crawler/crawler/registry.py
"""
Visited registry: the single record of which pages a crawl has seen and how they ended.
"""
from __future__ import annotations

import threading
from typing import Dict, List, Union

from site_crawler.crawler.models import CrawledPage


class _Reservation:
    """Placeholder stored for a key that is scheduled but not yet recorded."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "<reserved>"


RESERVED = _Reservation()


class VisitedRegistry:
    """Maps page keys to a reservation or a recorded :class:`CrawledPage`.

    - ``reserve`` is an atomic insert-if-absent, so a link found by two pages
      of the same wave is scheduled once.
    - ``record`` replaces the reservation with the final outcome.
    - ``snapshot`` returns recorded pages only.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[str, Union[_Reservation, CrawledPage]] = {}

    def reserve(self, key: str) -> bool:
        """Return True if the caller is the first to claim *key*."""
        with self._lock:
            if key in self._entries:
                return False
            self._entries[key] = RESERVED
            return True

    def record(self, key: str, page: CrawledPage) -> None:
        with self._lock:
            self._entries[key] = page

    def is_seen(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def pending(self) -> List[str]:
        """Keys reserved but never recorded (scheduled pages a cancelled run did not fetch)."""
        with self._lock:
            return [k for k, v in self._entries.items() if v is RESERVED]

    def snapshot(self) -> Dict[str, CrawledPage]:
        """Copy of all recorded pages. Call once writers are done."""
        with self._lock:
            return {k: v for k, v in self._entries.items() if isinstance(v, CrawledPage)}

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.is_seen(key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
