# site_crawler/crawler/models.py
"""
Data models for the site_crawler crawler.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Protocol, Union

__all__ = (
    "InvalidInputError",
    "FetchResult",
    "CrawledPage",
    "RetryItem",
    "PageOutcome",
    "DownloadOptions",
    "CrawlResult",
    "PageFetcher",
    "LinkFinder",
)

#: Default per-page download cap (bytes).
DEFAULT_MAX_BYTES = 307_200


class InvalidInputError(ValueError):
    """Raised before any work when the crawl arguments are unusable."""


@dataclass(slots=True)
class FetchResult:
    """What a fetcher returns for one URL. Failures are carried in ``error``, never raised."""

    content: Optional[str] = None
    data: Optional[bytes] = None
    media_type: Optional[str] = None
    error: Optional[str] = None
    status: Optional[int] = None
    retry_after: Optional[float] = None

    @property
    def is_html(self) -> bool:
        return bool(self.media_type) and self.media_type.startswith("text/html")

    @property
    def rate_limited(self) -> bool:
        return self.status == 429


@dataclass(slots=True, frozen=True)
class CrawledPage:
    """Outcome of one page: depth of first visit, links found and kept, optional error."""

    url: str
    first_visited_depth: int
    total_links_found: int = 0
    page_links: Optional[List[str]] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "depth": self.first_visited_depth,
            "total_links_found": self.total_links_found,
            "page_links": list(self.page_links) if self.page_links is not None else None,
            "error": self.error,
        }


@dataclass(slots=True)
class RetryItem:
    """A rate-limited fetch waiting for a delayed re-attempt."""

    url: str
    depth: int
    attempt: int = 1
    retry_after: Optional[float] = None


@dataclass(slots=True)
class PageOutcome:
    """Result of processing one URL as seen by the scheduler."""

    url: str
    links: List[str] = field(default_factory=list)
    retry_429: bool = False
    retry_after: Optional[float] = None


@dataclass(slots=True)
class DownloadOptions:
    """Persistence settings of a run."""

    enabled: bool = False
    folder: Optional[Union[str, Path]] = None
    max_bytes: int = DEFAULT_MAX_BYTES
    clean_content: bool = False


@dataclass(frozen=True)
class CrawlResult:
    """Final report of a crawl run, ordered by depth then page key."""

    site: str
    max_depth: int
    pages: Mapping[str, CrawledPage]
    run_time: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "pages", MappingProxyType(dict(self.pages)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "site": self.site,
            "max_depth": self.max_depth,
            "run_time": round(self.run_time, 3),
            "pages": [{"key": key, **page.to_dict()} for key, page in self.pages.items()],
        }


class PageFetcher(Protocol):
    async def fetch(
        self,
        url: str,
        max_bytes: int = DEFAULT_MAX_BYTES,
        cancel: Optional[asyncio.Event] = None,
    ) -> FetchResult: ...


class LinkFinder(Protocol):
    def extract_links(self, html: str, page_url: str) -> List[str]: ...
