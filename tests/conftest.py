# File: tests/conftest.py
import asyncio
import logging
from typing import Dict, List, Optional, Union

import pytest

from site_crawler.crawler.models import DEFAULT_MAX_BYTES, FetchResult
from site_crawler.utils import page_key

ROOT = "http://contoso.com"


def html_result(body: str, status: int = 200) -> FetchResult:
    """FetchResult for a successful HTML response."""
    return FetchResult(content=body, data=body.encode("utf-8"), media_type="text/html", status=status)


def rate_limited(retry_after: Optional[float] = None) -> FetchResult:
    return FetchResult(error="Status code 429", status=429, retry_after=retry_after)


class FakeFetcher:
    """
    Deterministic in-memory fetcher.

    ``pages`` maps a URL to a FetchResult, or to a list of results returned
    one per call (the last one repeats). Unknown URLs answer 404. The number
    of simultaneous calls is tracked in ``max_in_flight``.
    """

    def __init__(
        self,
        pages: Dict[str, Union[FetchResult, List[FetchResult]]],
        delay: float = 0.0,
    ) -> None:
        self.pages = {page_key(url): value for url, value in pages.items()}
        self.delay = delay
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch(
        self,
        url: str,
        max_bytes: int = DEFAULT_MAX_BYTES,
        cancel: Optional[asyncio.Event] = None,
    ) -> FetchResult:
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            entry = self.pages.get(page_key(url))
            if entry is None:
                return FetchResult(error="Status code 404", status=404)
            if isinstance(entry, list):
                return entry.pop(0) if len(entry) > 1 else entry[0]
            return entry
        finally:
            self.in_flight -= 1

    def attempts(self, url: str) -> int:
        key = page_key(url)
        return sum(1 for called in self.calls if page_key(called) == key)


@pytest.fixture()
def contoso_pages() -> Dict[str, FetchResult]:
    """Four-page site: root -> page1, page2; page2 -> page3."""
    return {
        f"{ROOT}/": html_result("<a href='/page1'>page1</a><a href='/page2'>page2</a><a href='#'>no link</a>"),
        f"{ROOT}/page1": html_result("<a href='#'></a><a href='https://www.google.com'></a><a href='/page1'>page1</a>"),
        f"{ROOT}/page2": html_result("<a href='#'></a><a href='https://www.facebook.com'></a><a href='/page3'></a>"),
        f"{ROOT}/page3": html_result("no links"),
    }


@pytest.fixture(autouse=True)
def reset_project_logger():
    """The CLI reconfigures the project logger; restore it after every test."""
    lg = logging.getLogger("SiteCrawler")
    handlers, level, propagate = list(lg.handlers), lg.level, lg.propagate
    yield
    for handler in list(lg.handlers):
        if handler not in handlers:
            lg.removeHandler(handler)
            handler.close()
    lg.setLevel(level)
    lg.propagate = propagate
