# site_crawler/crawler/crawler.py
from __future__ import annotations

import asyncio
import logging
import posixpath
import time
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, List, Optional
from urllib.parse import urlsplit

from site_crawler.crawler.events import CRAWL_COMPLETED, CRAWL_STARTED, PAGE_CRAWLED, CrawlEvents
from site_crawler.crawler.models import (
    CrawledPage,
    CrawlResult,
    DownloadOptions,
    FetchResult,
    InvalidInputError,
    LinkFinder,
    PageFetcher,
    PageOutcome,
    RetryItem,
)
from site_crawler.crawler.registry import VisitedRegistry
from site_crawler.crawler.results import assemble_result
from site_crawler.parser.html_parser import clean_html, is_cloudflare_challenge
from site_crawler.storage import LocalFileStorage, run_folder_name
from site_crawler.utils import IgnoreSet, generate_file_name, host_of, is_absolute, page_key

__all__ = ("WebCrawler",)


@dataclass(slots=True)
class _CrawlRun:
    """State shared by every page of one run."""

    root_url: str
    root_host: Optional[str]
    ignore: IgnoreSet
    options: DownloadOptions
    storage: Optional[LocalFileStorage]
    permits: asyncio.Semaphore
    cancel: asyncio.Event


def _is_pdf(url: str) -> bool:
    return posixpath.splitext(urlsplit(url).path)[1].lower() == ".pdf"


class WebCrawler:
    """Breadth-first crawler bounded by a fetch permit pool, with a retry queue for HTTP 429."""

    MAX_429_RETRIES: int = 3
    RETRY_BASE_DELAY: float = 0.5
    MAX_RETRY_AFTER: float = 60.0

    def __init__(
        self,
        fetcher: PageFetcher,
        link_extractor: LinkFinder,
        *,
        retry_delay: float = RETRY_BASE_DELAY,
        events: Optional[CrawlEvents] = None,
    ) -> None:
        self.fetcher = fetcher
        self.link_extractor = link_extractor
        self.retry_delay = retry_delay
        self.events = events or CrawlEvents()
        self.registry = VisitedRegistry()
        self.logger = logging.getLogger("SiteCrawler")

    async def run(
        self,
        root_url: str,
        max_depth: int = 1,
        *,
        concurrency: int = 5,
        ignore_links: Optional[Iterable[str]] = None,
        options: Optional[DownloadOptions] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> CrawlResult:
        """Crawl from *root_url* down to *max_depth* (the root is depth 1).

        Setting *cancel* stops new fetches; the pages recorded so far are
        returned as a partial result.
        """
        root_url = (root_url or "").strip()
        if not is_absolute(root_url):
            raise InvalidInputError(f"Uri is not valid: {root_url!r}")
        if max_depth < 1:
            raise InvalidInputError(f"max_depth must be >= 1, got {max_depth}")
        if concurrency < 1:
            raise InvalidInputError(f"concurrency must be >= 1, got {concurrency}")

        options = options or DownloadOptions()
        run = _CrawlRun(
            root_url=root_url,
            root_host=host_of(root_url),
            ignore=IgnoreSet(ignore_links, root_url),
            options=options,
            storage=self._open_storage(options),
            permits=asyncio.Semaphore(concurrency),
            cancel=cancel or asyncio.Event(),
        )

        self.registry.clear()
        self.events.start()
        try:
            self.events.emit(CRAWL_STARTED, root_url)
            self.logger.info("Crawl started: %s (max depth %d, concurrency %d)", root_url, max_depth, concurrency)
            start = time.monotonic()

            await self._crawl_waves(run, max_depth)

            result = assemble_result(root_url, max_depth, self.registry.snapshot(), time.monotonic() - start)
            if run.cancel.is_set():
                self.logger.info("Crawl cancelled: returning %d recorded pages", len(result.pages))
                self.logger.debug("Scheduled but not fetched: %d pages", len(self.registry.pending()))
            self.logger.info("Crawl finished: %d pages in %.2f s", len(result.pages), result.run_time)
            self.events.emit(CRAWL_COMPLETED, result)
        finally:
            await self.events.aclose()
        return result

    # Frontier -------------------------------------------------------------
    async def _crawl_waves(self, run: _CrawlRun, max_depth: int) -> None:
        current: List[str] = [run.root_url]
        self.registry.reserve(page_key(run.root_url))
        retry_queue: Deque[RetryItem] = deque()
        depth = 1

        while (current or retry_queue) and depth <= max_depth:
            if run.cancel.is_set():
                break
            self.logger.debug("Depth %d: %d pages", depth, len(current))
            next_wave: List[str] = []

            outcomes = await asyncio.gather(*(self._process_page(url, depth, 1, run) for url in current))
            for outcome in outcomes:
                if outcome is None:
                    continue
                if outcome.retry_429:
                    retry_queue.append(RetryItem(outcome.url, depth, 1, outcome.retry_after))
                    continue
                self._expand(outcome.links, depth, max_depth, next_wave)

            while retry_queue:
                item = retry_queue.popleft()
                if not await self._backoff(self._retry_delay_for(item), run.cancel):
                    retry_queue.clear()
                    break
                attempt = item.attempt + 1
                outcome = await self._process_page(item.url, item.depth, attempt, run)
                if outcome is None:
                    continue
                if outcome.retry_429:
                    # Only returned below the ceiling; the attempt at the ceiling always records.
                    self.logger.debug("Still rate limited: %s (attempt %d)", item.url, attempt)
                    retry_queue.append(RetryItem(item.url, item.depth, attempt))
                    continue
                self._expand(outcome.links, item.depth, max_depth, next_wave)

            depth += 1
            current = next_wave

    def _expand(self, links: Iterable[str], depth: int, max_depth: int, next_wave: List[str]) -> None:
        if depth >= max_depth:
            return
        for link in links:
            if self.registry.reserve(page_key(link)):
                next_wave.append(link)

    def _retry_delay_for(self, item: RetryItem) -> float:
        if item.attempt == 1 and item.retry_after is not None:
            return min(max(item.retry_after, 0.0), self.MAX_RETRY_AFTER)
        return item.attempt * self.retry_delay

    @staticmethod
    async def _backoff(delay: float, cancel: asyncio.Event) -> bool:
        """Sleep *delay* seconds; False if *cancel* was set before or during the wait."""
        if cancel.is_set():
            return False
        try:
            await asyncio.wait_for(cancel.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return True
        return False

    # Page processing ------------------------------------------------------
    async def _process_page(self, url: str, depth: int, attempt: int, run: _CrawlRun) -> Optional[PageOutcome]:
        if run.cancel.is_set():
            return None
        async with run.permits:
            if run.cancel.is_set():
                return None
            result = await self._fetch(url, run)
        if run.cancel.is_set():
            self.logger.debug("Cancelled while fetching %s", url)
            return None

        if result.rate_limited:
            if attempt < self.MAX_429_RETRIES:
                self.logger.debug("Rate limited: %s (attempt %d), queued for retry", url, attempt)
                return PageOutcome(url, retry_429=True, retry_after=result.retry_after)
            self.logger.warning("Rate limited %d times, giving up: %s", attempt, url)

        total_links = 0
        links: Optional[List[str]] = None
        if result.content is not None:
            found = self.link_extractor.extract_links(result.content, url) or []
            total_links = len(found)
            links = [link for link in found if self._keep_link(link, run)]

        if result.content is not None and is_cloudflare_challenge(result.content):
            self.logger.debug("Protection page served for %s, not saved", url)
        elif run.storage is not None and result.data is not None and (run.options.enabled or _is_pdf(url)):
            await self._persist(url, result, run)

        page = CrawledPage(
            url=url,
            first_visited_depth=depth,
            total_links_found=total_links,
            page_links=links,
            error=result.error,
        )
        self.registry.record(page_key(url), page)
        self.events.emit(PAGE_CRAWLED, page)
        self.logger.debug("Crawled %s (depth %d): %s", url, depth, result.error or f"{total_links} links")

        if links is None:
            return PageOutcome(url)
        return PageOutcome(
            url,
            [link for link in links if is_absolute(link) and host_of(link) == run.root_host and link not in run.ignore],
        )

    async def _fetch(self, url: str, run: _CrawlRun) -> FetchResult:
        try:
            return await self.fetcher.fetch(url, run.options.max_bytes, run.cancel)
        except Exception as exc:
            self.logger.warning("Fetcher raised for %s: %s", url, exc)
            return FetchResult(error=str(exc) or type(exc).__name__)

    def _keep_link(self, link: str, run: _CrawlRun) -> bool:
        """Filter for reported links: non-absolute links stay, others must be new, in scope and not ignored."""
        if not is_absolute(link):
            return True
        if link in run.ignore or host_of(link) != run.root_host:
            return False
        return not self.registry.is_seen(page_key(link))

    # Persistence ----------------------------------------------------------
    def _open_storage(self, options: DownloadOptions) -> Optional[LocalFileStorage]:
        if options.folder:
            storage = LocalFileStorage(options.folder)
        elif options.enabled:
            storage = LocalFileStorage(run_folder_name())
        else:
            return None
        if options.enabled:
            try:
                storage.prepare()
            except OSError as exc:
                self.logger.warning("Could not create output folder %s: %s", storage.folder, exc)
        return storage

    async def _persist(self, url: str, result: FetchResult, run: _CrawlRun) -> None:
        name = generate_file_name(url, result.is_html)
        payload = result.data or b""
        if run.options.clean_content and result.is_html and result.content is not None:
            payload = clean_html(result.content).encode("utf-8")
        try:
            path = await run.storage.write(name, payload)  # type: ignore[union-attr]
        except OSError as exc:
            self.logger.warning("Could not save %s as %s: %s", url, name, exc)
        else:
            self.logger.debug("Saved %s -> %s", url, path)
