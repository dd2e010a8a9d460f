# site_crawler/crawler/browser_fetcher.py
"""
Browser fetcher: renders pages in headless Chromium through Playwright.

Used for sites whose links only appear after JavaScript runs. Returns the
same FetchResult as the HTTP fetcher, so the crawler does not care which
one it drives.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from playwright.async_api import Browser, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from site_crawler.crawler.fetcher import parse_retry_after, run_cancellable
from site_crawler.crawler.models import DEFAULT_MAX_BYTES, FetchResult

logger = logging.getLogger("SiteCrawler")


def _media_type(header: Optional[str]) -> str:
    if not header:
        return "text/html"
    return header.split(";", 1)[0].strip().lower() or "text/html"


class PlaywrightFetcher:
    """Loads each URL in a fresh page of one shared browser.

    A page counts as loaded when the network goes idle or *timeout* seconds
    pass. Pass an already launched *browser* to reuse it; otherwise
    :meth:`start` launches headless Chromium and :meth:`close` shuts it down.
    """

    def __init__(self, *, timeout: float = 10.0, browser: Optional[Browser] = None) -> None:
        self.timeout = timeout
        self.browser = browser
        self._owns_browser = browser is None
        self._playwright: Optional[Playwright] = None

    async def start(self) -> "PlaywrightFetcher":
        if self.browser is None:
            self._playwright = await async_playwright().start()
            self.browser = await self._playwright.chromium.launch(headless=True)
            logger.debug("Launched headless Chromium")
        return self

    async def close(self) -> None:
        if self._owns_browser and self.browser is not None:
            await self.browser.close()
            self.browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def __aenter__(self) -> "PlaywrightFetcher":
        return await self.start()

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def fetch(
        self,
        url: str,
        max_bytes: int = DEFAULT_MAX_BYTES,
        cancel: Optional[asyncio.Event] = None,
    ) -> FetchResult:
        """Render *url*; browser errors are reported in ``error``, never raised."""
        if self.browser is None:
            raise RuntimeError("PlaywrightFetcher.start() must be awaited before fetch()")
        return await run_cancellable(self._render(url, max_bytes), cancel)

    async def _render(self, url: str, max_bytes: int) -> FetchResult:
        page = await self.browser.new_page()
        try:
            response = await page.goto(url, wait_until="networkidle", timeout=self.timeout * 1000)
            if response is None:
                return FetchResult(error="No response")
            status = response.status
            headers = response.headers
            if status == 429:
                return FetchResult(
                    error="Status code 429",
                    status=status,
                    retry_after=parse_retry_after(headers.get("retry-after")),
                )
            if not 200 <= status < 300:
                return FetchResult(error=f"Status code {status}", status=status)

            media_type = _media_type(headers.get("content-type"))
            content = await page.content()
            data = content.encode("utf-8")
            if len(data) > max_bytes:
                return FetchResult(media_type=media_type, error="Content too large", status=status)
            if not media_type.startswith("text/html"):
                return FetchResult(data=data, media_type=media_type, error="Content not HTML", status=status)
            return FetchResult(content=content, data=data, media_type=media_type, status=status)
        except PlaywrightError as exc:
            logger.debug("Browser failed on %s: %s", url, exc)
            return FetchResult(error=exc.message or type(exc).__name__)
        finally:
            await page.close()
