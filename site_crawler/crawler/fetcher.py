# site_crawler/crawler/fetcher.py
"""
Fetcher module: downloads one URL with transport retries, a size cap and cancellation.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Coroutine, Optional

from aiohttp import ClientError, ClientResponse, ClientSession

from site_crawler.crawler.models import DEFAULT_MAX_BYTES, FetchResult

logger = logging.getLogger("SiteCrawler")

_CHUNK_SIZE = 64 * 1024
_MAX_RETRY_AFTER = 60.0


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Seconds to wait from a ``Retry-After`` header (delta seconds or HTTP-date)."""
    if not value:
        return None
    value = value.strip()
    try:
        seconds = float(value)
    except ValueError:
        try:
            when = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return None
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        seconds = (when - datetime.now(timezone.utc)).total_seconds()
    return min(max(seconds, 0.0), _MAX_RETRY_AFTER)


async def run_cancellable(
    request_coro: Coroutine[Any, Any, FetchResult],
    cancel: Optional[asyncio.Event],
) -> FetchResult:
    """Await *request_coro* unless *cancel* fires first.

    On cancellation (by the event, or of the awaiting task itself) the
    request task is cancelled and awaited before returning, so no request
    outlives its caller.
    """
    if cancel is None:
        return await request_coro
    if cancel.is_set():
        request_coro.close()
        return FetchResult(error="Cancelled")

    request = asyncio.create_task(request_coro)
    waiter = asyncio.create_task(cancel.wait())
    try:
        await asyncio.wait({request, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not request.done():
            request.cancel()
            await asyncio.gather(request, return_exceptions=True)
    if request.cancelled():
        return FetchResult(error="Cancelled")
    return request.result()


class Fetcher:
    """Handles HTTP fetching with transient-fault retries, size cap and timeout.

    Status codes are reported, not retried: a 429 is surfaced so the crawler
    can apply its own backoff.
    """

    def __init__(
        self,
        session: ClientSession,
        *,
        retry_times: int = 3,
        retry_delay: float = 0.3,
    ) -> None:
        self.session = session
        self.retry_times = retry_times
        self.retry_delay = retry_delay

    async def fetch(
        self,
        url: str,
        max_bytes: int = DEFAULT_MAX_BYTES,
        cancel: Optional[asyncio.Event] = None,
    ) -> FetchResult:
        """
        Fetch *url* and return a FetchResult; never raises for network problems.

        If *cancel* is set while the request is in flight, the request is
        abandoned and ``error="Cancelled"`` is returned.
        """
        return await run_cancellable(self._fetch_with_retries(url, max_bytes), cancel)

    async def _fetch_with_retries(self, url: str, max_bytes: int) -> FetchResult:
        attempts = 0
        while True:
            try:
                return await self._get(url, max_bytes)
            except asyncio.TimeoutError:
                # no retry on timeout
                return FetchResult(error="Request timed out")
            except ClientError as exc:
                attempts += 1
                if attempts > self.retry_times:
                    logger.debug("Failed %s after %d attempts: %s", url, attempts, exc)
                    return FetchResult(error=str(exc) or type(exc).__name__)
                logger.debug("Retry %d/%d for %s: %s", attempts, self.retry_times, url, exc)
                await asyncio.sleep(self.retry_delay)

    async def _get(self, url: str, max_bytes: int) -> FetchResult:
        async with self.session.get(url) as resp:
            status = resp.status
            if status == 429:
                return FetchResult(
                    error="Status code 429",
                    status=status,
                    retry_after=parse_retry_after(resp.headers.get("Retry-After")),
                )
            if not 200 <= status < 300:
                return FetchResult(error=f"Status code {status}", status=status)

            media_type = resp.content_type if resp.headers.get("Content-Type") else "text/html"
            if resp.content_length is not None and resp.content_length > max_bytes:
                return FetchResult(media_type=media_type, error="Content too large", status=status)

            data = await self._read_capped(resp, max_bytes)
            if data is None:
                return FetchResult(media_type=media_type, error="Content too large", status=status)
            if not media_type.startswith("text/html"):
                return FetchResult(data=data, media_type=media_type, error="Content not HTML", status=status)
            return FetchResult(
                content=_decode(data, resp.charset),
                data=data,
                media_type=media_type,
                status=status,
            )

    @staticmethod
    async def _read_capped(resp: ClientResponse, max_bytes: int) -> Optional[bytes]:
        body = bytearray()
        async for chunk in resp.content.iter_chunked(_CHUNK_SIZE):
            body.extend(chunk)
            if len(body) > max_bytes:
                return None
        return bytes(body)


def _decode(data: bytes, charset: Optional[str]) -> str:
    try:
        return data.decode(charset or "utf-8", errors="replace")
    except LookupError:
        return data.decode("utf-8", errors="replace")
