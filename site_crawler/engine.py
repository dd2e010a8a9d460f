# File: site_crawler/engine.py
"""site_crawler.engine: Orchestration layer: сессия, зависимости, sitemap и запуск обхода."""

from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack
from typing import List, Optional

from aiohttp import ClientSession, ClientTimeout
from azure.core.exceptions import AzureError

from site_crawler.config import CrawlerConfig
from site_crawler.crawler.browser_fetcher import PlaywrightFetcher
from site_crawler.crawler.crawler import WebCrawler
from site_crawler.crawler.events import CrawlEvents
from site_crawler.crawler.fetcher import Fetcher
from site_crawler.crawler.link_extractor import LinkExtractor
from site_crawler.crawler.models import CrawledPage, CrawlResult, PageFetcher
from site_crawler.logger import logger
from site_crawler.parser.sitemap_parser import discover_sitemap_urls
from site_crawler.storage import staging_folder, upload_folder

__all__ = ["start_crawl", "format_page", "format_run_time", "attach_console_output"]


def format_page(page: CrawledPage) -> str:
    """Текстовое представление страницы для консоли."""
    if page.page_links is None:
        reason = f" [{page.error}]" if page.error else ""
        links_display = f"Could not download content{reason}"
    elif not page.page_links:
        links_display = "No links found"
    else:
        links_display = "\n".join(page.page_links) + f"\n[{len(page.page_links)}/{page.total_links_found} links]"
    return f"Visited Page: {page.url} ({page.first_visited_depth})\n------------------\n{links_display}\n"


def format_run_time(seconds: float) -> str:
    """Длительность в виде MM:SS.hh."""
    minutes, rest = divmod(seconds, 60)
    return f"{int(minutes):02d}:{int(rest):02d}.{int((rest % 1) * 100):02d}"


def attach_console_output(events: CrawlEvents, depth: int) -> None:
    """Подписывает логгер на события обхода."""

    def started(url: str) -> None:
        logger.info("Crawling %s to depth %d", url, depth)

    def page_crawled(page: CrawledPage) -> None:
        logger.info("%s", format_page(page))

    def completed(result: CrawlResult) -> None:
        logger.info("Max depth: %d", result.max_depth)
        logger.info("Total links found: %d", len(result.pages))
        logger.info("Total crawl execution time: %s", format_run_time(result.run_time))

    events.on_crawl_started(started)
    events.on_page_crawled(page_crawled)
    events.on_crawl_completed(completed)


def _storage_folder(cfg: CrawlerConfig) -> Optional[str]:
    """Папка для файлов: для blob без ``path`` это временная папка."""
    if cfg.storage is None:
        return None
    if cfg.storage.type == "blob" and not cfg.storage.path:
        return str(staging_folder())
    return cfg.storage.path


async def _make_fetcher(cfg: CrawlerConfig, session: ClientSession, stack: AsyncExitStack) -> PageFetcher:
    if cfg.fetcher == "browser":
        return await stack.enter_async_context(PlaywrightFetcher(timeout=cfg.timeout))
    return Fetcher(session, retry_times=cfg.retry_times, retry_delay=cfg.retry_delay)


async def _upload(cfg: CrawlerConfig, folder: Optional[str]) -> None:
    storage = cfg.storage
    if storage is None or storage.type != "blob" or folder is None:
        return
    try:
        await upload_folder(folder, storage.connection_string.get_secret_value(), storage.container)
    except (AzureError, OSError) as exc:
        logger.error("Upload to blob container %s failed: %s", storage.container, exc)


async def start_crawl(cfg: CrawlerConfig, cancel: Optional[asyncio.Event] = None) -> List[CrawlResult]:
    """
    Запускает обход по профилю и возвращает отчёты по каждой стартовой странице.

    Parameters
    ----------
    cfg : CrawlerConfig
        Профиль запуска.
    cancel : asyncio.Event, optional
        Сигнал отмены; после него новые загрузки не начинаются,
        а уже записанные страницы попадают в частичный отчёт.

    Для ``storage.type == "blob"`` сохранённые файлы загружаются в контейнер
    после обхода, в том числе после отмены. Ошибка загрузки пишется в лог,
    отчёты всё равно возвращаются.
    """
    cancel = cancel or asyncio.Event()
    website = str(cfg.website)
    timeout = ClientTimeout(total=cfg.timeout)
    folder = _storage_folder(cfg)

    async with AsyncExitStack() as stack:
        session = await stack.enter_async_context(
            ClientSession(timeout=timeout, headers={"User-Agent": cfg.user_agent})
        )
        fetcher = await _make_fetcher(cfg, session, stack)
        crawler = WebCrawler(fetcher, LinkExtractor())
        attach_console_output(crawler.events, cfg.depth)

        start_pages: List[str] = []
        if cfg.use_sitemap:
            start_pages = await discover_sitemap_urls(session, website)
            logger.info("Sitemap: %d start pages", len(start_pages))
        if not start_pages:
            start_pages = [website]

        options = cfg.download_options(folder)
        results: List[CrawlResult] = []
        for url in start_pages:
            if cancel.is_set():
                break
            results.append(
                await crawler.run(
                    url,
                    cfg.depth,
                    concurrency=cfg.concurrency,
                    ignore_links=cfg.ignore_links,
                    options=options,
                    cancel=cancel,
                )
            )
    await _upload(cfg, folder)
    return results
