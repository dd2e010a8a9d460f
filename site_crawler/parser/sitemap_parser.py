# File: site_crawler/parser/sitemap_parser.py
"""site_crawler.parser.sitemap_parser: Модуль для загрузки и парсинга sitemap.xml."""

from __future__ import annotations

import asyncio
import logging
from typing import List
from urllib.parse import urlsplit, urlunsplit

from aiohttp import ClientError, ClientSession
from lxml import etree

logger = logging.getLogger("SiteCrawler")


def parse_sitemap(xml_content: str) -> List[str]:
    """Разбирает XML content sitemap и возвращает список URL из тегов <loc>.

    Args:
        xml_content: строка с содержимым sitemap.xml.

    Returns:
        Список URL, найденных в <loc> тегах; пустой список, если XML не разобран.

    Пример:
    ```python
    from site_crawler.parser.sitemap_parser import parse_sitemap

    with open('sitemap.xml', encoding='utf-8') as f:
        content = f.read()
    urls = parse_sitemap(content)
    print(urls)
    ```
    """
    if not xml_content or not xml_content.strip():
        return []
    parser = etree.XMLParser(ns_clean=True, recover=True)
    try:
        root = etree.fromstring(xml_content.encode("utf-8"), parser=parser)
    except etree.XMLSyntaxError:
        return []
    if root is None:
        return []
    locs = root.findall(".//{*}loc")
    return [loc.text.strip() for loc in locs if loc.text and loc.text.strip()]


def sitemap_url(site: str) -> str:
    """Адрес /sitemap.xml для хоста site."""
    parts = urlsplit(site)
    return urlunsplit((parts.scheme, parts.netloc, "/sitemap.xml", "", ""))


async def discover_sitemap_urls(session: ClientSession, site: str) -> List[str]:
    """Загружает /sitemap.xml сайта и возвращает URL из него; при любой ошибке пустой список."""
    url = sitemap_url(site)
    try:
        async with session.get(url) as resp:
            if resp.status != 200:
                logger.debug("sitemap %s -> HTTP %s", url, resp.status)
                return []
            text = await resp.text()
    except (ClientError, asyncio.TimeoutError, UnicodeDecodeError) as exc:
        logger.debug("Error loading sitemap %s: %s", url, exc)
        return []
    urls = parse_sitemap(text)
    logger.debug("sitemap %s: %d URLs", url, len(urls))
    return urls
