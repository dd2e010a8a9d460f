# site_crawler/crawler/link_extractor.py
"""
Link extraction for site_crawler: anchors of a page minus static assets.
"""
from __future__ import annotations

import posixpath
from typing import FrozenSet, List
from urllib.parse import urlsplit

from bs4 import BeautifulSoup
from bs4.element import Tag

IGNORED_EXTENSIONS: FrozenSet[str] = frozenset((
    ".css", ".js", ".map",
    ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".svg", ".ico", ".webp",
    ".woff", ".woff2", ".ttf", ".eot", ".otf",
    ".json", ".xml", ".csv",
    ".po", ".mo", ".resx", ".lang",
))


def should_ignore(link: str) -> bool:
    """True if the path of *link* ends with a non-content extension."""
    try:
        path = urlsplit(link).path
    except ValueError:
        return False
    ext = posixpath.splitext(path)[1].lower()
    return bool(ext) and ext in IGNORED_EXTENSIONS


class LinkExtractor:
    """Collects ``<a href>`` targets of an HTML page."""

    def extract_links(self, html: str, page_url: str) -> List[str]:
        """
        Return hyperlink targets in document order, without duplicates.

        Root-relative links (``/path``) are resolved against the page's
        scheme, host and port; other hrefs are returned as written.
        """
        soup = BeautifulSoup(html, "html.parser")
        parts = urlsplit(page_url)
        authority = f"{parts.scheme}://{parts.netloc}"

        links: List[str] = []
        for tag in soup.find_all("a"):
            if not isinstance(tag, Tag):
                continue
            href = tag.get("href")
            if not isinstance(href, str) or not href.strip():
                continue
            href = href.strip()
            if href.startswith("//"):
                link = f"{parts.scheme}:{href}"
            elif href.startswith("/"):
                link = authority + href
            else:
                link = href
            if should_ignore(link):
                continue
            links.append(link)
        return list(dict.fromkeys(links))
