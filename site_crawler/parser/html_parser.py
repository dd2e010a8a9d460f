# === FILE: site_crawler/parser/html_parser.py ===
"""HTML content cleaning for downloaded pages.

When content cleaning is enabled, a page is stored as its visible text rather
than the raw markup. Page chrome and non-text elements are removed first:

* ``header``, ``footer`` and ``nav``: navigation and boilerplate;
* ``script`` and ``style``: never visible.

The remaining strings are joined with single spaces.
"""
from __future__ import annotations

from collections.abc import Sequence

from bs4 import BeautifulSoup

__all__: Sequence[str] = ("STRIPPED_TAGS", "clean_html", "is_cloudflare_challenge")

STRIPPED_TAGS: tuple[str, ...] = ("header", "footer", "nav", "script", "style")

#: Lower-case phrase found on interstitial protection pages.
CLOUDFLARE_MARKER = "protected by cloudflare"


def clean_html(html: str) -> str:
    """Return the visible text of *html* without page chrome."""
    soup = BeautifulSoup(html, "html.parser")
    for element in soup(list(STRIPPED_TAGS)):
        element.decompose()
    return " ".join(t.strip() for t in soup.stripped_strings)


def is_cloudflare_challenge(text: str) -> bool:
    """True if *text* looks like a protection interstitial instead of the real page."""
    return CLOUDFLARE_MARKER in text.lower()
