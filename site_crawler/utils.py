# File: site_crawler/utils.py
"""site_crawler.utils: URL keys, scope checks, ignore lists and file naming for downloaded pages."""

from __future__ import annotations

import posixpath
import re
from typing import Iterable, Optional, Sequence
from urllib.parse import urljoin, urlsplit, urlunsplit

__all__: Sequence[str] = (
    "page_key",
    "is_absolute",
    "host_of",
    "IgnoreSet",
    "generate_file_name",
)

_DEFAULT_PORTS = {"http": 80, "https": 443}

# Characters not allowed in file names on common platforms, plus the URL separators.
_UNSAFE_CHARS_RE = re.compile(r'[<>:"/\\|?*&=\x00-\x1f]')


def is_absolute(link: str) -> bool:
    """True if *link* has both a scheme and a host."""
    try:
        parts = urlsplit(link.strip())
    except ValueError:
        return False
    return bool(parts.scheme and parts.netloc)


def host_of(url: str) -> Optional[str]:
    """Return the lower-cased host name of *url* (no port), or None."""
    try:
        return urlsplit(url.strip()).hostname
    except ValueError:
        return None


def page_key(url: str) -> str:
    """Normalise an absolute URL into the key used for deduplication.

    The fragment is dropped, scheme and host are lower-cased, a default port
    is removed and an empty path becomes ``/``. The query is kept.
    """
    parts = urlsplit(url.strip())
    scheme = parts.scheme.lower()
    netloc = parts.netloc.lower()
    try:
        port = parts.port
    except ValueError:
        port = None
    if port is not None and _DEFAULT_PORTS.get(scheme) == port:
        netloc = netloc.rsplit(":", 1)[0]
    return urlunsplit((scheme, netloc, parts.path or "/", parts.query, ""))


class IgnoreSet:
    """Case-insensitive set of page keys excluded from traversal and reporting.

    Entries may be absolute URLs or links relative to the crawl root.
    """

    def __init__(self, links: Optional[Iterable[str]], base_url: str) -> None:
        keys = set()
        for link in links or ():
            if not link or not link.strip():
                continue
            target = link.strip()
            if not is_absolute(target):
                target = urljoin(base_url, target)
            if is_absolute(target):
                keys.add(page_key(target).lower())
        self._keys = frozenset(keys)

    def __contains__(self, url: object) -> bool:
        if not isinstance(url, str) or not is_absolute(url):
            return False
        return page_key(url).lower() in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        return f"IgnoreSet({sorted(self._keys)!r})"


def _sanitize(value: str) -> str:
    return _UNSAFE_CHARS_RE.sub("_", value)


def generate_file_name(url: str, is_html: bool, fallback_ext: str = ".pdf") -> str:
    """Build a flat file name for the downloaded copy of *url*.

    ``https://host/docs/a?b=1`` with HTML content becomes ``docs_a_b_1.html``;
    an empty path becomes ``root``. Non-HTML names without an extension take
    the one of the URL path, or *fallback_ext*.
    """
    parts = urlsplit(url)
    name = parts.path.strip("/")
    if not name.strip():
        name = "root"
    name = _sanitize(name)

    if parts.query:
        name += "_" + _sanitize(parts.query.strip("?"))

    if is_html and not name.lower().endswith(".html"):
        name += ".html"
    elif not posixpath.splitext(name)[1]:
        name += posixpath.splitext(parts.path)[1] or fallback_ext
    return name
