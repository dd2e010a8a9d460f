"""site_crawler.crawler: BFS-обход сайта, загрузка страниц и извлечение ссылок."""

from .browser_fetcher import PlaywrightFetcher
from .crawler import WebCrawler
from .events import CrawlEvents
from .fetcher import Fetcher
from .link_extractor import LinkExtractor
from .models import CrawledPage, CrawlResult, DownloadOptions, FetchResult, InvalidInputError
from .registry import VisitedRegistry

__all__ = [
    "WebCrawler",
    "CrawlEvents",
    "Fetcher",
    "PlaywrightFetcher",
    "LinkExtractor",
    "CrawledPage",
    "CrawlResult",
    "DownloadOptions",
    "FetchResult",
    "InvalidInputError",
    "VisitedRegistry",
]
