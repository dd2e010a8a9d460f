# site_crawler/crawler/results.py
"""
Assembly of the final crawl report.
"""
from __future__ import annotations

from typing import Dict, Mapping

from site_crawler.crawler.models import CrawledPage, CrawlResult


def order_pages(pages: Mapping[str, CrawledPage]) -> Dict[str, CrawledPage]:
    """Order by first visited depth, then by page key."""
    ordered = sorted(pages.items(), key=lambda item: (item[1].first_visited_depth, item[0]))
    return dict(ordered)


def assemble_result(
    site: str,
    max_depth: int,
    pages: Mapping[str, CrawledPage],
    run_time: float,
) -> CrawlResult:
    return CrawlResult(site=site, max_depth=max_depth, pages=order_pages(pages), run_time=run_time)
