# File: tests/test_results.py
import json

import pytest

from site_crawler.crawler.models import CrawledPage, CrawlResult
from site_crawler.crawler.results import assemble_result, order_pages


def _page(url, depth, links=None, error=None):
    return CrawledPage(url=url, first_visited_depth=depth, page_links=links, error=error)


def test_order_pages_by_depth_then_key():
    pages = {
        "http://c.com/z": _page("http://c.com/z", 2),
        "http://c.com/b": _page("http://c.com/b", 3),
        "http://c.com/": _page("http://c.com", 1),
        "http://c.com/a": _page("http://c.com/a", 2),
    }
    assert list(order_pages(pages)) == [
        "http://c.com/",
        "http://c.com/a",
        "http://c.com/z",
        "http://c.com/b",
    ]


def test_assemble_result_is_read_only():
    pages = {"http://c.com/": _page("http://c.com", 1, links=[])}
    result = assemble_result("http://c.com", 2, pages, 1.23456)

    assert isinstance(result, CrawlResult)
    assert result.site == "http://c.com"
    assert result.max_depth == 2
    pages.clear()
    assert len(result.pages) == 1
    with pytest.raises(TypeError):
        result.pages["x"] = _page("x", 1)


def test_result_to_dict_is_json_ready():
    pages = {
        "http://c.com/": _page("http://c.com", 1, links=["#", "http://c.com/a"]),
        "http://c.com/a": _page("http://c.com/a", 2, error="Status code 404"),
    }
    data = assemble_result("http://c.com", 2, pages, 1.23456).to_dict()

    assert data["run_time"] == 1.235
    assert data["pages"][0] == {
        "key": "http://c.com/",
        "url": "http://c.com",
        "depth": 1,
        "total_links_found": 0,
        "page_links": ["#", "http://c.com/a"],
        "error": None,
    }
    assert data["pages"][1]["page_links"] is None
    assert data["pages"][1]["error"] == "Status code 404"
    json.dumps(data)
