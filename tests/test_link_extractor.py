# File: tests/test_link_extractor.py
import pytest

from site_crawler.crawler.link_extractor import LinkExtractor, should_ignore

PAGE = "https://contoso.com:8443/docs/index"


@pytest.fixture()
def extractor():
    return LinkExtractor()


def test_root_relative_links_get_page_authority(extractor):
    links = extractor.extract_links("<a href='/about'>About</a>", PAGE)
    assert links == ["https://contoso.com:8443/about"]


def test_protocol_relative_links_get_page_scheme(extractor):
    links = extractor.extract_links("<a href='//cdn.contoso.com/x'>x</a>", PAGE)
    assert links == ["https://cdn.contoso.com/x"]


def test_other_hrefs_are_returned_verbatim(extractor):
    html = (
        "<a href='#'>top</a>"
        "<a href='https://www.google.com'>g</a>"
        "<a href='mailto:info@contoso.com'>mail</a>"
        "<a href='relative/page'>rel</a>"
    )
    assert extractor.extract_links(html, PAGE) == [
        "#",
        "https://www.google.com",
        "mailto:info@contoso.com",
        "relative/page",
    ]


def test_blank_and_missing_hrefs_are_skipped(extractor):
    html = "<a>no href</a><a href=''>empty</a><a href='   '>blank</a><a href='/ok'>ok</a>"
    assert extractor.extract_links(html, PAGE) == ["https://contoso.com:8443/ok"]


def test_duplicates_keep_first_position(extractor):
    html = "<a href='/b'></a><a href='/a'></a><a href='/b'></a>"
    assert extractor.extract_links(html, PAGE) == [
        "https://contoso.com:8443/b",
        "https://contoso.com:8443/a",
    ]


def test_static_assets_are_dropped(extractor):
    html = (
        "<a href='/style.css'></a><a href='/logo.PNG'></a>"
        "<a href='/feed.xml'></a><a href='/report.pdf'></a><a href='/page'></a>"
    )
    assert extractor.extract_links(html, PAGE) == [
        "https://contoso.com:8443/report.pdf",
        "https://contoso.com:8443/page",
    ]


def test_no_anchors(extractor):
    assert extractor.extract_links("no links", PAGE) == []
    assert extractor.extract_links("", PAGE) == []


@pytest.mark.parametrize(
    "link,expected",
    [
        ("https://contoso.com/app.js", True),
        ("https://contoso.com/fonts/a.woff2?v=3", True),
        ("https://contoso.com/strings.resx", True),
        ("https://contoso.com/page.html", False),
        ("https://contoso.com/doc.pdf", False),
        ("https://contoso.com/folder/", False),
        ("#", False),
    ],
)
def test_should_ignore(link, expected):
    assert should_ignore(link) is expected
