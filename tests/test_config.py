# File: tests/test_config.py
import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from site_crawler.config import CrawlerConfig, load_config


def write_file(tmp_path: Path, content: str, suffix: str) -> Path:
    path = tmp_path / f"config{suffix}"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "content,expect_exc",
    [
        ("website: http://example.com\ndepth: 3", None),
        (json.dumps({"website": "http://example.com", "depth": 3}), None),
        ("{}", ValidationError),
        ("not: a: mapping", ValueError),
        ("::invalid yaml", TypeError),
        ("website: http://example.com\ndepth: 0", ValidationError),
        ("website: http://example.com\nunknown: 1", ValidationError),
        ("website: not-a-url", ValidationError),
    ],
)
def test_load_config_variants(tmp_path, content, expect_exc):
    suffix = ".json" if content.strip().startswith('{"') else ".yaml"
    cfg_path = write_file(tmp_path, content, suffix)
    if expect_exc:
        with pytest.raises(expect_exc):
            load_config(cfg_path)
    else:
        cfg = load_config(cfg_path)
        assert isinstance(cfg, CrawlerConfig)
        assert str(cfg.website).rstrip("/") == "http://example.com"
        assert cfg.depth == 3


def test_defaults(tmp_path):
    cfg = load_config(write_file(tmp_path, "website: https://contoso.com", ".yml"))

    assert cfg.depth == 2
    assert cfg.concurrency == 5
    assert cfg.use_sitemap is False
    assert cfg.ignore_links == []
    assert cfg.storage is None
    assert cfg.max_download_bytes == 307_200


def test_unsupported_suffix(tmp_path):
    with pytest.raises(ValueError):
        load_config(write_file(tmp_path, "website = 'x'", ".toml"))


def test_load_config_default_missing(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(FileNotFoundError):
        load_config(None)


def test_load_config_default_present(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "configs").mkdir()
    (tmp_path / "configs" / "default.yaml").write_text("website: https://contoso.com\n", encoding="utf-8")

    assert load_config(None).website.host == "contoso.com"


def test_explicit_path_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_blank_ignore_links_are_dropped():
    cfg = CrawlerConfig(website="https://contoso.com", ignore_links=["/a", "", "   ", "/b"])
    assert cfg.ignore_links == ["/a", "/b"]


def test_download_options_without_storage():
    options = CrawlerConfig(website="https://contoso.com", clean_content=True).download_options()

    assert options.enabled is False
    assert options.folder is None
    assert options.clean_content is True


def test_download_options_with_storage():
    cfg = CrawlerConfig(
        website="https://contoso.com",
        storage={"type": "local", "path": "downloads"},
        max_download_bytes=1024,
    )
    options = cfg.download_options()

    assert options.enabled is True
    assert options.folder == "downloads"
    assert options.max_bytes == 1024


def test_config_is_frozen():
    cfg = CrawlerConfig(website="https://contoso.com")
    with pytest.raises(ValidationError):
        cfg.depth = 5
    assert cfg.model_copy(update={"depth": 5}).depth == 5


def test_blob_storage_requires_connection_and_container():
    with pytest.raises(ValidationError):
        CrawlerConfig(website="http://example.com", storage={"type": "blob", "container": "pages"})
    with pytest.raises(ValidationError):
        CrawlerConfig(website="http://example.com", storage={"type": "blob", "connection_string": "conn"})


def test_blob_storage_type_is_case_insensitive():
    cfg = CrawlerConfig(
        website="http://example.com",
        storage={"type": " Blob ", "connection_string": "AccountKey=secret", "container": "pages"},
    )
    assert cfg.storage.type == "blob"
    assert cfg.storage.connection_string.get_secret_value() == "AccountKey=secret"
    assert "AccountKey=secret" not in cfg.model_dump_json()


def test_download_options_folder_override():
    cfg = CrawlerConfig(website="http://example.com", storage={"type": "local", "path": "out"})
    assert cfg.download_options().folder == "out"
    assert cfg.download_options("/tmp/staging").folder == "/tmp/staging"


def test_fetcher_choice():
    assert CrawlerConfig(website="http://example.com").fetcher == "http"
    assert CrawlerConfig(website="http://example.com", fetcher="browser").fetcher == "browser"
    with pytest.raises(ValidationError):
        CrawlerConfig(website="http://example.com", fetcher="curl")
