# File: tests/test_logger.py
import logging

from site_crawler.logger import LOGGER_NAME, configure, init_logging, logger


def test_init_logging_replaces_handlers():
    init_logging("DEBUG")
    init_logging("WARNING")

    assert logger.name == LOGGER_NAME
    assert logger.level == logging.WARNING
    assert len(logger.handlers) == 1
    assert logger.propagate is False


def test_configure_with_rotating_file(tmp_path):
    log_file = tmp_path / "crawl.log"
    lg = configure(level="INFO", log_file=log_file, log_format="%(levelname)s %(message)s")
    lg.info("hello %s", "file")
    for handler in lg.handlers:
        handler.flush()

    assert len(lg.handlers) == 2
    assert "INFO hello file" in log_file.read_text(encoding="utf-8")


def test_configure_can_append_handlers():
    configure()
    configure(replace_handlers=False)
    assert len(logger.handlers) == 2
