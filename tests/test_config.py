"""Tests for settings and logging setup."""

import json
import logging
import sys

from contentguard.config import DEFAULT_NEWS_FEED_URL, Settings
from contentguard.logging_config import JSONFormatter, configure_logging


def test_settings_defaults(monkeypatch):
    for name in ("CONTENTGUARD_HEARTBEAT_INTERVAL", "CONTENTGUARD_PENDING_PAGE_SIZE",
                 "CONTENTGUARD_HONOR_FLAGGED_HINT", "CONTENTGUARD_DATA_DIR"):
        monkeypatch.delenv(name, raising=False)
    s = Settings(_env_file=None)
    assert s.HEARTBEAT_INTERVAL == 30
    assert s.HEARTBEAT_MAX_MISSED == 1
    assert s.PENDING_PAGE_SIZE == 5
    assert s.HONOR_FLAGGED_HINT is False
    assert s.DATA_DIR == ""
    assert s.NEWS_FEED_URL == DEFAULT_NEWS_FEED_URL


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("CONTENTGUARD_HEARTBEAT_INTERVAL", "5")
    monkeypatch.setenv("CONTENTGUARD_HONOR_FLAGGED_HINT", "true")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
    s = Settings(_env_file=None)
    assert s.HEARTBEAT_INTERVAL == 5
    assert s.HONOR_FLAGGED_HINT is True
    assert s.ANTHROPIC_API_KEY == "sk-test"


def test_json_formatter_includes_extra_fields_and_exceptions():
    logger = logging.getLogger("contentguard.test")
    try:
        raise ValueError("bad input")
    except ValueError:
        record = logger.makeRecord(
            "contentguard.test", logging.ERROR, __file__, 1, "failed for %s", ("item",),
            exc_info=sys.exc_info(), extra={"content_id": 7},
        )
    data = json.loads(JSONFormatter().format(record))
    assert data["level"] == "ERROR"
    assert data["logger"] == "contentguard.test"
    assert data["msg"] == "failed for item"
    assert data["content_id"] == 7
    assert "ValueError: bad input" in data["exc_info"]


def test_configure_logging_returns_package_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    try:
        logger = configure_logging("DEBUG")
        assert logger.name == "contentguard"
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
    finally:
        root.handlers[:] = handlers
        root.setLevel(level)
