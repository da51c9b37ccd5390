import logging.handlers

import pytest
import structlog

from storefront import config
from storefront.utils import logging as storefront_logging


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("ENV", "PROTEAN_ENV", "STOREFRONT_LOG_LEVEL", "STOREFRONT_LOG_FORMAT", "STOREFRONT_LOG_DIR"):
        monkeypatch.delenv(name, raising=False)


@pytest.mark.parametrize(
    "env,expected",
    [("production", "INFO"), ("development", "DEBUG"), ("test", "WARNING"), ("unknown", "INFO")],
)
def test_level_follows_environment(monkeypatch, env, expected):
    monkeypatch.setenv("ENV", env)
    assert config.log_level() == expected


def test_level_override(monkeypatch):
    monkeypatch.setenv("ENV", "production")
    monkeypatch.setenv("STOREFRONT_LOG_LEVEL", "debug")
    assert config.log_level() == "DEBUG"


def test_deployed_environments_render_json(monkeypatch):
    monkeypatch.setenv("ENV", "staging")
    assert isinstance(storefront_logging.renderer(), structlog.processors.JSONRenderer)


def test_console_format_can_be_forced(monkeypatch):
    monkeypatch.setenv("ENV", "production")
    monkeypatch.setenv("STOREFRONT_LOG_FORMAT", "console")
    assert isinstance(storefront_logging.renderer(), structlog.dev.ConsoleRenderer)


def test_empty_log_dir_disables_file_logging(monkeypatch):
    monkeypatch.setenv("STOREFRONT_LOG_DIR", "")
    handlers = storefront_logging._handlers("INFO")
    assert [type(h) for h in handlers] == [logging.StreamHandler]


def test_log_file_written_under_configured_dir(monkeypatch, tmp_path):
    monkeypatch.setenv("STOREFRONT_LOG_DIR", str(tmp_path / "nested"))
    handlers = storefront_logging._handlers("INFO")
    try:
        [rotating] = [h for h in handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
        assert rotating.baseFilename == str(tmp_path / "nested" / "storefront.log")
    finally:
        for handler in handlers[1:]:
            handler.close()


def test_service_and_environment_are_added(monkeypatch):
    monkeypatch.setenv("ENV", "test")
    event = storefront_logging._add_service(None, "info", {"event": "Order created"})
    assert event == {"event": "Order created", "service": "storefront", "env": "test"}
