"""Tests for log level selection in setup_logging."""

import logging
import sys

import pytest
from rich.logging import RichHandler

from logger import setup_logging


@pytest.fixture(autouse=True)
def restore_logging(monkeypatch):
    root = logging.getLogger()
    handlers, root_level = list(root.handlers), root.level
    websockets_level = logging.getLogger("websockets").level
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    monkeypatch.delenv("LOGLEVEL", raising=False)
    yield
    root.handlers[:] = handlers
    root.setLevel(root_level)
    logging.getLogger("websockets").setLevel(websockets_level)


def _rich_handler() -> RichHandler:
    handlers = [handler for handler in logging.getLogger().handlers if isinstance(handler, RichHandler)]
    assert len(handlers) == 1
    return handlers[0]


class TestSetupLogging:
    def test_defaults_to_info(self):
        setup_logging()
        assert _rich_handler().level == logging.INFO
        assert logging.getLogger("websockets").level == logging.WARNING

    def test_config_level_used_without_env(self):
        setup_logging("warning")
        assert _rich_handler().level == logging.WARNING

    def test_env_beats_config(self, monkeypatch):
        monkeypatch.setenv("LOGLEVEL", "error")
        setup_logging("DEBUG")
        assert _rich_handler().level == logging.ERROR
        assert logging.getLogger("websockets").level == logging.WARNING

    def test_debug_opens_websockets_logger(self, monkeypatch):
        monkeypatch.setenv("LOGLEVEL", "DEBUG")
        setup_logging()
        assert _rich_handler().level == logging.DEBUG
        assert logging.getLogger("websockets").level == logging.NOTSET

    def test_unknown_env_level_falls_back(self, monkeypatch):
        monkeypatch.setenv("LOGLEVEL", "LOUD")
        setup_logging("ERROR")
        assert _rich_handler().level == logging.ERROR

    def test_unknown_env_level_without_config(self, monkeypatch):
        monkeypatch.setenv("LOGLEVEL", "LOUD")
        setup_logging()
        assert _rich_handler().level == logging.INFO
