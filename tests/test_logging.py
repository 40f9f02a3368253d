"""Tests for logging.py (CLI logging setup)."""

from __future__ import annotations

import logging

from rich.logging import RichHandler

from mwcall.logging import configure_logging, get_log_level


class TestGetLogLevel:
    """Tests for get_log_level function."""

    def test_default_is_info(self):
        assert get_log_level() == logging.INFO

    def test_verbose_is_debug(self):
        assert get_log_level(verbose=True) == logging.DEBUG

    def test_quiet_wins(self):
        assert get_log_level(verbose=True, quiet=True) == logging.ERROR


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_installs_single_rich_handler(self):
        configure_logging()
        configure_logging(verbose=True)

        logger = logging.getLogger("mwcall")
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], RichHandler)
        assert logger.level == logging.DEBUG
        assert not logger.propagate

    def test_quiets_httpx(self):
        configure_logging()

        assert logging.getLogger("httpx").level == logging.WARNING
