"""Tests for the console logging helper."""

import logging

from rich.console import Console

from useradmin.gui.utils.console_logger import ensure_console_logger


class TestEnsureConsoleLogger:
    def test_installs_once(self):
        logger = logging.getLogger("useradmin.tests.console.once")
        first = ensure_console_logger(logger, "test-once")
        second = ensure_console_logger(logger, "test-once", level=logging.DEBUG)

        assert first is second
        assert [h.name for h in logger.handlers].count("test-once") == 1
        assert logger.level == logging.DEBUG
        logger.removeHandler(first)

    def test_writes_through_rich_console(self):
        console = Console(record=True, width=120)
        logger = logging.getLogger("useradmin.tests.console.output")
        handler = ensure_console_logger(logger, "test-output", console=console)

        logger.info("loaded %d users", 3)

        assert "loaded 3 users" in console.export_text()
        logger.removeHandler(handler)
