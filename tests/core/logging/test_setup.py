"""Tests for logging setup."""

import json
import logging

import pytest

from core.logging.context import clear_log_context, get_log_context
from core.logging.formatters import ConsoleFormatter, JSONFormatter
from core.logging.setup import setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if isinstance(handler.formatter, (ConsoleFormatter, JSONFormatter)):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    clear_log_context()


class TestSetupLogging:
    def test_console_only(self):
        logger = setup_logging(name="relay.test", service="relay")

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, ConsoleFormatter)
        assert logger.name == "relay.test"
        assert get_log_context()["service"] == "relay"

    def test_json_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "relay.log"
        logger = setup_logging(name="relay.test", log_file=log_file, console_level=logging.CRITICAL)

        root = logging.getLogger()
        assert len(root.handlers) == 2
        assert any(isinstance(h.formatter, JSONFormatter) for h in root.handlers)

        logger.info("hello", extra={"attempt": 2})
        for handler in root.handlers:
            handler.flush()

        lines = [json.loads(line) for line in log_file.read_text().splitlines()]
        entry = next(line for line in lines if line["message"] == "hello")
        assert entry["attempt"] == 2

    def test_suppresses_noisy_loggers(self):
        setup_logging()
        assert logging.getLogger("asyncio").level == logging.WARNING
