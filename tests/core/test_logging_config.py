"""Tests for logging configuration."""

import json
import logging
import sys

import pytest

from llmshim.core import logging_config
from llmshim.core.logging_config import JsonFormatter, LogConfig, configure_logging, set_level


@pytest.fixture
def root_logger(monkeypatch):
    """Snapshot and restore the root logger around a test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    monkeypatch.setattr(logging_config, "_configured", False)
    for name in ("LLMSHIM_LOG_LEVEL", "LLMSHIM_LOG_FORMAT", "LLMSHIM_LOG_FILE"):
        monkeypatch.delenv(name, raising=False)
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLogConfig:
    """Tests for LogConfig.from_env()."""

    def test_defaults(self, monkeypatch):
        for name in ("LLMSHIM_LOG_LEVEL", "LLMSHIM_LOG_FORMAT", "LLMSHIM_LOG_FILE"):
            monkeypatch.delenv(name, raising=False)

        assert LogConfig.from_env() == LogConfig("INFO", "text", None)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("LLMSHIM_LOG_LEVEL", "debug")
        monkeypatch.setenv("LLMSHIM_LOG_FORMAT", "JSON")
        monkeypatch.setenv("LLMSHIM_LOG_FILE", "/tmp/llmshim.log")

        assert LogConfig.from_env() == LogConfig("DEBUG", "json", "/tmp/llmshim.log")

    def test_unknown_format_falls_back_to_text(self, monkeypatch):
        monkeypatch.setenv("LLMSHIM_LOG_FORMAT", "xml")

        assert LogConfig.from_env().format == "text"


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_installs_stderr_handler(self, root_logger):
        """One console handler at the requested level."""
        configure_logging(level="warning")

        assert root_logger.level == logging.WARNING
        assert len(root_logger.handlers) == 1
        assert isinstance(root_logger.handlers[0], logging.StreamHandler)

    def test_second_call_ignored_unless_forced(self, root_logger):
        configure_logging(level="INFO")
        configure_logging(level="ERROR")
        assert root_logger.level == logging.INFO

        configure_logging(level="ERROR", force=True)
        assert root_logger.level == logging.ERROR

    def test_file_handler(self, root_logger, tmp_path):
        """A file handler is added when a path is given."""
        log_file = tmp_path / "llmshim.log"

        configure_logging(level="INFO", file_path=str(log_file))
        logging.getLogger("llmshim.test").info("written to file")
        for handler in root_logger.handlers:
            handler.flush()

        assert "written to file" in log_file.read_text()

    def test_env_level_used(self, root_logger, monkeypatch):
        monkeypatch.setenv("LLMSHIM_LOG_LEVEL", "DEBUG")

        configure_logging()

        assert root_logger.level == logging.DEBUG


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_basic_fields(self):
        record = logging.LogRecord("llmshim.translator", logging.WARNING, __file__, 1, "dropped %s", ("toolu_1",), None)

        data = json.loads(JsonFormatter().format(record))

        assert data["level"] == "WARNING"
        assert data["logger"] == "llmshim.translator"
        assert data["message"] == "dropped toolu_1"
        assert "extra" not in data

    def test_extra_fields(self):
        record = logging.LogRecord("llmshim", logging.INFO, __file__, 1, "event", (), None)
        record.tool_call_id = "toolu_1"

        data = json.loads(JsonFormatter().format(record))

        assert data["extra"] == {"tool_call_id": "toolu_1"}

    def test_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord("llmshim", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())

        data = json.loads(JsonFormatter().format(record))

        assert "ValueError: boom" in data["exception"]


class TestSetLevel:
    def test_package_logger(self):
        logger = logging.getLogger("llmshim")
        previous = logger.level
        try:
            set_level("debug")
            assert logger.level == logging.DEBUG
        finally:
            logger.setLevel(previous)
