"""Tests for logger factory, handlers and utilities."""

import logging

import pytest

from hafalan_portal.logutils.config import LogConfig, LogOutput
from hafalan_portal.logutils.handlers import (
    BufferingHandler,
    RichConsoleHandler,
    SafeRotatingFileHandler,
    StreamHandlerWithFlush,
)
from hafalan_portal.logutils.logger import (
    LoggerAdapter,
    configure_root_logger,
    get_logger,
    with_extra,
)

pytestmark = pytest.mark.unit


class TestGetLogger:
    """Tests for get_logger function."""

    def test_returns_named_logger(self):
        logger = get_logger("hafalan_portal.tests.named")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "hafalan_portal.tests.named"

    def test_configured_only_once(self):
        first = get_logger("hafalan_portal.tests.once")
        handler_count = len(first.handlers)
        second = get_logger("hafalan_portal.tests.once")
        assert first is second
        assert len(second.handlers) == handler_count

    def test_custom_level(self):
        logger = get_logger("hafalan_portal.tests.level", config=LogConfig(level="ERROR"))
        assert logger.level == logging.ERROR

    def test_module_level_override(self):
        config = LogConfig(level="INFO", module_levels={"hafalan_portal.tests.mod": "DEBUG"})
        assert get_logger("hafalan_portal.tests.mod", config=config).level == logging.DEBUG

    def test_rich_console_in_development(self):
        logger = get_logger("hafalan_portal.tests.rich", config=LogConfig(use_rich=True))
        assert isinstance(logger.handlers[0], RichConsoleHandler)

    def test_plain_stream_without_rich(self):
        logger = get_logger("hafalan_portal.tests.plain", config=LogConfig(use_rich=False))
        assert isinstance(logger.handlers[0], StreamHandlerWithFlush)

    def test_file_output(self, tmp_path):
        config = LogConfig(output=LogOutput.FILE, log_file=tmp_path / "logs" / "portal.jsonl")
        logger = get_logger("hafalan_portal.tests.file", config=config)
        assert isinstance(logger.handlers[0], SafeRotatingFileHandler)
        assert (tmp_path / "logs").is_dir()


class TestConfigureRootLogger:
    def test_only_configures_once(self):
        """Streamlit reruns should not stack handlers on the root logger."""
        configure_root_logger(LogConfig(use_rich=False))
        handler_count = len(logging.getLogger().handlers)
        configure_root_logger(LogConfig(use_rich=False))
        assert len(logging.getLogger().handlers) == handler_count


class TestWithExtra:
    def test_adapter_attaches_extra_data(self):
        logger = get_logger("hafalan_portal.tests.extra", config=LogConfig(use_rich=False))
        buffer = BufferingHandler()
        logger.addHandler(buffer)

        adapter = with_extra(logger, collection="Score")
        adapter.info("Read %d rows", 5, extra={"rows": 5})

        record = buffer.buffer[-1]
        assert isinstance(adapter, LoggerAdapter)
        assert record.extra_data == {"collection": "Score", "rows": 5}
        assert buffer.messages() == ["Read 5 rows"]


class TestBufferingHandler:
    def test_capacity(self):
        handler = BufferingHandler(capacity=2)
        for n in range(3):
            handler.emit(logging.makeLogRecord({"msg": f"m{n}"}))
        assert handler.messages() == ["m1", "m2"]
        handler.clear()
        assert handler.messages() == []
