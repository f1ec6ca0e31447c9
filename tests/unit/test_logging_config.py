"""Tests for logging configuration."""

from pathlib import Path
from unittest.mock import patch

import pytest

from hafalan_portal.logutils.config import (
    Environment,
    LogConfig,
    LogOutput,
    get_config,
    reset_config,
    set_config,
)

pytestmark = pytest.mark.unit


class TestLogConfig:
    """Tests for LogConfig dataclass."""

    def test_defaults(self):
        """LogConfig should have sensible defaults."""
        config = LogConfig()
        assert config.level == "INFO"
        assert config.output == LogOutput.CONSOLE
        assert config.json_format is False
        assert config.use_rich is True
        assert config.mask_sensitive is True
        assert config.log_file is None

    def test_from_env_reads_variables(self):
        """Environment variables should override the defaults."""
        env = {
            "PORTAL_ENV": "development",
            "LOG_LEVEL": "warning",
            "LOG_OUTPUT": "both",
            "LOG_JSON": "true",
            "LOG_FILE": "/tmp/portal/log.json",
            "LOG_BACKUP_COUNT": "7",
        }
        with patch.dict("os.environ", env, clear=True):
            config = LogConfig.from_env()

        assert config.level == "WARNING"
        assert config.output == LogOutput.BOTH
        assert config.json_format is True
        assert config.log_file == Path("/tmp/portal/log.json")
        assert config.backup_count == 7

    def test_from_env_ignores_bad_values(self):
        """Unknown outputs and malformed numbers should keep the defaults."""
        with patch.dict("os.environ", {"LOG_OUTPUT": "syslog", "LOG_MAX_SIZE": "big"}, clear=True):
            config = LogConfig.from_env()
        assert config.output == LogOutput.CONSOLE
        assert config.max_file_size == 5 * 1024 * 1024


class TestEnvironmentDetection:
    """Tests for detect_environment and defaults_for."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("production", Environment.PRODUCTION),
            ("prod", Environment.PRODUCTION),
            ("test", Environment.TESTING),
        ],
    )
    def test_portal_env(self, value, expected):
        with patch.dict("os.environ", {"PORTAL_ENV": value}, clear=True):
            assert LogConfig.detect_environment() == expected

    def test_pytest_detected(self):
        with patch.dict("os.environ", {"PYTEST_CURRENT_TEST": "test_x"}, clear=True):
            assert LogConfig.detect_environment() == Environment.TESTING

    def test_default_is_development(self):
        with patch.dict("os.environ", {}, clear=True):
            assert LogConfig.detect_environment() == Environment.DEVELOPMENT

    def test_production_logs_json(self):
        config = LogConfig.defaults_for(Environment.PRODUCTION)
        assert config.json_format is True
        assert config.use_rich is False

    def test_testing_has_no_rich(self):
        assert LogConfig.defaults_for(Environment.TESTING).use_rich is False


class TestGlobalConfig:
    def test_set_and_get(self):
        custom = LogConfig(level="ERROR")
        set_config(custom)
        assert get_config() is custom

    def test_reset_rereads_environment(self):
        set_config(LogConfig(level="ERROR"))
        reset_config()
        with patch.dict("os.environ", {"LOG_LEVEL": "CRITICAL"}, clear=True):
            assert get_config().level == "CRITICAL"
