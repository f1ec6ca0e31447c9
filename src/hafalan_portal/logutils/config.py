"""Logging configuration for the Hafalan portal.

Defaults depend on where the portal runs: a teacher's laptop during
development, the test suite, or a hosted Streamlit deployment. ``LOG_*``
environment variables override those defaults one setting at a time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

_TRUTHY = ("true", "1", "yes")


class Environment(Enum):
    """Where the portal is running."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class LogOutput(Enum):
    """Where log records are written."""

    CONSOLE = "console"
    FILE = "file"
    BOTH = "both"
    JSON = "json"


def _flag(raw: str) -> bool:
    return raw.lower() in _TRUTHY


def _int_or_none(raw: str) -> Optional[int]:
    try:
        return int(raw)
    except ValueError:
        return None


def _output_or_none(raw: str) -> Optional[LogOutput]:
    try:
        return LogOutput(raw.lower())
    except ValueError:
        return None


# Environment variable -> (LogConfig attribute, parser). A parser returning
# None leaves the default in place.
_ENV_OVERRIDES: dict[str, tuple[str, Callable[[str], Any]]] = {
    "LOG_LEVEL": ("level", str.upper),
    "LOG_OUTPUT": ("output", _output_or_none),
    "LOG_JSON": ("json_format", _flag),
    "LOG_RICH": ("use_rich", _flag),
    "LOG_MASK_SENSITIVE": ("mask_sensitive", _flag),
    "LOG_FILE": ("log_file", Path),
    "LOG_MAX_SIZE": ("max_file_size", _int_or_none),
    "LOG_BACKUP_COUNT": ("backup_count", _int_or_none),
}


@dataclass
class LogConfig:
    """Settings for every logger the portal creates."""

    level: str = "INFO"
    output: LogOutput = LogOutput.CONSOLE
    json_format: bool = False
    use_rich: bool = True
    mask_sensitive: bool = True
    log_file: Path | None = None

    # Rotation of the JSON log file
    max_file_size: int = 5 * 1024 * 1024
    backup_count: int = 3

    # e.g. {"hafalan_portal.sheets.client": "DEBUG"}
    module_levels: dict[str, str] = field(default_factory=dict)

    # Added to every JSON record, e.g. {"deployment": "sekolah-a"}
    extra_fields: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> LogConfig:
        """Build a configuration for the detected environment.

        Recognised variables: LOG_LEVEL, LOG_OUTPUT (console, file, both,
        json), LOG_JSON, LOG_RICH, LOG_MASK_SENSITIVE, LOG_FILE, LOG_MAX_SIZE
        and LOG_BACKUP_COUNT. Values that cannot be parsed are ignored.
        """
        config = cls.defaults_for(cls.detect_environment())
        for variable, (attribute, parse) in _ENV_OVERRIDES.items():
            raw = os.getenv(variable)
            if not raw:
                continue
            value = parse(raw)
            if value is not None:
                setattr(config, attribute, value)
        return config

    @staticmethod
    def detect_environment() -> Environment:
        """Read PORTAL_ENV (or ENVIRONMENT); pytest runs count as testing."""
        name = os.getenv("PORTAL_ENV", os.getenv("ENVIRONMENT", "")).lower()
        if name in ("prod", "production"):
            return Environment.PRODUCTION
        if name in ("test", "testing") or os.getenv("PYTEST_CURRENT_TEST"):
            return Environment.TESTING
        return Environment.DEVELOPMENT

    @classmethod
    def defaults_for(cls, env: Environment) -> LogConfig:
        """Baseline settings for an environment.

        Hosted deployments log JSON lines at INFO. Development and tests log
        at DEBUG; only development uses Rich.
        """
        if env == Environment.PRODUCTION:
            return cls(level="INFO", json_format=True, use_rich=False)
        return cls(level="DEBUG", use_rich=env == Environment.DEVELOPMENT)


_active: LogConfig | None = None


def get_config() -> LogConfig:
    """The active configuration; read from the environment on first use."""
    global _active
    if _active is None:
        _active = LogConfig.from_env()
    return _active


def set_config(config: LogConfig) -> None:
    global _active
    _active = config


def reset_config() -> None:
    """Drop the active configuration so the next read re-parses the environment."""
    global _active
    _active = None
