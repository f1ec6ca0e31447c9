"""Logger factory for the portal.

Modules call ``get_logger(__name__)`` at import time. Streamlit re-executes
the app script on every interaction, so everything here is idempotent: a
logger is given handlers once, and the root logger is configured once.
"""

from __future__ import annotations

import logging
from typing import Any

from .config import LogConfig, LogOutput, get_config
from .formatters import CompactFormatter, JSONFormatter, StandardFormatter
from .handlers import RichConsoleHandler, SafeRotatingFileHandler, StreamHandlerWithFlush

_ROOT = "root"

# Names of loggers that received handlers from this module
_managed: set[str] = set()


def get_logger(name: str | None = None, config: LogConfig | None = None) -> logging.Logger:
    """Return the named logger, attaching handlers on first request.

    Args:
        name: Logger name, normally the calling module's ``__name__``
        config: Overrides the global configuration for this logger
    """
    logger = logging.getLogger(name)
    key = name or _ROOT
    if key not in _managed:
        _apply(logger, config or get_config())
        _managed.add(key)
    return logger


def _apply(logger: logging.Logger, config: LogConfig) -> None:
    level_name = config.module_levels.get(logger.name, config.level).upper()
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    # Named loggers never propagate to the root logger
    if logger.name != _ROOT:
        logger.propagate = False

    logger.handlers.clear()
    for handler in _handlers_for(config):
        logger.addHandler(handler)


def _json(config: LogConfig) -> JSONFormatter:
    return JSONFormatter(config.mask_sensitive, config.extra_fields)


def _console_handler(config: LogConfig) -> logging.Handler:
    if config.json_format:
        handler: logging.Handler = StreamHandlerWithFlush()
        handler.setFormatter(_json(config))
    elif config.use_rich:
        handler = RichConsoleHandler()
        handler.setFormatter(CompactFormatter(mask_sensitive=config.mask_sensitive))
    else:
        handler = StreamHandlerWithFlush()
        handler.setFormatter(StandardFormatter(mask_sensitive=config.mask_sensitive))
    return handler


def _handlers_for(config: LogConfig) -> list[logging.Handler]:
    """Handlers for the configured output; the log file is always JSON."""
    handlers: list[logging.Handler] = []
    output = config.output

    if output in (LogOutput.CONSOLE, LogOutput.BOTH):
        handlers.append(_console_handler(config))

    if output == LogOutput.JSON:
        json_stream = StreamHandlerWithFlush()
        json_stream.setFormatter(_json(config))
        handlers.append(json_stream)

    if output in (LogOutput.FILE, LogOutput.BOTH) and config.log_file:
        log_file = SafeRotatingFileHandler(
            config.log_file, max_bytes=config.max_file_size, backup_count=config.backup_count
        )
        log_file.setFormatter(_json(config))
        handlers.append(log_file)

    return handlers


def configure_root_logger(config: LogConfig | None = None) -> None:
    """Give the root logger handlers, once per process.

    Called at the top of the Streamlit script; later reruns do nothing.
    """
    if _ROOT in _managed:
        return
    _apply(logging.getLogger(), config or get_config())
    _managed.add(_ROOT)


def reset_logging() -> None:
    """Remove handlers from every logger set up here (used by tests)."""
    for name in _managed:
        logging.getLogger(None if name == _ROOT else name).handlers.clear()
    _managed.clear()


class LoggerAdapter(logging.LoggerAdapter):
    """Adds structured fields to records as ``record.extra_data``.

    ``JSONFormatter`` writes them under ``"extra"``; per-call ``extra=``
    values are merged over the adapter's own.
    """

    def __init__(self, logger: logging.Logger, extra: dict[str, Any] | None = None) -> None:
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        merged = dict(self.extra)
        merged.update(kwargs.pop("extra", None) or {})
        kwargs["extra"] = {"extra_data": merged}
        return msg, kwargs


def with_extra(logger: logging.Logger, **extra: Any) -> LoggerAdapter:
    """Wrap ``logger`` so each record carries ``extra``.

    Example:
        with_extra(logger, rows=12).info("Read %d rows", 12)
    """
    return LoggerAdapter(logger, extra)
