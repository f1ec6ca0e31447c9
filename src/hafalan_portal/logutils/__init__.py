"""Logging infrastructure for the Hafalan portal.

Usage:
    from hafalan_portal.logutils import get_logger, with_context

    logger = get_logger(__name__)

    with with_context(operation="create_score", teacher_class="1A"):
        logger.info("Submitting score")
"""

from .config import Environment, LogConfig, LogOutput, get_config, reset_config, set_config
from .context import (
    ContextScope,
    LogContext,
    clear_context,
    get_context,
    get_correlation_id,
    set_context,
    with_context,
)
from .formatters import CompactFormatter, JSONFormatter, StandardFormatter
from .handlers import (
    BufferingHandler,
    RichConsoleHandler,
    SafeRotatingFileHandler,
    StreamHandlerWithFlush,
)
from .logger import LoggerAdapter, configure_root_logger, get_logger, reset_logging, with_extra
from .masking import MASK, is_sensitive_key, mask_dict, mask_sensitive_string

__all__ = [
    # Loggers
    "LoggerAdapter", "configure_root_logger", "get_logger", "reset_logging", "with_extra",
    # Context
    "ContextScope", "LogContext", "clear_context", "get_context", "get_correlation_id",
    "set_context", "with_context",
    # Configuration
    "Environment", "LogConfig", "LogOutput", "get_config", "reset_config", "set_config",
    # Formatting and output
    "BufferingHandler", "CompactFormatter", "JSONFormatter", "RichConsoleHandler",
    "SafeRotatingFileHandler", "StandardFormatter", "StreamHandlerWithFlush",
    # Masking
    "MASK", "is_sensitive_key", "mask_dict", "mask_sensitive_string",
]
