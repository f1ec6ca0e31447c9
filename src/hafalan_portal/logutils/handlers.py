"""Log handlers for the portal.

Streamlit captures stdout, so console output goes to stderr. Rich styling is
used during development; hosted deployments log JSON lines.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.text import Text


class RichConsoleHandler(logging.Handler):
    """Log handler that prints level-coloured lines through Rich."""

    LEVEL_STYLES = {
        "DEBUG": "dim",
        "INFO": "green",
        "WARNING": "yellow",
        "ERROR": "red bold",
        "CRITICAL": "red bold reverse",
    }

    def __init__(self, console: Console | None = None, show_path: bool = False) -> None:
        """Initialize the handler.

        Args:
            console: Rich Console instance (creates a stderr console if None)
            show_path: Append file name and line number
        """
        super().__init__()
        self.console = console or Console(stderr=True)
        self.show_path = show_path

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            text = Text(f"[{record.levelname:8}]", style=self.LEVEL_STYLES.get(record.levelname, ""))
            text.append(" ")
            text.append(message)
            if self.show_path:
                text.append(f" ({record.filename}:{record.lineno})", style="dim")
            self.console.print(text)
        except Exception:
            self.handleError(record)


class SafeRotatingFileHandler(RotatingFileHandler):
    """Rotating file handler that creates its directory and writes UTF-8."""

    def __init__(self, filename: str | Path, max_bytes: int, backup_count: int) -> None:
        log_path = Path(filename)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(
            filename=str(log_path),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )


class BufferingHandler(logging.Handler):
    """Handler that keeps the last ``capacity`` records in memory.

    Used by the test suite to assert on what the gateway and controller log.
    """

    def __init__(self, capacity: int = 500) -> None:
        super().__init__()
        self.capacity = capacity
        self.buffer: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.buffer.append(record)
        if len(self.buffer) > self.capacity:
            self.buffer.pop(0)

    def messages(self) -> list[str]:
        """Return the formatted messages of all buffered records."""
        return [record.getMessage() for record in self.buffer]

    def clear(self) -> None:
        """Clear the buffer."""
        self.buffer.clear()


class StreamHandlerWithFlush(logging.StreamHandler):
    """StreamHandler that flushes after each record."""

    def __init__(self) -> None:
        super().__init__(sys.stderr)

    def emit(self, record: logging.LogRecord) -> None:
        super().emit(record)
        self.flush()
