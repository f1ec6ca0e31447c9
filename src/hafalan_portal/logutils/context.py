"""Per-request logging context for the portal.

A Streamlit rerun is the unit of work here: each rerun gets a correlation id,
and gateway calls made during it carry the teacher's class and the collection
being touched.
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from typing import Any


@dataclass
class LogContext:
    """Contextual fields attached to every log record."""

    correlation_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    operation: str | None = None
    teacher_class: str | None = None
    collection: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary, skipping unset fields."""
        result: dict[str, Any] = {"correlation_id": self.correlation_id}

        if self.operation:
            result["operation"] = self.operation
        if self.teacher_class:
            result["teacher_class"] = self.teacher_class
        if self.collection:
            result["collection"] = self.collection

        result.update(self.extra)
        return result


_log_context: ContextVar[LogContext | None] = ContextVar("hafalan_log_context", default=None)


def get_context() -> LogContext:
    """Get the current log context, creating one if none exists."""
    ctx = _log_context.get()
    if ctx is None:
        ctx = LogContext()
        _log_context.set(ctx)
    return ctx


def set_context(context: LogContext) -> None:
    """Set the current log context."""
    _log_context.set(context)


def clear_context() -> None:
    """Clear the current log context."""
    _log_context.set(None)


def get_correlation_id() -> str:
    """Get the current correlation ID."""
    return get_context().correlation_id


class ContextScope:
    """Context manager that installs a derived log context for a block.

    Fields not given explicitly are inherited from the enclosing context, so a
    gateway call inside an ``update_score`` operation keeps both the operation
    name and the correlation id of the rerun.
    """

    def __init__(
        self,
        operation: str | None = None,
        teacher_class: str | None = None,
        collection: str | None = None,
        correlation_id: str | None = None,
        **extra: Any,
    ) -> None:
        self._overrides = {
            "operation": operation,
            "teacher_class": teacher_class,
            "collection": collection,
            "correlation_id": correlation_id,
        }
        self._extra = extra
        self._token: Token[LogContext | None] | None = None

    def __enter__(self) -> LogContext:
        parent = _log_context.get()
        ctx = LogContext(
            correlation_id=self._overrides["correlation_id"]
            or (parent.correlation_id if parent else uuid.uuid4().hex[:12]),
            operation=self._overrides["operation"] or (parent.operation if parent else None),
            teacher_class=self._overrides["teacher_class"]
            or (parent.teacher_class if parent else None),
            collection=self._overrides["collection"] or (parent.collection if parent else None),
            extra={**(parent.extra if parent else {}), **self._extra},
        )
        self._token = _log_context.set(ctx)
        return ctx

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None


def with_context(
    operation: str | None = None,
    teacher_class: str | None = None,
    collection: str | None = None,
    correlation_id: str | None = None,
    **extra: Any,
) -> ContextScope:
    """Create a context manager with the specified logging context.

    Usage:
        with with_context(operation="create_score", teacher_class="1A"):
            logger.info("Submitting score")
    """
    return ContextScope(
        operation=operation,
        teacher_class=teacher_class,
        collection=collection,
        correlation_id=correlation_id,
        **extra,
    )
