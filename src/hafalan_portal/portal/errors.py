"""Errors raised by the portal core before anything reaches the gateway."""

from typing import Sequence


class FormValidationError(ValueError):
    """The score form is missing required selections."""

    def __init__(self, message: str, missing: Sequence[str] = ()):
        super().__init__(message)
        self.user_message = message
        self.missing = tuple(missing)


class RecordNotFoundError(LookupError):
    """A synthetic key or report row id is not in the current snapshot."""


class ReadOnlyFieldError(ValueError):
    """An edit tried to change a field that is fixed once a score exists."""
