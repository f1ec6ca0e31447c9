"""Errors raised by the spreadsheet gateway.

Each error carries a ``user_message`` suitable for showing to the teacher
(in Indonesian, like the rest of the UI) and the ``original_error`` that
caused it, if any.
"""

from typing import Optional


class GatewayError(Exception):
    """Base class for gateway failures."""

    def __init__(
        self,
        message: str,
        user_message: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.user_message = user_message or message
        self.original_error = original_error


class RemoteFetchError(GatewayError):
    """A collection could not be read."""

    def __init__(self, collection: str, cause: str, original_error: Optional[Exception] = None):
        super().__init__(
            message=f"Failed to read {collection}: {cause}",
            user_message=cause,
            original_error=original_error,
        )
        self.collection = collection


class RemoteWriteError(GatewayError):
    """A create, update or delete was rejected or never reached the sheet."""

    def __init__(self, action: str, cause: str, original_error: Optional[Exception] = None):
        super().__init__(
            message=f"Failed to {action} record: {cause}",
            user_message=cause,
            original_error=original_error,
        )
        self.action = action
