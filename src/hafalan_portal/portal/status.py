"""Transient status banners with auto-dismiss.

A status is shown until it expires or a newer one replaces it. Expiry is
evaluated lazily against an injectable clock, so every Streamlit rerun simply
asks whether the banner is still visible.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

# Seconds a banner stays visible
DEFAULT_DISMISS_SECONDS = 5.0

Clock = Callable[[], float]


class StatusKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class StatusMessage:
    """A banner message and the moment it stops being shown."""

    message: str
    kind: StatusKind
    expires_at: float

    @property
    def is_error(self) -> bool:
        return self.kind == StatusKind.ERROR

    @property
    def title(self) -> str:
        return "Error!" if self.is_error else "Berhasil!"


class StatusChannel:
    """Holds at most one status message at a time."""

    def __init__(
        self,
        dismiss_after: float = DEFAULT_DISMISS_SECONDS,
        clock: Clock = time.monotonic,
    ):
        """Initialize the channel.

        Args:
            dismiss_after: Seconds before a message disappears.
            clock: Returns the current time in seconds.
        """
        self.dismiss_after = dismiss_after
        self.clock = clock
        self._message: Optional[StatusMessage] = None

    def success(self, message: str) -> StatusMessage:
        return self._post(message, StatusKind.SUCCESS)

    def error(self, message: str) -> StatusMessage:
        return self._post(message, StatusKind.ERROR)

    def clear(self) -> None:
        self._message = None

    @property
    def current(self) -> Optional[StatusMessage]:
        """The visible message, or None once it has expired."""
        if self._message is not None and self.clock() >= self._message.expires_at:
            self._message = None
        return self._message

    def remaining(self) -> float:
        """Seconds until the visible message expires, 0 if none."""
        message = self.current
        if message is None:
            return 0.0
        return max(message.expires_at - self.clock(), 0.0)

    def _post(self, message: str, kind: StatusKind) -> StatusMessage:
        self._message = StatusMessage(message, kind, self.clock() + self.dismiss_after)
        return self._message
