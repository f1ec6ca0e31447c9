"""Configuration for the Hafalan portal."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load .env file from the working directory if available
load_dotenv()


def _env_number(name: str, default: float, cast=float):
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass
class PortalConfig:
    """Settings for the gateway connection and the portal UI."""

    sheets_api_url: str
    timeout: float = 30.0
    teacher_name: Optional[str] = None
    teacher_class: Optional[str] = None
    page_size: int = 10
    status_seconds: float = 5.0
    report_latency: float = 1.0

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            raise ValueError("PORTAL_PAGE_SIZE must be positive")
        if self.status_seconds < 0:
            raise ValueError("PORTAL_STATUS_SECONDS must not be negative")
        if self.report_latency < 0:
            raise ValueError("PORTAL_REPORT_LATENCY must not be negative")

    @classmethod
    def from_env(cls) -> "PortalConfig":
        """Create configuration from environment variables."""
        api_url = os.environ.get("SHEETS_API_URL")
        if not api_url:
            raise ValueError("SHEETS_API_URL environment variable is required")

        return cls(
            sheets_api_url=api_url.rstrip("/"),
            timeout=_env_number("SHEETS_TIMEOUT", 30.0),
            teacher_name=os.environ.get("TEACHER_NAME") or None,
            teacher_class=os.environ.get("TEACHER_CLASS") or None,
            page_size=_env_number("PORTAL_PAGE_SIZE", 10, cast=int),
            status_seconds=_env_number("PORTAL_STATUS_SECONDS", 5.0),
            report_latency=_env_number("PORTAL_REPORT_LATENCY", 1.0),
        )

    @property
    def has_teacher(self) -> bool:
        """Whether a teacher identity was configured."""
        return bool(self.teacher_name and self.teacher_class)
