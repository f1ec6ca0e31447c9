"""Masking of secrets and student identifiers in log output.

The Apps Script deployment id in the gateway URL works as a bearer
credential: anyone holding it can write to the spreadsheet. NISN values are
national student numbers and are masked down to their last digits.
"""

from __future__ import annotations

import re
from typing import Any

MASK = "***MASKED***"

# Apps Script deployment ids: /macros/s/<id>/exec
_DEPLOYMENT_ID = re.compile(r"(/macros/s/)[A-Za-z0-9_\-]{10,}")

# key=value or "key": "value" forms for credentials
_CREDENTIAL = re.compile(
    r'(["\']?(?:api[_-]?key|(?:access[_-]?)?token|secret|password)["\']?\s*[:=]\s*)'
    r'["\']?[^"\'\s,}&]+["\']?',
    re.IGNORECASE,
)

# Credentials embedded in URLs
_URL_CREDENTIALS = re.compile(r"(https?://)[^:/\s]+:[^@/\s]+(@)", re.IGNORECASE)

# NISN / Student ID values: keep the last three digits
_NISN_VALUE = re.compile(
    r'(["\']?(?:nisn|student[ _-]?id)["\']?\s*[:=]\s*["\']?)(\d+)(\d{3})',
    re.IGNORECASE,
)

SENSITIVE_KEYWORDS: set[str] = {
    "password",
    "secret",
    "token",
    "api_key",
    "apikey",
    "authorization",
    "credential",
}


def mask_sensitive_string(text: str) -> str:
    """Mask secrets and student identifiers in a string.

    Args:
        text: The text to mask

    Returns:
        Text with sensitive parts replaced
    """
    if not text:
        return text

    result = _DEPLOYMENT_ID.sub(r"\g<1>" + MASK, text)
    result = _URL_CREDENTIALS.sub(r"\g<1>" + MASK + r"\g<2>", result)
    result = _CREDENTIAL.sub(r"\g<1>" + MASK, result)
    result = _NISN_VALUE.sub(lambda m: m.group(1) + "*" * len(m.group(2)) + m.group(3), result)
    return result


def is_sensitive_key(key: str) -> bool:
    """Check if a key name indicates a secret."""
    lower_key = key.lower()
    return any(keyword in lower_key for keyword in SENSITIVE_KEYWORDS)


def mask_dict(data: dict[str, Any], depth: int = 0, max_depth: int = 10) -> dict[str, Any]:
    """Recursively mask sensitive values in a dictionary.

    Args:
        data: Dictionary to mask
        depth: Current recursion depth
        max_depth: Maximum recursion depth

    Returns:
        A new dictionary with sensitive values masked
    """
    if depth >= max_depth:
        return data

    result: dict[str, Any] = {}
    for key, value in data.items():
        if is_sensitive_key(key):
            result[key] = MASK
        elif isinstance(value, dict):
            result[key] = mask_dict(value, depth + 1, max_depth)
        elif isinstance(value, list):
            result[key] = [
                mask_dict(item, depth + 1, max_depth) if isinstance(item, dict) else item
                for item in value
            ]
        elif isinstance(value, str):
            result[key] = mask_sensitive_string(value)
        else:
            result[key] = value

    return result
