"""
Log sanitization helpers.

Client names and recipient identities are free-form user input; they pass
through ``sanitize_log_data`` before being written to logs.
"""

from __future__ import annotations

import re

from arrival_gateway.components.core.constants import WSConstants


# Pattern to remove control characters from log data
_CONTROL_CHAR_PATTERN = re.compile(
    r'[\x00-\x1f\x7f-\x9f'  # ASCII control characters
    r'\u200b-\u200f'  # Zero-width and direction marks
    r'\u202a-\u202e'  # Bidirectional text formatting (RTL override, etc.)
    r'\u2066-\u2069'  # Isolate formatting characters
    r'\ufeff]'  # BOM / Zero-width no-break space
)


def sanitize_log_data(data: str | bytes, max_length: int = WSConstants.LOG_DATA_MAX_LENGTH) -> str:
    """
    Sanitize user-provided data before logging.

    Truncates first so the output length is stable, then strips control and
    direction-override characters and escapes quotes and backslashes.

    Args:
        data: Raw user data.
        max_length: Maximum length to include in logs.

    Returns:
        Sanitized, truncated string safe for structured logging.
    """
    if isinstance(data, bytes):
        data = data.decode("utf-8", errors="replace")

    truncated = data[:max_length]
    was_truncated = len(data) > max_length

    sanitized = _CONTROL_CHAR_PATTERN.sub("", truncated)

    # Replace backslashes first to avoid double-escaping
    sanitized = sanitized.replace("\\", "\\\\")
    sanitized = sanitized.replace('"', '\\"')

    if was_truncated:
        return sanitized + "..."
    return sanitized
