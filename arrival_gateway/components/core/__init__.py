"""
Core components: constants and log-safe context helpers.
"""

from arrival_gateway.components.core.constants import (
    DEFAULT_ALLOWED_ORIGINS,
    MessageType,
    WSCloseCode,
    WSConstants,
)
from arrival_gateway.components.core.context import sanitize_log_data

__all__ = [
    "DEFAULT_ALLOWED_ORIGINS",
    "MessageType",
    "WSCloseCode",
    "WSConstants",
    "sanitize_log_data",
]
